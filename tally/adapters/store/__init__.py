"""Result store adapters for persistence.

Implementations:
- Filesystem (one directory per execution, JSON suite summaries)
- Emergency error log (append-only text file)
"""
