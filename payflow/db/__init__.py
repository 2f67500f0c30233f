"""Database Infrastructure — SQLAlchemy Base for the local resource store.

Invariants:
    - All sessions are async (AsyncSession)

Design Decisions:
    - aiosqlite by default: the store is local to the process host
"""
