"""Core Layer — pure domain logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Functions are pure; time and randomness are passed in by the caller

Design Decisions:
    - Functional core separated from the async shell in services/
"""
