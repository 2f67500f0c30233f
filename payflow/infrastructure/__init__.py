"""Infrastructure Layer — database, origin/connectivity clients, logging.

Invariants:
    - Infrastructure never imports from services/
    - External failures mapped to PaymentError subclasses (core/errors.py)
"""
