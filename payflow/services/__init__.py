"""Services Layer — async combinators, pipeline stages, and resource caching.

Invariants:
    - Every stage takes its collaborators (clock, rng, monitor) via __init__
    - Stage tasks are started only through the combinators

Design Decisions:
    - One file per stage for locality
"""
