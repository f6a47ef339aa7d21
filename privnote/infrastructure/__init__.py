"""Infrastructure Layer — storage, session management and cross-cutting concerns.

Invariants:
    - Infrastructure implements the protocols declared in core/repository_protocols.py
    - All storage failures are mapped to core/errors.py types before leaving this layer
"""
