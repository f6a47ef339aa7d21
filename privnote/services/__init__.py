"""Services Layer — async orchestration over core rules and infrastructure.

Invariants:
    - NoteEngine is the only writer of notes; the sweeper goes through it
    - Services hold no mutable shared state; coordination lives in the store
"""
