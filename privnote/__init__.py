"""PrivNote Application Package — self-destructing notes.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
