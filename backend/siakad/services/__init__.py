"""Services Layer — use cases that sequence IO around the pure core.

Invariants:
    - Services depend on core Protocols, never on concrete infrastructure classes
    - Each service receives its collaborators and config at construction
"""
