"""Service Layer — ledgers and payment processing around the pure core.

Invariants:
    - Services talk to storage and collaborators only through core Protocols
    - Every mutation runs under the entity's repository lock and commits once
"""
