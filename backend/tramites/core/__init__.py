"""Core Layer — pure domain logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Randomness and clocks enter only as arguments (rng, now)

Design Decisions:
    - Functional core separated from imperative shell: ledgers in services/
      orchestrate repositories around these pure rules
"""
