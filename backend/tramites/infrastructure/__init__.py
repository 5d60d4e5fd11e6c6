"""Infrastructure — repositories, database sessions, simulated collaborators, logging.

Invariants:
    - Implements the Protocols in core/repository_protocols.py
    - Nothing in core/ imports from here
"""
