"""Infrastructure Layer — database sessions, logging, and cross-cutting concerns.

Invariants:
    - Infrastructure imports only core/errors from the core
    - Driver exceptions are mapped to typed errors before leaving this layer

Design Decisions:
    - Session manager wraps the raw engine with rollback and error mapping
"""
