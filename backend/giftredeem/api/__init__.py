"""API Layer — FastAPI routes, request identity, and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All endpoints return structured JSON responses
    - Identity arrives already authenticated via trusted headers

Design Decisions:
    - Thin routes delegate to services; no claim logic lives here
"""
