"""Services Layer — authoring, lifecycle, claim coordination, and reporting.

Invariants:
    - Services receive their AsyncSession or session manager from the caller
    - Only the claim coordinator moves a code out of `available`

Design Decisions:
    - One service per concern; InventoryStore is the shared query surface
"""
