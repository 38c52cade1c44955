"""
Services Layer

Playoff business logic that:
- Accepts domain inputs (league IDs, weeks, caller-owned sessions)
- Returns domain outputs (models, dataclasses, dicts)
- Does NOT depend on HTTP request/response objects
- Does NOT commit: the caller owns the transaction
"""
