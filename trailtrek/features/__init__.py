"""
Feature modules for TrailTrek.

Each feature is a self-contained module with:
- models.py / schemas.py - dataclasses and Pydantic schemas
- service-level logic (recorder, evaluator, cache, ledger, sync service)
- __init__.py - public exports
"""
