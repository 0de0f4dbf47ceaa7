"""
Pydantic schemas for API request and response validation.

All FastAPI endpoints use strict Pydantic models with explicit types.
Domain keys are normalized here (see preferences.normalize_domain) before
any service sees them.
"""
