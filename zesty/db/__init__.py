"""
Database access layer for the Zesty backend.

All database operations MUST:
- Respect Row Level Security (RLS): user_id = auth.uid()
- Never bypass RLS
- Never create or migrate tables (the schema is owned by Supabase)

Tables consumed:
- taste_preferences(user_id, domain, preferences[], dislikes[])
- recommendations(id, user_id, qloo_entity_id, title, domain, ...)
"""

from .client import get_supabase_client, is_supabase_configured

__all__ = ["get_supabase_client", "is_supabase_configured"]
