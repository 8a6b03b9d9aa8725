"""
Database helpers for the badge builder service.
"""

from badge_builder.db.supabase import create_supabase_admin_client, raise_for_response_error

__all__ = [
    "create_supabase_admin_client",
    "raise_for_response_error",
]
