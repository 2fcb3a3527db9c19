"""Hosted backend implementations."""

from minivault.backend.supabase import SupabaseBackend

__all__ = ["SupabaseBackend"]
