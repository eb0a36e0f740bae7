"""catalog_scout.storage: remote persistence of product records."""

from .supabase import SupabaseSink, build_payload

__all__ = ["SupabaseSink", "build_payload"]
