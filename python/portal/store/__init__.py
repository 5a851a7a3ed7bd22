"""Store module for Supabase database operations."""

from portal.store.client import Row, StoreClient, StoreClientBase

__all__ = ["Row", "StoreClient", "StoreClientBase"]
