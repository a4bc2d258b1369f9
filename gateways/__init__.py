# gateways/__init__.py
import os

from tracker.errors import StoreError

from . import supabase
from .base import ItemGateway

ITEM_GATEWAY = os.getenv("ITEM_GATEWAY", "supabase").strip().lower()

GATEWAYS = {
    "supabase": supabase.SupabaseItemGateway,
}


def get_gateway(name: str | None = None, **kwargs) -> ItemGateway:
    """Build the gateway registered under `name` (default ITEM_GATEWAY)."""
    key = (name or ITEM_GATEWAY).strip().lower()
    cls = GATEWAYS.get(key)
    if not cls:
        raise StoreError(f"No item gateway registered for '{key}'")
    return cls(**kwargs)
