"""Central credential resolver.

Adapters resolve API credentials here so the lookup order lives in one place:
explicit argument first, then environment variables. There are no built-in
defaults; a missing token means the live source is unavailable.
"""
from __future__ import annotations

import os
from typing import Optional


def get_unusual_whales_token(token: Optional[str] = None) -> Optional[str]:
    """Return Unusual Whales token preferring explicit arg, then env."""

    return (
        token
        or os.getenv("UNUSUAL_WHALES_API_TOKEN")
        or os.getenv("UNUSUAL_WHALES_TOKEN")
        or os.getenv("UNUSUAL_WHALES_API_KEY")
        or None
    )
