from typing import Optional

from fastapi import Depends, Header

from .config import Settings, get_settings


def get_credential(
    x_api_key: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> Optional[str]:
    """Per-request key from X-Api-Key, falling back to the configured one. May be None."""
    if x_api_key and x_api_key.strip():
        return x_api_key.strip()
    return settings.gemini_api_key
