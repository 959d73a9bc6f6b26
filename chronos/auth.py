import secrets
from typing import Optional

from fastapi import HTTPException, Security
from fastapi.security.api_key import APIKeyHeader

from . import config

control_plane_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def require_api_key(api_key: Optional[str] = Security(control_plane_key_header)) -> bool:
    """Guard for routes that change jobs on the provider."""
    if not api_key:
        raise HTTPException(status_code=401, detail="Missing control plane API key")
    if not secrets.compare_digest(api_key, config.CONTROL_PLANE_API_KEY):
        raise HTTPException(status_code=403, detail="Control plane API key rejected")
    return True
