from __future__ import annotations

import logging
from typing import Optional

from fastapi import Header, HTTPException, Request

log = logging.getLogger("api")


def require_token(request: Request, authorization: Optional[str] = Header(default=None)) -> None:
    """
    Bearer token guard.

    Stub check against the single API_TOKEN setting; swap for real JWT
    validation once an identity provider exists.
    """
    expected = f"Bearer {request.app.state.climate.settings.api_token}"
    if authorization != expected:
        log.warning("Authentication failed path=%s", request.url.path)
        raise HTTPException(status_code=401, detail="Unauthorized")
