"""API v1 router aggregator.

All v1 endpoint routers are included here.
"""

from fastapi import APIRouter

from taskboard_auth.api.v1 import (
    auth,
    auth_email,
    auth_oauth,
    auth_passkey,
    auth_password_reset,
)

router = APIRouter()

_AUTH_PREFIX = "/auth"

router.include_router(auth.router, prefix=_AUTH_PREFIX, tags=["auth"])
router.include_router(auth_email.router, prefix=_AUTH_PREFIX, tags=["auth"])
router.include_router(auth_password_reset.router, prefix=_AUTH_PREFIX, tags=["auth"])
router.include_router(auth_passkey.router, prefix=_AUTH_PREFIX, tags=["auth"])
router.include_router(auth_oauth.router, prefix=_AUTH_PREFIX, tags=["auth"])
