"""
Principal resolution and the tiered authorization gate.

``authorize`` is the gate itself: a pure function of (principal, tier).
The ``require_*`` dependencies bind it to FastAPI routers so it runs
before the endpoint body and before any repository read.
"""
from typing import Optional

import structlog
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer

from shared.errors import Forbidden, Unauthenticated
from shared.observability import restaurant_authz_denied_total

from .jwt_handler import verify_access_token
from .principal import Principal, Role, Tier

logger = structlog.get_logger(__name__)

# Defines the expected header format (Bearer <token>)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login", auto_error=False)


def principal_from_token(token: Optional[str]) -> Optional[Principal]:
    """Decode a bearer token into a Principal; anything unusable resolves to None."""
    if not token:
        return None

    payload = verify_access_token(token)
    if payload is None:
        return None

    user_id = payload.get("sub")
    role = payload.get("role")
    if not user_id or role not in Role.__members__:
        return None
    return Principal(id=str(user_id), role=Role(role))


def authorize(principal: Optional[Principal], tier: Tier) -> Optional[Principal]:
    if tier is Tier.PUBLIC:
        return principal

    if principal is None:
        raise Unauthenticated("Authentication required")

    if tier is Tier.ADMIN and principal.role is not Role.ADMIN:
        raise Forbidden("Administrator role required")

    return principal


async def get_current_principal(
    request: Request, token: Optional[str] = Depends(oauth2_scheme)
) -> Optional[Principal]:
    principal = principal_from_token(token)
    if principal is not None:
        # Store in request state for downstream use (like rate limiting)
        request.state.user_id = principal.id
    return principal


def require_tier(tier: Tier):
    async def dependency(
        request: Request, principal: Optional[Principal] = Depends(get_current_principal)
    ) -> Optional[Principal]:
        try:
            return authorize(principal, tier)
        except (Unauthenticated, Forbidden) as exc:
            restaurant_authz_denied_total.labels(tier=tier.value, kind=exc.kind).inc()
            logger.warning(
                "authorization_denied",
                path=request.url.path,
                tier=tier.value,
                kind=exc.kind,
                principal_id=principal.id if principal else None,
            )
            raise

    return dependency


require_public = require_tier(Tier.PUBLIC)
require_authenticated = require_tier(Tier.AUTHENTICATED)
require_admin = require_tier(Tier.ADMIN)
