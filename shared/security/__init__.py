from .jwt_handler import create_access_token, verify_access_token
from .principal import Principal, Role, Tier
from .dependencies import (
    authorize,
    get_current_principal,
    require_admin,
    require_authenticated,
    require_public,
)
from .rate_limiter import limiter, user_id_or_ip

__all__ = [
    "create_access_token",
    "verify_access_token",
    "Principal",
    "Role",
    "Tier",
    "authorize",
    "get_current_principal",
    "require_admin",
    "require_authenticated",
    "require_public",
    "limiter",
    "user_id_or_ip"
]
