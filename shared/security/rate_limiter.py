from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request

from shared.config import settings

from .dependencies import principal_from_token

def user_id_or_ip(request: Request) -> str:
    """
    Key function for SlowAPI.
    Extracts the user ID directly from the Authorization header if available.
    Falls back to the client's IP address if unauthenticated.
    """
    auth_header = request.headers.get("Authorization")

    # Try to extract User ID from JWT
    if auth_header and auth_header.startswith("Bearer "):
        principal = principal_from_token(auth_header.split(" ", 1)[1])
        if principal is not None:
            return f"user:{principal.id}"

    # Fallback to IP address (handles proxies if X-Forwarded-For is set correctly by Uvicorn)
    return f"ip:{get_remote_address(request)}"

# Initialize the Limiter with our custom key function
limiter = Limiter(key_func=user_id_or_ip, enabled=settings.RATE_LIMIT_ENABLED)
