import enum

from pydantic import BaseModel


class Role(str, enum.Enum):
    CLIENT = "CLIENT"
    EMPLOYEE = "EMPLOYEE"
    ADMIN = "ADMIN"


class Tier(str, enum.Enum):
    """Minimum privilege an operation requires."""
    PUBLIC = "public"
    AUTHENTICATED = "authenticated"
    ADMIN = "admin"


class Principal(BaseModel):
    """The authenticated caller of a single request."""
    id: str
    role: Role

    class Config:
        frozen = True
