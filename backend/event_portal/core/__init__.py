from .config import settings
from .security import (
    create_access_token,
    get_password_hash,
    parse_duration,
    verify_password,
    verify_token,
)

__all__ = [
    "settings",
    "create_access_token",
    "get_password_hash",
    "parse_duration",
    "verify_password",
    "verify_token",
]
