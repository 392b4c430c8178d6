from accounts.models.session import TokenType, UserSession
from accounts.models.user import User, UserEmail, UserPassword

__all__ = [
    "TokenType",
    "User",
    "UserEmail",
    "UserPassword",
    "UserSession",
]
