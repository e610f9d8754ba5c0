"""User accounts: validation, records, persistence."""

from .errors import (
    ChatAppError,
    AccountError,
    InvalidEmailFormat,
    InvalidUsernameFormat,
    DuplicateEmail,
    UnknownEmail,
    UsernameMismatch,
    PersistenceError,
    PersistenceLoadFailure,
    PersistenceSaveFailure,
)
from .manager import UserStore
from .models import ChatMessage, UserRecord
from .storage import IStorage, JSONStorage
from .validators import validate_email, validate_username

__all__ = [
    "ChatAppError",
    "AccountError",
    "InvalidEmailFormat",
    "InvalidUsernameFormat",
    "DuplicateEmail",
    "UnknownEmail",
    "UsernameMismatch",
    "PersistenceError",
    "PersistenceLoadFailure",
    "PersistenceSaveFailure",
    "UserStore",
    "ChatMessage",
    "UserRecord",
    "IStorage",
    "JSONStorage",
    "validate_email",
    "validate_username",
]
