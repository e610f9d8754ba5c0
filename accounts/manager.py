import logging
from typing import Dict, Iterator, List, Optional

from .errors import DuplicateEmail, PersistenceError, UnknownEmail, UsernameMismatch
from .models import ChatMessage, UserRecord
from .storage import IStorage

logger = logging.getLogger("chatapp.accounts")


class UserStore:
    """
    In-memory map of email -> UserRecord backed by an IStorage.

    Emails are used exactly as typed (case-sensitive). The map is read once with
    load() and written wholesale with save(); nothing is persisted in between.
    """

    def __init__(self, storage: IStorage):
        self.storage = storage
        self._users: Dict[str, UserRecord] = {}

    def load(self) -> "UserStore":
        """Replace the in-memory map with the persisted one. Never raises."""
        try:
            users = self.storage.load()
        except FileNotFoundError:
            logger.warning("User data file not found. Starting with an empty user list.")
            users = {}
        except (PersistenceError, OSError) as e:
            logger.warning(f"Failed to load user data from file: {e}")
            users = {}
        self._users = dict(users)
        return self

    def save(self) -> bool:
        """Persist the whole map. Returns False (after a warning) if the write failed."""
        try:
            self.storage.save(self._users)
        except (PersistenceError, OSError) as e:
            logger.warning(f"Failed to save user data to file: {e}")
            return False
        logger.debug(f"Saved {len(self._users)} user(s)")
        return True

    def register(self, email: str, username: str) -> UserRecord:
        if email in self._users:
            raise DuplicateEmail()
        record = UserRecord.new(username)
        self._users[email] = record
        return record

    def authenticate(self, email: str, username: str) -> UserRecord:
        record = self._users.get(email)
        if record is None:
            raise UnknownEmail()
        if record.username != username:
            raise UsernameMismatch()
        return record

    def append_message(self, email: str, message: ChatMessage) -> ChatMessage:
        record = self._users.get(email)
        if record is None:
            raise UnknownEmail()
        record.add_chat_message(message)
        return message

    def exists(self, email: str) -> bool:
        return email in self._users

    def get(self, email: str) -> Optional[UserRecord]:
        return self._users.get(email)

    def emails(self) -> List[str]:
        return list(self._users)

    def __contains__(self, email: object) -> bool:
        return email in self._users

    def __len__(self) -> int:
        return len(self._users)

    def __iter__(self) -> Iterator[str]:
        return iter(self._users)
