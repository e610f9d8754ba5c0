from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Dict, Any, Mapping
from .checksum import compute_checksum_b64, verify_checksum_b64
from .errors import PersistenceLoadFailure, PersistenceSaveFailure
from .models import UserRecord
import json, os, tempfile

FORMAT_TAG = "chatapp-users"
SCHEMA_VERSION = 1


def _make_record(email: str, data: Any) -> UserRecord:
    """Decode one stored record, reporting which email was malformed."""
    try:
        return UserRecord.from_dict(data)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise PersistenceLoadFailure(f"malformed record for {email!r}: {e}") from e


class IStorage(ABC):
    @abstractmethod
    def load(self) -> Dict[str, UserRecord]: ...
    @abstractmethod
    def save(self, users: Mapping[str, UserRecord]) -> None: ...


class JSONStorage(IStorage):
    """
    Whole-store JSON file.

    Layout::

        {"format": "chatapp-users", "version": 1,
         "checksum": "<base64 sha256 of users>", "users": {email: record}}

    Raises FileNotFoundError when the file is absent, PersistenceLoadFailure for
    anything unreadable, and PersistenceSaveFailure when a write fails.
    """

    def __init__(self, path: str = "userdata.txt"):
        self.path = path

    def load(self) -> Dict[str, UserRecord]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            users = self._check_envelope(data)
        except FileNotFoundError:
            raise
        except (OSError, ValueError, RecursionError) as e:
            raise PersistenceLoadFailure(str(e)) from e

        return {email: _make_record(email, record) for email, record in users.items()}

    @staticmethod
    def _check_envelope(data: Any) -> Dict[str, Any]:
        if not isinstance(data, dict) or data.get("format") != FORMAT_TAG:
            raise PersistenceLoadFailure("not a user data file")
        if data.get("version") != SCHEMA_VERSION:
            raise PersistenceLoadFailure(f"unsupported schema version {data.get('version')!r}")
        users = data.get("users")
        if not isinstance(users, dict):
            raise PersistenceLoadFailure("missing users section")
        if not verify_checksum_b64(users, data.get("checksum")):
            raise PersistenceLoadFailure("checksum mismatch, file is corrupted")
        return users

    def save(self, users: Mapping[str, UserRecord]) -> None:
        # write to a sibling temp file, then swap it in so a failed write never replaces the old file
        tmp = None
        try:
            payload = {email: record.to_dict() for email, record in users.items()}
            data = {
                "format": FORMAT_TAG,
                "version": SCHEMA_VERSION,
                "checksum": compute_checksum_b64(payload),
                "users": payload,
            }
            fd, tmp = tempfile.mkstemp(prefix="userdata.", suffix=".tmp", dir=os.path.dirname(self.path) or ".")
            # ASCII escapes keep lone surrogates from terminal input intact
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=True)
            os.replace(tmp, self.path)
        except (OSError, TypeError, ValueError, RecursionError) as e:
            raise PersistenceSaveFailure(str(e)) from e
        finally:
            if tmp and os.path.exists(tmp):
                try: os.remove(tmp)
                except OSError: pass
