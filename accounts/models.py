from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List


def _now() -> datetime:
    """Current UTC time, microsecond precision."""
    return datetime.now(timezone.utc)


def _to_iso(ts: datetime) -> str:
    return ts.isoformat(timespec="microseconds")


def _from_iso(value: str) -> datetime:
    ts = datetime.fromisoformat(value)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


@dataclass(frozen=True)
class ChatMessage:
    timestamp: datetime
    sender: str
    text: str

    @staticmethod
    def new(sender: str, text: str) -> "ChatMessage":
        return ChatMessage(timestamp=_now(), sender=sender, text=text)

    def to_dict(self) -> Dict[str, str]:
        return {
            "timestamp": _to_iso(self.timestamp),
            "sender": self.sender,
            "text": self.text,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChatMessage":
        return cls(
            timestamp=_from_iso(data["timestamp"]),
            sender=data["sender"],
            text=data["text"],
        )


@dataclass(frozen=True)
class UserRecord:
    """
    One registered user, keyed externally by email.

    `username` and `registration_time` never change once the record exists.
    `chat_messages` maps each message's own timestamp to the message, so a
    second message with an identical timestamp replaces the first.
    """

    username: str
    registration_time: datetime
    chat_messages: Dict[datetime, ChatMessage] = field(default_factory=dict)

    # constructor
    @staticmethod
    def new(username: str) -> "UserRecord":
        return UserRecord(username=username, registration_time=_now())

    def add_chat_message(self, message: ChatMessage) -> None:
        self.chat_messages[message.timestamp] = message

    def messages(self) -> List[ChatMessage]:
        """Messages in timestamp order."""
        return [self.chat_messages[ts] for ts in sorted(self.chat_messages)]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "username": self.username,
            "registration_time": _to_iso(self.registration_time),
            "chat_messages": [m.to_dict() for m in self.messages()],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserRecord":
        messages = [ChatMessage.from_dict(m) for m in data.get("chat_messages", [])]
        return cls(
            username=data["username"],
            registration_time=_from_iso(data["registration_time"]),
            chat_messages={m.timestamp: m for m in messages},
        )
