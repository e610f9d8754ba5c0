import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_DATA_FILE = "userdata.txt"
DEFAULT_LOG_FILE = "chatapp.log"
DEFAULT_LOG_LEVEL = "DEBUG"
DEFAULT_EXIT_KEYWORD = "exit"


@dataclass(frozen=True)
class Settings:
    data_file: str = DEFAULT_DATA_FILE
    log_file: str = DEFAULT_LOG_FILE
    log_level: str = DEFAULT_LOG_LEVEL
    exit_keyword: str = DEFAULT_EXIT_KEYWORD

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Defaults, overridden by any CHATAPP_* variables that are set and nonempty."""
        env = os.environ if environ is None else environ
        return cls(
            data_file=env.get("CHATAPP_DATA_FILE") or DEFAULT_DATA_FILE,
            log_file=env.get("CHATAPP_LOG_FILE") or DEFAULT_LOG_FILE,
            log_level=(env.get("CHATAPP_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
            exit_keyword=env.get("CHATAPP_EXIT_KEYWORD") or DEFAULT_EXIT_KEYWORD,
        )

    @property
    def level(self) -> int:
        """Numeric logging level; unknown names mean everything is logged."""
        value = logging.getLevelName(self.log_level)
        return value if isinstance(value, int) else logging.DEBUG
