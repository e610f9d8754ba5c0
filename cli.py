"""
Command-line interface for the chat app.

Text-based menu for:
- User registration (email + username)
- Login by re-entering the username for an email
- Chatting: every line typed is stored in the user's own record
- Exit, which saves the user store

Everything shown to the user goes through the "chatapp" logger.
"""

import enum
import logging
from typing import Callable, Optional, Tuple

from accounts.errors import (
    AccountError,
    DuplicateEmail,
    InvalidEmailFormat,
    InvalidUsernameFormat,
    UnknownEmail,
)
from accounts.manager import UserStore
from accounts.models import ChatMessage, UserRecord
from accounts.validators import validate_email, validate_username

logger = logging.getLogger("chatapp.cli")

MENU_TEXT = "1. Register\n2. Login\n3. Exit"


class State(enum.Enum):
    MAIN_MENU = "main_menu"
    REGISTERING = "registering"
    LOGGING_IN = "logging_in"
    CHATTING = "chatting"
    TERMINATED = "terminated"


MENU_CHOICES = {"1": 1, "2": 2, "3": 3}


def parse_choice(line: str) -> Optional[int]:
    """Menu choice as an int, or None for anything but a plain 1, 2 or 3."""
    return MENU_CHOICES.get(line.strip())


class SessionController:
    """
    Drives the register / login / chat menu over a UserStore.

    Form failures abort straight back to the main menu with a warning; there is
    no retry in place. Only EOFError from `input_fn` escapes run().
    """

    def __init__(
        self,
        store: UserStore,
        input_fn: Optional[Callable[[], str]] = None,
        exit_keyword: str = "exit",
    ):
        self.store = store
        self.input_fn = input_fn or input
        self.exit_keyword = exit_keyword
        self.state = State.MAIN_MENU
        self.current_email: Optional[str] = None
        self.current_user: Optional[UserRecord] = None

    def _read_line(self, prompt: str) -> str:
        logger.info(prompt)
        return self.input_fn().rstrip("\r\n")

    # ------------------------------------------------------------------
    # States
    # ------------------------------------------------------------------

    def handle_main_menu(self) -> State:
        choice = parse_choice(self._read_line(MENU_TEXT))
        if choice == 1:
            return State.REGISTERING
        if choice == 2:
            return State.LOGGING_IN
        if choice == 3:
            return State.TERMINATED
        logger.warning("Invalid choice. Please try again.")
        return State.MAIN_MENU

    def handle_register(self) -> State:
        try:
            email = self._read_line("Enter your email address:")
            if not validate_email(email):
                raise InvalidEmailFormat()
            if self.store.exists(email):
                raise DuplicateEmail()

            username = self._read_line("Enter your username:")
            if not validate_username(username):
                raise InvalidUsernameFormat()

            self.store.register(email, username)
        except AccountError as e:
            logger.warning(str(e))
            return State.MAIN_MENU

        logger.info("Registration successful!")
        logger.info("You can now log in.")
        return State.MAIN_MENU

    def handle_login(self) -> State:
        try:
            email, user = self._login_form()
        except AccountError as e:
            logger.warning(str(e))
            return State.MAIN_MENU

        self.current_email = email
        self.current_user = user
        logger.info("Login successful!")
        logger.info(f"Welcome back, {user.username}!")
        return State.CHATTING

    def _login_form(self) -> Tuple[str, UserRecord]:
        email = self._read_line("Enter your email address:")
        if not validate_email(email):
            raise InvalidEmailFormat()
        if not self.store.exists(email):
            raise UnknownEmail()
        username = self._read_line("Enter your username:")
        return email, self.store.authenticate(email, username)

    def handle_chat(self) -> State:
        logger.info("Chatting...")
        while True:
            text = self._read_line(f"Enter your message (type '{self.exit_keyword}' to exit chat):")
            if text.lower() == self.exit_keyword.lower():
                break
            message = ChatMessage.new(self.current_user.username, text)
            self.store.append_message(self.current_email, message)
            logger.info(f"Message sent at {message.timestamp.isoformat()}")

        self.current_email = None
        self.current_user = None
        return State.MAIN_MENU

    def handle_terminate(self) -> int:
        self.store.save()
        logger.info("Goodbye!")
        return 0

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    def step(self) -> State:
        """Run the current state once and move to the next one."""
        handlers = {
            State.MAIN_MENU: self.handle_main_menu,
            State.REGISTERING: self.handle_register,
            State.LOGGING_IN: self.handle_login,
            State.CHATTING: self.handle_chat,
        }
        self.state = handlers[self.state]()
        return self.state

    def run(self) -> int:
        """Loop until the user picks Exit. Returns the process exit status."""
        logger.info("Welcome to the Chat App!")
        while self.state is not State.TERMINATED:
            self.step()
        return self.handle_terminate()
