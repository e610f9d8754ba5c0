class ChatAppError(Exception):
    """Base class for every error the chat app raises on purpose."""


class AccountError(ChatAppError, ValueError):
    """A register/login step was rejected. The message is user-facing."""

    default_message = "Account operation failed."

    def __init__(self, message: str = ""):
        super().__init__(message or self.default_message)


class InvalidEmailFormat(AccountError):
    default_message = "Invalid email format. Please enter a valid email address."


class InvalidUsernameFormat(AccountError):
    default_message = "Invalid username format. Please enter a valid username."


class DuplicateEmail(AccountError):
    default_message = "User with this email already exists. Please choose another email."


class UnknownEmail(AccountError):
    default_message = "User with this email does not exist. Please register first."


class UsernameMismatch(AccountError):
    default_message = "Incorrect username. Please try again."


class PersistenceError(ChatAppError):
    """Reading or writing the user data file failed."""


class PersistenceLoadFailure(PersistenceError):
    pass


class PersistenceSaveFailure(PersistenceError):
    pass
