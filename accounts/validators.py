import re

# local part: dot-separated runs of [a-zA-Z0-9_+&*-]; domain: one or more labels then a 2-7 letter TLD
_EMAIL_RE = re.compile(
    r"[a-zA-Z0-9_+&*-]+(?:\.[a-zA-Z0-9_+&*-]+)*@(?:[a-zA-Z0-9-]+\.)+[a-zA-Z]{2,7}"
)
_USERNAME_RE = re.compile(r"[a-zA-Z0-9]+")


def validate_email(email: str) -> bool:
    """True if the whole string is a syntactically valid email address."""
    if not isinstance(email, str):
        return False
    return _EMAIL_RE.fullmatch(email) is not None


def validate_username(username: str) -> bool:
    """True if the username is nonempty and only ASCII letters and digits."""
    if not isinstance(username, str):
        return False
    return _USERNAME_RE.fullmatch(username) is not None
