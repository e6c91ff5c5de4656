"""Password hashing, verification and strength policy (bcrypt)."""

import re

import bcrypt

# At least 8 characters with one lowercase, one uppercase, one digit and one symbol.
_PASSWORD_POLICY = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{8,}$")

PASSWORD_POLICY_MESSAGE = (
    "Password must be at least 8 characters long, include 1 uppercase, "
    "1 lowercase, 1 number, and 1 special character"
)


def password_meets_policy(password: str) -> bool:
    return bool(_PASSWORD_POLICY.match(password))


def hash_password(password: str) -> str:
    """Hash a plain-text password, returning the bcrypt hash string."""
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Return True if ``plain_password`` matches ``hashed_password``."""
    return bcrypt.checkpw(
        plain_password.encode("utf-8"),
        hashed_password.encode("utf-8"),
    )
