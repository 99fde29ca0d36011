"""Password hashing utilities.

Learn: Uses bcrypt for password hashing. bcrypt automatically handles
salting; the work factor comes from settings (12 in production, lower in
tests). Passwords are truncated to 72 bytes (bcrypt's limit).

Both calls are CPU-bound, so async callers run them in a worker thread.
"""

import bcrypt


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a password with bcrypt. Produces hashes starting with "$2b$"."""
    pw_bytes = password.encode("utf-8")[:72]
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time check of a password against its bcrypt hash."""
    try:
        pw_bytes = password.encode("utf-8")[:72]
        return bcrypt.checkpw(pw_bytes, password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False
