"""Credential handling.

Passwords are stored and compared in plaintext. This is a known weakness of
the training tool; every caller goes through these two functions so a hashed
scheme can replace them without touching the routes or crud code.
"""
import hmac


def hash_password(password: str) -> str:
    """Return the value to persist for ``password`` (currently the password itself)."""
    return password


def verify_password(plain_password: str, stored_password: str) -> bool:
    """Exact, case-sensitive comparison against the stored value."""
    if plain_password is None or stored_password is None:
        return False
    return hmac.compare_digest(plain_password.encode("utf-8"), stored_password.encode("utf-8"))
