# stratguru/utils/auth.py
"""
Password hashing and verification utilities.
Only bcrypt hashes are stored.
"""
import bcrypt


def hash_password(password: str) -> str:
    """Hash a password using bcrypt and return the hash as text."""
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Return True if the plain password matches the stored hash."""
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))
    except ValueError:
        return False
