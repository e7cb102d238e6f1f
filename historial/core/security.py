# historial/core/security.py
import re

from passlib.context import CryptContext

from historial.core.config import settings

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)


def hash_password(raw: str) -> str:
    return pwd_context.hash(raw)


def verify_password(raw: str, hashed: str) -> bool:
    """
    Safe wrapper around passlib verify.
    A malformed stored hash counts as a failed check.
    """
    if not raw or not hashed:
        return False
    try:
        return pwd_context.verify(raw, hashed)
    except ValueError:
        return False


def password_problems(raw: str) -> list[str]:
    problems: list[str] = []
    if len(raw or "") < 6:
        problems.append("Password must be at least 6 characters")
    if not re.search(r"\d", raw or ""):
        problems.append("Password must contain a digit")
    if not re.search(r"[A-Z]", raw or ""):
        problems.append("Password must contain an uppercase letter")
    if not re.search(r"[a-z]", raw or ""):
        problems.append("Password must contain a lowercase letter")
    return problems
