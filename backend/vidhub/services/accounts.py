# vidhub/services/accounts.py
"""
Credential store over the `users` table.

Identifiers are normalised (trimmed, lower-cased) on the way in so lookups are
case-insensitive. Password hashing happens only inside `save`, and only when a
new plaintext password is handed to it.
"""
from __future__ import annotations

from urllib.parse import quote_plus

from sqlalchemy import or_
from sqlalchemy.orm import Session

from vidhub.core.security import hash_password, verify_password
from vidhub.models.user import User


def normalize_identifier(value: str | None) -> str:
    return (value or "").strip().lower()


def default_avatar_url(name: str) -> str:
    return f"https://ui-avatars.com/api/?name={quote_plus(name)}&background=random"


def find_by_email_or_username(
    db: Session,
    *,
    email: str | None = None,
    username: str | None = None,
) -> list[User]:
    """
    Every account whose email OR username matches. At most two rows: one per field.
    """
    clauses = []
    email = normalize_identifier(email)
    username = normalize_identifier(username)
    if email:
        clauses.append(User.email == email)
    if username:
        clauses.append(User.username == username)
    if not clauses:
        return []
    return db.query(User).filter(or_(*clauses)).order_by(User.id.asc()).all()


def find_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == normalize_identifier(email)).first()


def find_by_username(db: Session, username: str) -> User | None:
    return db.query(User).filter(User.username == normalize_identifier(username)).first()


def find_by_id(db: Session, user_id: int) -> User | None:
    return db.query(User).filter(User.id == user_id).first()


def create(
    db: Session,
    *,
    name: str,
    email: str,
    username: str,
    password: str,
    profile_image: str | None = None,
) -> User:
    """
    Builds an unverified account and persists it through `save` so the password
    goes through the same hash-on-write path as every later change.
    """
    user = User(
        name=name.strip(),
        email=normalize_identifier(email),
        username=normalize_identifier(username),
        profile_image=profile_image or default_avatar_url(name.strip()),
        is_verified=False,
    )
    return save(db, user, password=password, commit=False)


def save(db: Session, user: User, password: str | None = None, *, commit: bool = True) -> User:
    if password is not None:
        user.password_hash = hash_password(password)
    db.add(user)
    if commit:
        db.commit()
        db.refresh(user)
    else:
        db.flush()
    return user


def compare_password(plain: str, password_hash: str | None) -> bool:
    return verify_password(plain, password_hash)
