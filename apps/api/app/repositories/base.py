"""Persistence contracts for users and posts."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from app.schemas.user import UserRole


class StoreError(Exception):
    """Raised when the backing store fails for reasons callers cannot act on."""


class DuplicateEmailError(StoreError):
    """Raised when a user with the same email already exists."""

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__("A user with this email already exists")


@dataclass(slots=True)
class UserRecord:
    id: str
    email: str
    username: str
    password_hash: str
    role: UserRole
    created_at: datetime


@dataclass(slots=True)
class PostRecord:
    id: str
    title: str
    content: str
    author_id: str
    created_at: datetime
    updated_at: datetime
    published: bool = False


class CredentialStore(ABC):
    @abstractmethod
    def find_user_by_email(self, email: str) -> UserRecord | None: ...

    @abstractmethod
    def find_user_by_id(self, user_id: str) -> UserRecord | None: ...

    @abstractmethod
    def create_user(
        self,
        *,
        email: str,
        username: str,
        password_hash: str,
        role: UserRole = UserRole.USER,
    ) -> UserRecord:
        """Insert a user; raise ``DuplicateEmailError`` if the email is taken."""


class PostStore(ABC):
    @abstractmethod
    def create_post(self, *, title: str, content: str, author_id: str) -> PostRecord: ...

    @abstractmethod
    def find_post(self, post_id: str) -> PostRecord | None: ...

    @abstractmethod
    def list_published_posts(self) -> Sequence[PostRecord]: ...

    @abstractmethod
    def list_posts_by_author(self, author_id: str) -> Sequence[PostRecord]: ...

    @abstractmethod
    def save_post(self, post: PostRecord) -> PostRecord:
        """Persist every mutable field of ``post``; saving twice is a no-op."""

    @abstractmethod
    def delete_post(self, post: PostRecord) -> None: ...


__all__ = [
    "CredentialStore",
    "DuplicateEmailError",
    "PostRecord",
    "PostStore",
    "StoreError",
    "UserRecord",
]
