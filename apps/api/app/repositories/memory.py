"""In-memory repositories used by the API scaffold and tests."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from threading import Lock
from uuid import uuid4

from app.repositories.base import (
    CredentialStore,
    DuplicateEmailError,
    PostRecord,
    PostStore,
    StoreError,
    UserRecord,
)
from app.schemas.user import UserRole


@dataclass
class InMemoryStore(CredentialStore, PostStore):
    """Simple, deterministic persistence layer for scaffolding and tests.

    Records handed out are copies; callers persist changes with
    ``save_post``. Writes are serialized by a single lock.
    """

    users: dict[str, UserRecord] = field(default_factory=dict)
    user_ids_by_email: dict[str, str] = field(default_factory=dict)
    posts: dict[str, PostRecord] = field(default_factory=dict)
    user_write_count: int = 0
    post_write_count: int = 0
    write_failure_message: str | None = None
    _lock: Lock = field(default_factory=Lock, repr=False, compare=False)

    def fail_next_write(self, message: str = "Injected store write failure") -> None:
        """Make the next write operation raise ``StoreError``."""
        self.write_failure_message = message

    def _maybe_raise_write_failure(self) -> None:
        if self.write_failure_message is None:
            return
        message = self.write_failure_message
        self.write_failure_message = None
        raise StoreError(message)

    # Users

    def find_user_by_email(self, email: str) -> UserRecord | None:
        user_id = self.user_ids_by_email.get(email)
        return self.find_user_by_id(user_id) if user_id else None

    def find_user_by_id(self, user_id: str) -> UserRecord | None:
        user = self.users.get(user_id)
        return replace(user) if user is not None else None

    def create_user(
        self,
        *,
        email: str,
        username: str,
        password_hash: str,
        role: UserRole = UserRole.USER,
    ) -> UserRecord:
        with self._lock:
            if email in self.user_ids_by_email:
                raise DuplicateEmailError(email)
            self._maybe_raise_write_failure()

            user = UserRecord(
                id=str(uuid4()),
                email=email,
                username=username,
                password_hash=password_hash,
                role=role,
                created_at=datetime.now(UTC),
            )
            self.users[user.id] = user
            self.user_ids_by_email[email] = user.id
            self.user_write_count += 1
            return replace(user)

    # Posts

    def create_post(self, *, title: str, content: str, author_id: str) -> PostRecord:
        with self._lock:
            self._maybe_raise_write_failure()
            now = datetime.now(UTC)
            post = PostRecord(
                id=str(uuid4()),
                title=title,
                content=content,
                author_id=author_id,
                created_at=now,
                updated_at=now,
            )
            self.posts[post.id] = post
            self.post_write_count += 1
            return replace(post)

    def find_post(self, post_id: str) -> PostRecord | None:
        post = self.posts.get(post_id)
        return replace(post) if post is not None else None

    def list_published_posts(self) -> list[PostRecord]:
        return self._sorted_copies(record for record in self.posts.values() if record.published)

    def list_posts_by_author(self, author_id: str) -> list[PostRecord]:
        return self._sorted_copies(record for record in self.posts.values() if record.author_id == author_id)

    def save_post(self, post: PostRecord) -> PostRecord:
        with self._lock:
            current = self.posts.get(post.id)
            if current is None:
                raise StoreError("Cannot save a post that does not exist")
            if current.author_id != post.author_id:
                raise StoreError("Post author is immutable")
            if (current.title, current.content, current.published) == (post.title, post.content, post.published):
                return replace(current)
            self._maybe_raise_write_failure()

            saved = replace(post, created_at=current.created_at, updated_at=datetime.now(UTC))
            self.posts[post.id] = saved
            self.post_write_count += 1
            return replace(saved)

    def delete_post(self, post: PostRecord) -> None:
        with self._lock:
            if post.id not in self.posts:
                return
            self._maybe_raise_write_failure()
            del self.posts[post.id]
            self.post_write_count += 1

    @staticmethod
    def _sorted_copies(records) -> list[PostRecord]:
        ordered = sorted(records, key=lambda record: record.created_at)
        return [replace(record) for record in ordered]
