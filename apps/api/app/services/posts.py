"""Post service layer.

Every operation resolves the target post first (so a missing post is a 404
regardless of who asks), then runs the authorization policy, and only then
touches the store.
"""

import logging

from app.core.logging_safety import safe_log_identifier
from app.domain.policy import Action, Decision, decide, enforce, require_principal
from app.errors import not_found
from app.repositories.base import PostRecord, PostStore
from app.schemas.auth import AuthPrincipal
from app.schemas.post import Post

logger = logging.getLogger(__name__)


class PostService:
    def __init__(self, store: PostStore) -> None:
        self._store = store

    def create_post(self, *, principal: AuthPrincipal | None, title: str, content: str) -> Post:
        self._authorize(principal, Action.CREATE)
        author = require_principal(principal, Action.CREATE)

        record = self._store.create_post(title=title, content=content, author_id=author.user_id)
        logger.info(
            "post.created post_id=%s author_id=%s",
            safe_log_identifier(record.id, prefix="poid"),
            safe_log_identifier(author.user_id, prefix="pid"),
        )
        return self._to_post(record)

    def list_posts(self) -> list[Post]:
        self._authorize(None, Action.LIST)
        return [self._to_post(record) for record in self._store.list_published_posts()]

    def get_post(self, *, principal: AuthPrincipal | None, post_id: str) -> Post:
        record = self._load(post_id)
        self._authorize(principal, Action.READ, record)
        return self._to_post(record)

    def update_post(
        self,
        *,
        principal: AuthPrincipal | None,
        post_id: str,
        title: str,
        content: str,
    ) -> Post:
        record = self._load(post_id)
        self._authorize(principal, Action.UPDATE, record)

        record.title = title
        record.content = content
        return self._to_post(self._store.save_post(record))

    def publish_post(self, *, principal: AuthPrincipal | None, post_id: str) -> Post:
        record = self._load(post_id)
        self._authorize(principal, Action.PUBLISH, record)

        record.published = True
        saved = self._store.save_post(record)
        logger.info("post.published post_id=%s", safe_log_identifier(saved.id, prefix="poid"))
        return self._to_post(saved)

    def delete_post(self, *, principal: AuthPrincipal | None, post_id: str) -> None:
        record = self._load(post_id)
        self._authorize(principal, Action.DELETE, record)

        self._store.delete_post(record)
        logger.info("post.deleted post_id=%s", safe_log_identifier(record.id, prefix="poid"))

    def list_my_posts(self, *, principal: AuthPrincipal | None) -> list[Post]:
        self._authorize(principal, Action.LIST_OWN)
        owner = require_principal(principal, Action.LIST_OWN)

        return [self._to_post(record) for record in self._store.list_posts_by_author(owner.user_id)]

    def _load(self, post_id: str) -> PostRecord:
        record = self._store.find_post(post_id)
        if record is None:
            raise not_found()
        return record

    @staticmethod
    def _authorize(
        principal: AuthPrincipal | None,
        action: Action,
        record: PostRecord | None = None,
    ) -> Decision:
        decision = decide(principal, action, record)
        if not decision.allowed:
            logger.info(
                "post.denied action=%s reason=%s principal_id=%s post_id=%s",
                action.value,
                decision.reason.value if decision.reason else None,
                safe_log_identifier(principal.user_id if principal else None, prefix="pid"),
                safe_log_identifier(record.id if record else None, prefix="poid"),
            )
        enforce(decision, action=action)
        return decision

    @staticmethod
    def _to_post(record: PostRecord) -> Post:
        return Post(
            id=record.id,
            title=record.title,
            content=record.content,
            published=record.published,
            author_id=record.author_id,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )
