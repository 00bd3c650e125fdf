"""Authorization rules for posts and profile access.

``decide`` is a pure function of (principal, action, resource); it never
touches a store. Callers look the resource up first so that a missing post
fails as not-found before any ownership question is asked, then pass the
result through ``enforce`` to turn a denial into the matching API error.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from app.errors import ApiError, forbidden, not_found, unauthenticated
from app.schemas.auth import AuthPrincipal


class Action(str, Enum):
    READ = "read"
    LIST = "list"
    CREATE = "create"
    UPDATE = "update"
    PUBLISH = "publish"
    DELETE = "delete"
    LIST_OWN = "list_own"
    VIEW_PROFILE = "view_profile"


class DenyReason(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    NOT_OWNER = "not owner"
    NOT_VISIBLE = "not visible"


class OwnedResource(Protocol):
    author_id: str
    published: bool


@dataclass(frozen=True, slots=True)
class Decision:
    allowed: bool
    reason: DenyReason | None = None

    @classmethod
    def allow(cls) -> Decision:
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: DenyReason) -> Decision:
        return cls(allowed=False, reason=reason)


_PUBLIC_ACTIONS = frozenset({Action.READ, Action.LIST})
_OWNER_ACTIONS = frozenset({Action.UPDATE, Action.PUBLISH, Action.DELETE})
_AUTHENTICATED_ACTIONS = frozenset({Action.CREATE, Action.LIST_OWN, Action.VIEW_PROFILE})


def is_owner(principal: AuthPrincipal | None, resource: OwnedResource) -> bool:
    return principal is not None and resource.author_id == principal.user_id


def decide(
    principal: AuthPrincipal | None,
    action: Action,
    resource: OwnedResource | None = None,
) -> Decision:
    """Return whether ``principal`` may perform ``action`` on ``resource``."""
    if action in _PUBLIC_ACTIONS:
        # Drafts are only readable by their author.
        if action is Action.READ and resource is not None and not resource.published:
            if not is_owner(principal, resource):
                return Decision.deny(DenyReason.NOT_VISIBLE)
        return Decision.allow()

    if principal is None:
        return Decision.deny(DenyReason.UNAUTHENTICATED)

    if action in _AUTHENTICATED_ACTIONS:
        return Decision.allow()

    if action in _OWNER_ACTIONS:
        if resource is None:
            raise ValueError(f"{action.value} requires a resource to check ownership against")
        if not is_owner(principal, resource):
            return Decision.deny(DenyReason.NOT_OWNER)
        return Decision.allow()

    raise ValueError(f"Unsupported action: {action!r}")


def require_principal(principal: AuthPrincipal | None, action: Action) -> AuthPrincipal:
    """Authorize a principal-only action and return the authenticated principal."""
    enforce(decide(principal, action), action=action)
    if principal is None:
        raise unauthenticated()
    return principal


def enforce(decision: Decision, *, action: Action | None = None) -> None:
    """Raise the API error matching a denial; return silently when allowed."""
    if decision.allowed:
        return
    raise _denial_error(decision.reason, action)


def _denial_error(reason: DenyReason | None, action: Action | None) -> ApiError:
    if reason is DenyReason.UNAUTHENTICATED:
        return unauthenticated()
    if reason is DenyReason.NOT_VISIBLE:
        return not_found()
    verb = action.value if action is not None else "modify"
    return forbidden(f"You can only {verb} your own posts")


__all__ = ["Action", "Decision", "DenyReason", "decide", "enforce", "is_owner", "require_principal"]
