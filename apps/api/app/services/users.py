"""User profile service layer."""

from app.domain.policy import Action, require_principal
from app.errors import not_found
from app.repositories.base import CredentialStore
from app.schemas.auth import AuthPrincipal
from app.schemas.user import UserProfile


class UserService:
    def __init__(self, store: CredentialStore) -> None:
        self._store = store

    def get_profile(self, *, principal: AuthPrincipal | None) -> UserProfile:
        caller = require_principal(principal, Action.VIEW_PROFILE)

        record = self._store.find_user_by_id(caller.user_id)
        if record is None:
            raise not_found()

        return UserProfile(
            id=record.id,
            email=record.email,
            username=record.username,
            role=record.role,
            created_at=record.created_at,
        )
