from typing import Optional

from moviecatalog.services.session_store import Principal, SessionStore
from moviecatalog.utils.errors import Forbidden, Unauthenticated


class AuthorizationGuard:
    """Policy checks over a SessionStore: authenticated vs admin-only"""

    def __init__(self, store: SessionStore):
        self.store = store

    def resolve(self, token: Optional[str]) -> Optional[Principal]:
        return self.store.resolve(token)

    def is_authenticated(self, token: Optional[str]) -> bool:
        return self.resolve(token) is not None

    def is_admin(self, token: Optional[str]) -> bool:
        principal = self.resolve(token)
        return principal is not None and principal.is_admin

    def require_authenticated(self, token: Optional[str]) -> Principal:
        principal = self.resolve(token)
        if principal is None:
            raise Unauthenticated("Not authenticated")
        return principal

    def require_admin(self, token: Optional[str]) -> Principal:
        # 401 for a missing session, 403 for a non-admin one
        principal = self.require_authenticated(token)
        if not principal.is_admin:
            raise Forbidden("Admin access required")
        return principal
