from __future__ import annotations

import logging
from typing import Optional

from possuite.domain.errors import AuthorizationError, ValidationError
from possuite.domain.models import AdminUser
from possuite.domain.results import returns_result
from possuite.repositories import ledger_store as keys
from possuite.security import hash_secret, verify_secret

log = logging.getLogger(__name__)


def _validate_secret_strength(secret: str, *, min_len: int) -> None:
    if len(secret) < min_len:
        raise ValidationError(f"Password must have at least {min_len} characters.")


class AuthService:
    """Back-office admin session."""

    def __init__(self, store, min_password_length: int = 6):
        self.store = store
        self.min_password_length = min_password_length

    def list_users(self) -> list[AdminUser]:
        return [AdminUser.from_dict(row) for row in self.store.get(keys.ADMIN_USERS)]

    @returns_result
    def login(self, username: str, password: str) -> AdminUser:
        username_clean = (username or "").strip()
        if not username_clean:
            raise AuthorizationError("Username is required.")

        user = next((u for u in self.list_users() if u.username == username_clean), None)
        if not user or not verify_secret(user.password_hash, password or ""):
            log.warning("admin_login_failed username=%s", username_clean)
            raise AuthorizationError("Invalid username or password")

        self.store.set_value(keys.CURRENT_USER, user.id)
        log.info("admin_login username=%s", username_clean)
        return user

    def logout(self) -> None:
        self.store.remove(keys.CURRENT_USER)

    def current_user(self) -> Optional[AdminUser]:
        user_id = self.store.get_value(keys.CURRENT_USER)
        if not user_id:
            return None
        return next((u for u in self.list_users() if u.id == user_id), None)

    def is_authenticated(self) -> bool:
        return self.current_user() is not None

    @returns_result
    def change_password(self, current_password: str, new_password: str, confirm_password: str) -> None:
        user = self.current_user()
        if not user:
            raise AuthorizationError("Not logged in.")
        if not verify_secret(user.password_hash, current_password or ""):
            raise AuthorizationError("Current password is incorrect.")
        _validate_secret_strength(new_password or "", min_len=self.min_password_length)
        if new_password != confirm_password:
            raise ValidationError("Password confirmation does not match.")
        if new_password == current_password:
            raise ValidationError("New password must be different from the current password.")

        rows = self.store.get(keys.ADMIN_USERS)
        for row in rows:
            if row["id"] == user.id:
                row["password_hash"] = hash_secret(new_password)
        self.store.put(keys.ADMIN_USERS, rows)
