from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional

from possuite.domain.errors import NotFoundError, ValidationError
from possuite.domain.models import StaffMember, iso, new_id
from possuite.domain.results import returns_result
from possuite.repositories import ledger_store as keys
from possuite.security import hash_secret, verify_secret

log = logging.getLogger(__name__)

PROFILE_FIELDS = ("business_id", "name", "email", "phone", "is_active")


class StaffService:
    """Cashier or manager accounts, one collection per role."""

    def __init__(self, store, role: str, clock: Callable[[], datetime] = datetime.now):
        if role not in ("cashier", "manager"):
            raise ValueError(f"Unsupported staff role: {role}")
        self.store = store
        self.role = role
        self.collection = keys.CASHIERS if role == "cashier" else keys.MANAGERS
        self.clock = clock

    def list_members(self) -> list[StaffMember]:
        return [StaffMember.from_dict(row) for row in self.store.get(self.collection)]

    def list_active(self) -> list[StaffMember]:
        return [m for m in self.list_members() if m.is_active]

    def find_by_id(self, member_id: str) -> Optional[StaffMember]:
        return next((m for m in self.list_members() if m.id == member_id), None)

    def find_by_business_id(self, business_id: str) -> Optional[StaffMember]:
        return next((m for m in self.list_members() if m.business_id == business_id), None)

    def is_business_id_unique(self, business_id: str, exclude_id: Optional[str] = None) -> bool:
        return not any(m.business_id == business_id and m.id != exclude_id for m in self.list_members())

    @returns_result
    def add(
        self,
        business_id: str,
        name: str,
        email: str,
        password: str,
        phone: str = "",
        is_active: bool = True,
    ) -> StaffMember:
        business_id = (business_id or "").strip()
        if not business_id or not (name or "").strip() or not (email or "").strip() or not password:
            raise ValidationError("All fields are required")
        if not self.is_business_id_unique(business_id):
            raise ValidationError(f"{self.role.capitalize()} ID already exists")

        member = StaffMember(
            id=new_id(self.role),
            business_id=business_id,
            name=name.strip(),
            email=email.strip(),
            phone=phone.strip(),
            password_hash=hash_secret(password),
            role=self.role,
            is_active=bool(is_active),
            created_at=iso(self.clock()),
        )
        rows = self.store.get(self.collection)
        rows.append(member.to_dict())
        self.store.put(self.collection, rows)
        log.info("staff_added role=%s business_id=%s", self.role, business_id)
        return member

    @returns_result
    def update(self, member_id: str, password: Optional[str] = None, **changes) -> StaffMember:
        unknown = set(changes) - set(PROFILE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")
        if "business_id" in changes:
            changes["business_id"] = (changes["business_id"] or "").strip()
            if not changes["business_id"]:
                raise ValidationError(f"{self.role.capitalize()} ID is required.")
            if not self.is_business_id_unique(changes["business_id"], exclude_id=member_id):
                raise ValidationError(f"{self.role.capitalize()} ID already exists")
        if password is not None:
            if not password:
                raise ValidationError("Password cannot be empty")
            changes["password_hash"] = hash_secret(password)
        return self._write(member_id, **changes)

    @returns_result
    def delete(self, member_id: str) -> None:
        rows = self.store.get(self.collection)
        remaining = [row for row in rows if row["id"] != member_id]
        if len(remaining) == len(rows):
            raise NotFoundError(f"{self.role.capitalize()} not found")
        self.store.put(self.collection, remaining)
        log.info("staff_deleted role=%s id=%s", self.role, member_id)

    @returns_result
    def toggle_active(self, member_id: str) -> StaffMember:
        member = self.find_by_id(member_id)
        if not member:
            raise NotFoundError(f"{self.role.capitalize()} not found")
        return self._write(member_id, is_active=not member.is_active)

    @returns_result
    def assign_to_store(self, member_id: str, store_id: str, store_name: str) -> StaffMember:
        return self._write(member_id, assigned_store_id=store_id, assigned_store_name=store_name)

    @returns_result
    def remove_from_store(self, member_id: str) -> StaffMember:
        return self._write(member_id, assigned_store_id=None, assigned_store_name=None)

    def validate_login(self, business_id: str, password: str) -> Optional[StaffMember]:
        member = self.find_by_business_id(business_id)
        if not member or not member.is_active or not verify_secret(member.password_hash, password):
            log.info("staff_login_failed role=%s business_id=%s", self.role, business_id)
            return None
        return self._write(member.id, last_login=iso(self.clock()))

    def stats(self) -> dict[str, int]:
        members = self.list_members()
        active = sum(1 for m in members if m.is_active)
        return {"total": len(members), "active": active, "inactive": len(members) - active}

    def _write(self, member_id: str, **changes) -> StaffMember:
        rows = self.store.get(self.collection)
        index = next((i for i, row in enumerate(rows) if row["id"] == member_id), None)
        if index is None:
            raise NotFoundError(f"{self.role.capitalize()} not found")
        updated = replace(StaffMember.from_dict(rows[index]), **changes)
        rows[index] = updated.to_dict()
        self.store.put(self.collection, rows)
        return updated
