# review_core/directory.py
"""
Resolves users to workflow roles.

Superusers resolve to ADMIN when they hold no explicit role.
"""

from __future__ import annotations

from typing import Optional

from django.contrib.auth import get_user_model

from review_core.models import UserRole
from review_core.workflows import Role, normalize_role
from review_core.workflows.errors import ValidationFailed


class UserDirectory:
    def role_of(self, user) -> Optional[Role]:
        if user is None:
            return None

        raw = (
            UserRole.objects.filter(user_id=getattr(user, "pk", user))
            .values_list("role", flat=True)
            .first()
        )
        if raw:
            return normalize_role(raw)

        if getattr(user, "is_superuser", False):
            return Role.ADMIN
        return None

    def assign_role(self, user, role) -> UserRole:
        obj, _ = UserRole.objects.update_or_create(
            user=user,
            defaults={"role": normalize_role(role).value},
        )
        return obj

    def users_with_role(self, role):
        User = get_user_model()
        return User.objects.filter(review_role__role=normalize_role(role).value, is_active=True)

    def require_role(self, user, role, *, field: str) -> None:
        """
        Assignment-time check that a task reference carries the stage role.
        """
        expected = normalize_role(role)
        actual = self.role_of(user)
        if actual != expected:
            raise ValidationFailed(field, f"User must have role '{expected.value}' (has '{actual or 'none'}').")


default_directory = UserDirectory()
