import re
import typing as t
import uuid

from django.contrib.auth.models import AbstractUser, UserManager
from django.db import models


class CampusUserQueryset(models.QuerySet["CampusUser"]):
    """Queryset for CampusUser."""


class CampusUserManager(UserManager["CampusUser"]):
    def get_queryset(self) -> CampusUserQueryset:
        """Get queryset for CampusUser."""
        return CampusUserQueryset(self.model)


class CampusUser(AbstractUser):
    class Role(models.TextChoices):
        STUDENT = "student", "Student"
        ORGANIZER = "organizer", "Organizer"
        ADMIN = "admin", "Admin"

        @property
        def rank(self) -> int:
            """Position in the role hierarchy; higher roles include the lower ones."""
            return list(type(self)).index(self)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.STUDENT, db_index=True)
    preferred_name = models.CharField(max_length=255, blank=True, help_text="Preferred name")

    objects = CampusUserManager()  # type: ignore[misc]

    class Meta:
        ordering = ["username"]

    @property
    def display_name(self) -> str:
        """Display name."""
        return self.get_display_name()

    @property
    def is_admin(self) -> bool:
        return self.has_role_at_least(self.Role.ADMIN)

    def get_display_name(self) -> str:
        """Returns the user's preferred name, or their full name as a fallback."""
        return (
            self.preferred_name or self.get_full_name() or re.sub(r"(\W|_)+", " ", self.username.split("@")[0]).title()
        )

    def has_role_at_least(self, role: Role) -> bool:
        """Whether the user's role is ``role`` or above. Superusers count as admins."""
        if self.is_superuser:
            return True
        return self.Role(self.role).rank >= role.rank
