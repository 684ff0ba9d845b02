"""Admin interface for accounts app."""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from accounts.models import CampusUser


@admin.register(CampusUser)
class CampusUserAdmin(UserAdmin):  # type: ignore[type-arg]
    list_display = ["username", "email", "get_display_name", "role", "is_active", "date_joined"]
    list_filter = ["role", "is_staff", "is_superuser", "is_active"]
    search_fields = ["username", "email", "first_name", "last_name", "preferred_name"]
    fieldsets = (
        *UserAdmin.fieldsets,  # type: ignore[misc]
        ("Campus", {"fields": ("role", "preferred_name")}),
    )

    @admin.display(description="Name")
    def get_display_name(self, obj: CampusUser) -> str:
        return obj.get_display_name()
