"""Django admin for events, registrations, favorites and feedback."""

from django.contrib import admin
from django.db.models import QuerySet
from django.http import HttpRequest

from events.models import Event, EventFavorite, EventFeedback, Registration
from events.service import capacity_ledger


class RegistrationInline(admin.TabularInline):  # type: ignore[type-arg]
    model = Registration
    fk_name = "event"
    extra = 0
    can_delete = False
    fields = ["user", "status", "ticket_number", "checked_in_at"]
    readonly_fields = fields
    show_change_link = True

    def has_add_permission(self, request: HttpRequest, obj: Event | None = None) -> bool:
        return False


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    list_display = ["title", "organizer", "status", "event_type", "start", "current_participants", "max_participants"]
    list_filter = ["status", "event_type", "is_online", "is_featured"]
    search_fields = ["title", "slug", "location", "organizer__username", "organizer__email"]
    readonly_fields = ["id", "current_participants", "approved_at", "approved_by", "created_at", "updated_at"]
    autocomplete_fields = ["organizer"]
    date_hierarchy = "start"
    inlines = [RegistrationInline]
    actions = ["reconcile_participants"]

    @admin.action(description="Recompute participant counters")
    def reconcile_participants(self, request: HttpRequest, queryset: QuerySet[Event]) -> None:
        for event in queryset:
            capacity_ledger.reconcile(event.id)
        self.message_user(request, f"Reconciled {queryset.count()} event(s).")


@admin.register(Registration)
class RegistrationAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    list_display = ["ticket_number", "event", "user", "status", "checked_in_at", "created_at"]
    list_filter = ["status"]
    search_fields = ["ticket_number", "user__username", "user__email", "event__title"]
    readonly_fields = [
        "id",
        "event",
        "user",
        "status",
        "ticket_number",
        "check_in_token",
        "checked_in_at",
        "checked_in_by",
        "created_at",
        "updated_at",
    ]

    def has_add_permission(self, request: HttpRequest) -> bool:
        # Registrations go through the registration service so the counter stays right.
        return False


@admin.register(EventFavorite)
class EventFavoriteAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    list_display = ["event", "user", "created_at"]
    search_fields = ["event__title", "user__username", "user__email"]
    autocomplete_fields = ["event", "user"]


@admin.register(EventFeedback)
class EventFeedbackAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    list_display = ["event", "user", "rating", "is_anonymous", "created_at"]
    list_filter = ["rating", "is_anonymous"]
    search_fields = ["event__title", "user__username", "comment"]
    readonly_fields = ["id", "event", "user", "created_at", "updated_at"]
