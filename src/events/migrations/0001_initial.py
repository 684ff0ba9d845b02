import uuid

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Event",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True, db_index=True)),
                ("title", models.CharField(db_index=True, max_length=255)),
                ("slug", models.SlugField(max_length=255, unique=True)),
                ("description", models.TextField()),
                ("short_description", models.CharField(blank=True, default="", max_length=500)),
                (
                    "event_type",
                    models.CharField(
                        choices=[
                            ("academic", "Academic"),
                            ("social", "Social"),
                            ("career", "Career"),
                            ("sports", "Sports"),
                            ("volunteering", "Volunteering"),
                            ("cultural", "Cultural"),
                            ("workshop", "Workshop"),
                            ("conference", "Conference"),
                            ("other", "Other"),
                        ],
                        db_index=True,
                        default="other",
                        max_length=20,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("pending", "Pending"),
                            ("approved", "Approved"),
                            ("rejected", "Rejected"),
                            ("cancelled", "Cancelled"),
                            ("completed", "Completed"),
                        ],
                        db_index=True,
                        default="draft",
                        max_length=10,
                    ),
                ),
                ("start", models.DateTimeField(db_index=True)),
                ("end", models.DateTimeField(db_index=True)),
                ("registration_deadline", models.DateTimeField(blank=True, null=True)),
                ("location", models.CharField(max_length=255)),
                ("address", models.CharField(blank=True, default="", max_length=500)),
                ("is_online", models.BooleanField(default=False)),
                ("online_link", models.URLField(blank=True, default="", max_length=500)),
                (
                    "max_participants",
                    models.PositiveIntegerField(
                        blank=True, null=True, validators=[django.core.validators.MinValueValidator(1)]
                    ),
                ),
                ("current_participants", models.PositiveIntegerField(default=0, editable=False)),
                ("tags", models.JSONField(blank=True, default=list)),
                ("requirements", models.TextField(blank=True, default="")),
                ("target_audience", models.CharField(blank=True, default="", max_length=255)),
                ("is_featured", models.BooleanField(default=False)),
                ("approved_at", models.DateTimeField(blank=True, null=True)),
                ("rejection_reason", models.TextField(blank=True, default="")),
                (
                    "approved_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="approved_events",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "organizer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="organized_events",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["start"],
                "indexes": [
                    models.Index(fields=["status", "start"], name="idx_event_status_start"),
                    models.Index(fields=["organizer", "status"], name="idx_event_organizer_status"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(end__gt=models.F("start")), name="event_end_after_start"),
                    models.CheckConstraint(
                        condition=models.Q(registration_deadline__isnull=True)
                        | models.Q(registration_deadline__lt=models.F("start")),
                        name="event_deadline_before_start",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(max_participants__isnull=True) | models.Q(max_participants__gte=1),
                        name="event_max_participants_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(current_participants__gte=0), name="event_participants_non_negative"
                    ),
                    models.CheckConstraint(
                        condition=models.Q(max_participants__isnull=True)
                        | models.Q(current_participants__lte=models.F("max_participants")),
                        name="event_participants_within_capacity",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Registration",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True, db_index=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("confirmed", "Confirmed"),
                            ("cancelled", "Cancelled"),
                            ("attended", "Attended"),
                        ],
                        db_index=True,
                        default="confirmed",
                        max_length=10,
                    ),
                ),
                ("ticket_number", models.CharField(editable=False, max_length=50, unique=True)),
                ("check_in_token", models.CharField(editable=False, max_length=500, unique=True)),
                ("checked_in_at", models.DateTimeField(blank=True, null=True)),
                ("notes", models.TextField(blank=True, default="")),
                (
                    "checked_in_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="performed_check_ins",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="registrations",
                        to="events.event",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="registrations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["event", "status"], name="idx_registration_event_status")],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status", "cancelled"), _negated=True),
                        fields=("event", "user"),
                        name="unique_active_registration_per_user",
                    ),
                ],
            },
        ),
    ]
