import uuid

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
            name="Notification",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True, db_index=True)),
                (
                    "notification_type",
                    models.CharField(
                        choices=[
                            ("event_reminder", "Event Reminder"),
                            ("event_update", "Event Update"),
                            ("event_cancelled", "Event Cancelled"),
                            ("registration_confirmed", "Registration Confirmed"),
                        ],
                        db_index=True,
                        help_text="Type of notification",
                        max_length=50,
                    ),
                ),
                (
                    "title",
                    models.CharField(blank=True, default="", help_text="Rendered notification title", max_length=255),
                ),
                ("body", models.TextField(blank=True, default="", help_text="Rendered notification body")),
                ("context", models.JSONField(blank=True, default=dict, help_text="Structured context data")),
                (
                    "read_at",
                    models.DateTimeField(blank=True, db_index=True, help_text="When the user read it", null=True),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="notifications",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Notification",
                "verbose_name_plural": "Notifications",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["user", "notification_type", "created_at"], name="notif_user_type_created_idx"),
                    models.Index(fields=["user", "read_at"], name="notif_user_read_idx"),
                ],
            },
        ),
    ]
