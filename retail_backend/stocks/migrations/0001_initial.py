"""
======================================================
PATH: stocks/migrations/0001_initial.py
======================================================
MIGRATION: CREATE Stock (inventory locations)
"""

from __future__ import annotations

import uuid

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Stock",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                ("code", models.CharField(max_length=50, unique=True, db_index=True)),
                ("name", models.CharField(max_length=255)),
                ("address", models.TextField()),
                ("manager_name", models.CharField(max_length=255, blank=True)),
                ("phone", models.CharField(max_length=50, blank=True)),
                ("email", models.EmailField(max_length=254, blank=True)),
                (
                    "capacity",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Maximum units this location can hold. 0 = unlimited.",
                    ),
                ),
                ("current_capacity_used", models.IntegerField(default=0)),
                ("is_main", models.BooleanField(default=False)),
                ("is_active", models.BooleanField(default=True)),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_stocks",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-is_main", "name"],
                "constraints": [
                    models.CheckConstraint(condition=~models.Q(code=""), name="stock_code_not_blank"),
                ],
            },
        ),
    ]
