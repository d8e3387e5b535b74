"""
======================================================
PATH: counterparties/migrations/0001_initial.py
======================================================
MIGRATION: CREATE Customer, Supplier, MoneyBox, MoneyBoxTransaction
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


def _party_fields():
    return [
        ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
        ("name", models.CharField(max_length=200)),
        ("phone", models.CharField(max_length=50, blank=True, default="")),
        ("email", models.EmailField(max_length=254, blank=True, default="")),
        ("address", models.TextField(blank=True, default="")),
        ("current_balance", models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))),
        ("is_active", models.BooleanField(default=True)),
        ("notes", models.TextField(blank=True, default="")),
        ("created_at", models.DateTimeField(auto_now_add=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
    ]


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Customer",
            fields=_party_fields(),
            options={
                "ordering": ["name"],
                "abstract": False,
                "indexes": [
                    models.Index(fields=["name"], name="customer_name_idx"),
                    models.Index(fields=["is_active"], name="customer_active_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Supplier",
            fields=_party_fields(),
            options={
                "ordering": ["name"],
                "abstract": False,
                "indexes": [
                    models.Index(fields=["name"], name="supplier_name_idx"),
                    models.Index(fields=["is_active"], name="supplier_active_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="MoneyBox",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                ("name", models.CharField(max_length=120, unique=True)),
                ("balance", models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))),
                ("is_active", models.BooleanField(default=True)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={"ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="MoneyBoxTransaction",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                (
                    "transaction_type",
                    models.CharField(
                        max_length=16,
                        choices=[("deposit", "Deposit"), ("withdrawal", "Withdrawal")],
                    ),
                ),
                ("amount", models.DecimalField(max_digits=14, decimal_places=2)),
                ("balance_after", models.DecimalField(max_digits=14, decimal_places=2)),
                ("reference_type", models.CharField(max_length=32, blank=True, default="")),
                ("reference_id", models.CharField(max_length=64, blank=True, default="", db_index=True)),
                ("notes", models.CharField(max_length=255, blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="money_box_transactions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "money_box",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transactions",
                        to="counterparties.moneybox",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(amount__gt=Decimal("0.00")),
                        name="money_box_transaction_amount_gt_zero",
                    ),
                ],
                "indexes": [
                    models.Index(fields=["money_box", "created_at"], name="money_box_tx_box_date_idx"),
                    models.Index(fields=["reference_type", "reference_id"], name="money_box_tx_reference_idx"),
                ],
            },
        ),
    ]
