"""
======================================================
PATH: products/migrations/0001_initial.py
======================================================
MIGRATION: CREATE Product, StockMovement (ledger), StockBalance (projection)
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("stocks", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                ("name", models.CharField(max_length=255, db_index=True)),
                ("sku", models.CharField(max_length=128, null=True, blank=True, db_index=True)),
                ("barcode", models.CharField(max_length=128, null=True, blank=True, db_index=True)),
                ("unit", models.CharField(max_length=32, default="piece")),
                ("units_per_box", models.PositiveIntegerField(default=1)),
                ("purchase_price", models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))),
                ("selling_price", models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))),
                ("current_stock", models.IntegerField(default=0)),
                ("unlocated_stock", models.IntegerField(default=0)),
                ("min_stock", models.PositiveIntegerField(default=0)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "stock",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="products",
                        to="stocks.stock",
                    ),
                ),
            ],
            options={
                "ordering": ["name"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("sku",),
                        condition=models.Q(sku__isnull=False) & ~models.Q(sku=""),
                        name="uniq_product_sku_when_present",
                    ),
                    models.UniqueConstraint(
                        fields=("barcode",),
                        condition=models.Q(barcode__isnull=False) & ~models.Q(barcode=""),
                        name="uniq_product_barcode_when_present",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="StockMovement",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                (
                    "movement_type",
                    models.CharField(
                        max_length=16,
                        choices=[
                            ("purchase", "Purchase"),
                            ("sale", "Sale"),
                            ("adjustment", "Adjustment"),
                            ("return", "Return"),
                            ("transfer", "Transfer"),
                            ("initial", "Initial Stock"),
                        ],
                    ),
                ),
                ("quantity", models.PositiveIntegerField()),
                ("unit_cost", models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))),
                ("total_value", models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))),
                (
                    "reference_type",
                    models.CharField(
                        max_length=32,
                        null=True,
                        blank=True,
                        choices=[
                            ("sale", "Sale Bill"),
                            ("purchase", "Purchase Bill"),
                            ("sale_return", "Sale Return"),
                            ("purchase_return", "Purchase Return"),
                            ("adjustment", "Adjustment"),
                            ("transfer", "Transfer"),
                            ("initial", "Initial Stock"),
                        ],
                    ),
                ),
                ("reference_id", models.CharField(max_length=64, null=True, blank=True, db_index=True)),
                ("reference_number", models.CharField(max_length=100, null=True, blank=True)),
                ("movement_date", models.DateTimeField(default=django.utils.timezone.now)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="stock_movements",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "from_stock",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="outgoing_movements",
                        to="stocks.stock",
                    ),
                ),
                (
                    "to_stock",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="incoming_movements",
                        to="stocks.stock",
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stock_movements",
                        to="products.product",
                    ),
                ),
                (
                    "reversal_of",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="reversed_by",
                        to="products.stockmovement",
                    ),
                ),
            ],
            options={
                "ordering": ["-movement_date", "-created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(quantity__gt=0),
                        name="stock_movement_quantity_gt_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(from_stock__isnull=False) | models.Q(to_stock__isnull=False),
                        name="stock_movement_has_location",
                    ),
                ],
                "indexes": [
                    models.Index(fields=["movement_type"], name="movement_type_idx"),
                    models.Index(fields=["product", "movement_date"], name="movement_product_date_idx"),
                    models.Index(fields=["from_stock", "movement_date"], name="movement_from_date_idx"),
                    models.Index(fields=["to_stock", "movement_date"], name="movement_to_date_idx"),
                    models.Index(fields=["reference_type", "reference_id"], name="movement_reference_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="StockBalance",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quantity", models.IntegerField(default=0)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="balances",
                        to="products.product",
                    ),
                ),
                (
                    "stock",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="balances",
                        to="stocks.stock",
                    ),
                ),
            ],
            options={
                "ordering": ["product_id", "stock_id"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("product", "stock"),
                        name="uniq_stock_balance_product_stock",
                    ),
                ],
            },
        ),
    ]
