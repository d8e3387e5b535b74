"""
======================================================
PATH: bills/migrations/0001_initial.py
======================================================
MIGRATION: CREATE Bill, BillItem, PaymentVoucher
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone

PAYMENT_METHODS = [
    ("cash", "Cash"),
    ("card", "Card"),
    ("bank_transfer", "Bank Transfer"),
    ("check", "Check"),
    ("credit", "Credit"),
]


def _money(**kwargs):
    return models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"), **kwargs)


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("counterparties", "0001_initial"),
        ("products", "0001_initial"),
        ("stocks", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Bill",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                (
                    "kind",
                    models.CharField(
                        max_length=16,
                        db_index=True,
                        choices=[("sale", "Sale"), ("purchase", "Purchase"), ("return", "Return")],
                    ),
                ),
                (
                    "number",
                    models.CharField(
                        max_length=64,
                        unique=True,
                        help_text="Invoice / return number (generated when not supplied)",
                    ),
                ),
                ("invoice_date", models.DateField(default=django.utils.timezone.localdate)),
                ("due_date", models.DateField(null=True, blank=True)),
                (
                    "discount_type",
                    models.CharField(
                        max_length=16,
                        default="fixed",
                        choices=[("fixed", "Fixed"), ("percentage", "Percentage")],
                    ),
                ),
                ("discount", _money()),
                ("tax_rate", models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))),
                ("subtotal", _money()),
                ("discount_amount", _money()),
                ("tax_amount", _money()),
                ("net_amount", _money()),
                ("paid_amount", _money()),
                ("remaining_amount", _money()),
                ("payment_method", models.CharField(max_length=32, default="cash", choices=PAYMENT_METHODS)),
                (
                    "payment_status",
                    models.CharField(
                        max_length=16,
                        default="unpaid",
                        db_index=True,
                        choices=[("paid", "Paid"), ("partial", "Partially Paid"), ("unpaid", "Unpaid")],
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        max_length=24,
                        default="completed",
                        db_index=True,
                        choices=[
                            ("completed", "Completed"),
                            ("pending", "Pending"),
                            ("cancelled", "Cancelled"),
                            ("returned", "Returned"),
                            ("partially_returned", "Partially Returned"),
                        ],
                    ),
                ),
                ("reason", models.CharField(max_length=255, blank=True, default="")),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="bills",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bills",
                        to="counterparties.customer",
                    ),
                ),
                (
                    "supplier",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bills",
                        to="counterparties.supplier",
                    ),
                ),
                (
                    "money_box",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bills",
                        to="counterparties.moneybox",
                    ),
                ),
                (
                    "original_bill",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="returns",
                        to="bills.bill",
                    ),
                ),
            ],
            options={
                "ordering": ["-invoice_date", "-created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(paid_amount__gte=Decimal("0.00")),
                        name="bill_paid_amount_non_negative",
                    ),
                    models.CheckConstraint(
                        condition=~models.Q(kind="return") | models.Q(original_bill__isnull=False),
                        name="bill_return_has_original",
                    ),
                ],
                "indexes": [
                    models.Index(fields=["kind", "invoice_date"], name="bill_kind_date_idx"),
                    models.Index(fields=["customer", "kind"], name="bill_customer_kind_idx"),
                    models.Index(fields=["supplier", "kind"], name="bill_supplier_kind_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="BillItem",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                ("quantity", models.PositiveIntegerField()),
                ("price", models.DecimalField(max_digits=14, decimal_places=2)),
                ("discount_percent", models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))),
                ("tax_percent", models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))),
                ("line_subtotal", _money()),
                ("line_discount", _money()),
                ("line_tax", _money()),
                ("line_total", _money()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "bill",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="bills.bill",
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bill_items",
                        to="products.product",
                    ),
                ),
                (
                    "stock",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bill_items",
                        to="stocks.stock",
                    ),
                ),
                (
                    "original_item",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="return_items",
                        to="bills.billitem",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(quantity__gt=0), name="bill_item_quantity_gt_zero"),
                    models.CheckConstraint(
                        condition=models.Q(price__gte=Decimal("0.00")),
                        name="bill_item_price_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PaymentVoucher",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                ("bill_number", models.CharField(max_length=64, db_index=True)),
                (
                    "voucher_type",
                    models.CharField(max_length=16, choices=[("receipt", "Receipt"), ("payment", "Payment")]),
                ),
                ("amount", models.DecimalField(max_digits=14, decimal_places=2)),
                ("payment_method", models.CharField(max_length=32, choices=PAYMENT_METHODS)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "bill",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="vouchers",
                        to="bills.bill",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="payment_vouchers",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "money_box",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="vouchers",
                        to="counterparties.moneybox",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(amount__gt=0), name="payment_voucher_amount_gt_zero"),
                ],
            },
        ),
    ]
