# products/management/commands/reconcile_stock_ledger.py

from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from caching.router import get_invalidation_router
from products.models import Product
from products.services.stock_ledger import StockLedger


class Command(BaseCommand):
    help = (
        "Re-fold the stock movement log and compare it with the materialized "
        "per-location balances. --fix rewrites drifted balances from the log."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--product",
            dest="product_id",
            help="Only reconcile one product (UUID).",
        )
        parser.add_argument(
            "--fix",
            action="store_true",
            help="Rewrite drifted balances, product aggregates and capacity usage from the log.",
        )
        parser.add_argument(
            "--strict",
            action="store_true",
            help="Fail (non-zero exit) if any drift is found (ignored with --fix).",
        )

    def handle(self, *args, **options):
        product = None
        if options.get("product_id"):
            product = Product.objects.filter(id=options["product_id"]).first()
            if product is None:
                raise CommandError(f"Product not found: {options['product_id']}")

        fix = bool(options.get("fix"))
        ledger = StockLedger(router=get_invalidation_router() if fix else None)
        drifts = ledger.reconcile(product, fix=fix)

        if not drifts:
            self.stdout.write(self.style.SUCCESS("OK: stock balances match the movement log."))
            return

        for d in drifts:
            self.stdout.write(
                f"DRIFT product={d.product_id} stock={d.stock_id} "
                f"expected={d.expected} recorded={d.recorded}"
            )

        if fix:
            self.stdout.write(self.style.SUCCESS(f"Repaired {len(drifts)} balance(s)."))
            return

        self.stderr.write(self.style.WARNING(f"{len(drifts)} balance(s) drifted. Re-run with --fix to repair."))
        if options.get("strict"):
            raise CommandError("Stock ledger drift detected")
