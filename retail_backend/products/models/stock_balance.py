# products/models/stock_balance.py

from django.db import models

from stocks.models import Stock

from .product import Product


class StockBalance(models.Model):
    """
    Materialized running balance per (product, location).

    Written ONLY by products.services.stock_ledger in the same transaction as
    the StockMovement insert it reflects. It always equals the ledger fold
    for its pair; reconcile_stock_ledger verifies (and can rebuild) that.
    """

    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="balances")
    stock = models.ForeignKey(Stock, on_delete=models.CASCADE, related_name="balances")

    quantity = models.IntegerField(default=0)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["product_id", "stock_id"]
        constraints = [
            models.UniqueConstraint(
                fields=["product", "stock"],
                name="uniq_stock_balance_product_stock",
            ),
        ]

    def __str__(self):
        return f"{self.product_id}@{self.stock_id} = {self.quantity}"
