# products/admin.py

from django.contrib import admin

from products.models import Product, StockBalance, StockMovement


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    """
    Master data only. current_stock / unlocated_stock / stock are maintained
    by the ledger and shown read-only.
    """

    list_display = (
        "name",
        "sku",
        "barcode",
        "selling_price",
        "current_stock",
        "stock",
        "is_low_stock",
        "is_active",
    )
    list_filter = ("is_active", "stock")
    search_fields = ("name", "sku", "barcode")
    ordering = ("name",)
    readonly_fields = ("current_stock", "unlocated_stock", "stock", "created_at", "updated_at")

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    """
    View-only ledger for audit visibility. Writes go through StockLedger.
    """

    list_display = (
        "movement_date",
        "movement_type",
        "product",
        "from_stock",
        "to_stock",
        "quantity",
        "reference_type",
        "reference_number",
        "reversal_of",
    )
    list_filter = ("movement_type", "reference_type", "movement_date")
    search_fields = ("product__name", "product__sku", "reference_number", "reference_id")
    ordering = ("-movement_date",)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(StockBalance)
class StockBalanceAdmin(admin.ModelAdmin):
    list_display = ("product", "stock", "quantity", "updated_at")
    list_filter = ("stock",)
    search_fields = ("product__name", "product__sku")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
