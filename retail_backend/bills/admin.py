# bills/admin.py

from django.contrib import admin

from bills.models import Bill, BillItem, PaymentVoucher


class BillItemInline(admin.TabularInline):
    model = BillItem
    fk_name = "bill"
    extra = 0
    can_delete = False
    fields = ("product", "stock", "quantity", "price", "discount_percent", "tax_percent", "line_total", "original_item")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Bill)
class BillAdmin(admin.ModelAdmin):
    """
    Read-only: bills change only through BillingOrchestrator (movements,
    balances and cash must move together).
    """

    list_display = (
        "number",
        "kind",
        "invoice_date",
        "customer",
        "supplier",
        "net_amount",
        "paid_amount",
        "payment_status",
        "status",
    )
    list_filter = ("kind", "payment_status", "status", "invoice_date")
    search_fields = ("number", "customer__name", "supplier__name")
    ordering = ("-invoice_date",)
    inlines = [BillItemInline]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(PaymentVoucher)
class PaymentVoucherAdmin(admin.ModelAdmin):
    list_display = ("created_at", "bill_number", "voucher_type", "amount", "payment_method", "money_box")
    list_filter = ("voucher_type", "payment_method")
    search_fields = ("bill_number",)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
