# counterparties/admin.py

from django.contrib import admin

from counterparties.models import Customer, MoneyBox, MoneyBoxTransaction, Supplier


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("name", "phone", "current_balance", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "phone", "email")
    readonly_fields = ("current_balance", "created_at", "updated_at")


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ("name", "phone", "current_balance", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "phone", "email")
    readonly_fields = ("current_balance", "created_at", "updated_at")


@admin.register(MoneyBox)
class MoneyBoxAdmin(admin.ModelAdmin):
    list_display = ("name", "balance", "is_active")
    readonly_fields = ("balance", "created_at", "updated_at")


@admin.register(MoneyBoxTransaction)
class MoneyBoxTransactionAdmin(admin.ModelAdmin):
    list_display = ("created_at", "money_box", "transaction_type", "amount", "balance_after", "reference_type")
    list_filter = ("transaction_type", "money_box")
    search_fields = ("reference_id", "notes")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
