# stocks/admin.py

from django.contrib import admin

from stocks.models import Stock


@admin.register(Stock)
class StockAdmin(admin.ModelAdmin):
    list_display = (
        "code",
        "name",
        "is_main",
        "is_active",
        "capacity",
        "current_capacity_used",
        "created_at",
    )
    list_filter = ("is_main", "is_active")
    search_fields = ("code", "name", "address")
    ordering = ("-is_main", "name")
    # Main-location switching and capacity usage are owned by the services.
    readonly_fields = ("is_main", "current_capacity_used", "created_at", "updated_at")

    def has_delete_permission(self, request, obj=None):
        return False
