from django.contrib import admin

from inventory.models import StockMovement, WarehouseStock


@admin.register(WarehouseStock)
class WarehouseStockAdmin(admin.ModelAdmin):
    list_display = ("product", "warehouse", "quantity", "last_updated")
    list_filter = ("warehouse",)
    search_fields = ("product__sku", "product__name")
    readonly_fields = ("product", "warehouse", "quantity", "last_updated")

    def has_add_permission(self, request):
        return False


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = ("created_at", "product", "warehouse", "kind", "quantity", "delta", "reference_number")
    list_filter = ("kind", "warehouse", "reference_type")
    search_fields = ("product__sku", "reference_number", "description")

    # append-only
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
