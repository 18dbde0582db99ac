from django.contrib import admin

from inventory.services.stock_ledger import stock_drift
from masterdata.models import Contact, Product, Warehouse


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("sku", "name", "category", "stock", "min_stock", "status", "last_movement")
    list_filter = ("status", "category")
    search_fields = ("sku", "name")
    # stock only moves through the stock ledger
    readonly_fields = ("stock", "status", "last_movement", "updated_at", "drift")

    @admin.display(description="Unassigned to warehouses")
    def drift(self, obj):
        if obj.pk is None:
            return "-"
        return stock_drift(obj)


@admin.register(Warehouse)
class WarehouseAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "city", "is_active")
    list_filter = ("is_active",)
    search_fields = ("code", "name")


@admin.register(Contact)
class ContactAdmin(admin.ModelAdmin):
    list_display = ("name", "company", "contact_type", "city", "email", "phone")
    list_filter = ("contact_type", "city")
    search_fields = ("name", "company", "ice")
