from decimal import Decimal

from django.db import models


class Direction(models.TextChoices):
    """Which way a document moves stock."""

    IN = "in", "In"
    OUT = "out", "Out"


class WarehouseStock(models.Model):
    """On-hand quantity of one product in one warehouse.

    Created on the first movement into the warehouse. Nothing forces the sum
    over warehouses to equal Product.stock; see stock_ledger.stock_drift.
    """

    product = models.ForeignKey("masterdata.Product", on_delete=models.CASCADE, related_name="warehouse_stock")
    warehouse = models.ForeignKey("masterdata.Warehouse", on_delete=models.CASCADE, related_name="stock")

    quantity = models.DecimalField(max_digits=14, decimal_places=3, default=Decimal("0.000"))
    last_updated = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["product", "warehouse"], name="uniq_warehouse_stock_product_warehouse"),
        ]
        ordering = ["product_id", "warehouse_id"]

    def __str__(self):
        return f"{self.product} @ {self.warehouse}: {self.quantity}"


class StockMovement(models.Model):
    """Append-only audit trail for stock movements.

    ``quantity`` is unsigned; ``delta`` is the signed change that was applied
    to Product.stock. The originating document is referenced by type/id/number
    rather than by FK so the row outlives the document.
    """

    class Kind(models.TextChoices):
        IN = "in", "In"
        OUT = "out", "Out"
        ADJUSTMENT = "adjustment", "Adjustment"
        CORRECTION = "correction", "Correction"
        PURCHASE_RECEIVED = "purchase_received", "Purchase received"

    product = models.ForeignKey("masterdata.Product", on_delete=models.PROTECT, related_name="movements")
    warehouse = models.ForeignKey("masterdata.Warehouse", null=True, blank=True, on_delete=models.PROTECT,
                                  related_name="movements")

    kind = models.CharField(max_length=20, choices=Kind.choices)
    quantity = models.DecimalField(max_digits=14, decimal_places=3)
    delta = models.DecimalField(max_digits=14, decimal_places=3)

    reference_type = models.CharField(max_length=30, blank=True, default="")
    reference_id = models.BigIntegerField(null=True, blank=True)
    reference_number = models.CharField(max_length=40, blank=True, default="")

    description = models.CharField(max_length=255, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["product", "created_at"]),
            models.Index(fields=["reference_type", "reference_id"]),
        ]

    def __str__(self):
        return f"{self.get_kind_display()} {self.quantity} {self.product}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Stock movements are immutable.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Stock movements cannot be deleted.")
