from decimal import Decimal

from django.db import models


class StockStatus(models.TextChoices):
    IN_STOCK = "in_stock", "In stock"
    LOW_STOCK = "low_stock", "Low stock"
    OUT_OF_STOCK = "out_of_stock", "Out of stock"


def derive_stock_status(stock, min_stock) -> str:
    """Status is a pure function of (stock, min_stock).

    out_of_stock when stock <= 0, low_stock when a threshold is set and
    stock <= threshold, in_stock otherwise.
    """
    stock = stock or Decimal("0")
    min_stock = min_stock or Decimal("0")
    if stock <= 0:
        return StockStatus.OUT_OF_STOCK
    if min_stock > 0 and stock <= min_stock:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


class Product(models.Model):
    """Sellable/stockable product.

    ``stock`` is the on-hand total across all warehouses. It may go negative;
    that is kept as a signal instead of being rejected. Only the stock ledger
    (inventory.services.stock_ledger) should change it.
    """

    sku = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    category = models.CharField(max_length=120, blank=True, default="")
    unit = models.CharField(max_length=30, default="Piece")

    price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    stock = models.DecimalField(max_digits=14, decimal_places=3, default=Decimal("0.000"))
    min_stock = models.DecimalField(max_digits=14, decimal_places=3, default=Decimal("0.000"))
    status = models.CharField(max_length=20, choices=StockStatus.choices, default=StockStatus.OUT_OF_STOCK,
                              editable=False)

    last_movement = models.DateField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["sku"]

    def __str__(self):
        return f"{self.sku} {self.name}"

    def save(self, *args, **kwargs):
        self.status = derive_stock_status(self.stock, self.min_stock)
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "stock" in update_fields:
            kwargs["update_fields"] = {*update_fields, "status", "updated_at"}
        super().save(*args, **kwargs)
