import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from core.services.notifications import notify_low_stock
from inventory.models import Direction, StockMovement, WarehouseStock
from masterdata.models import Product, StockStatus

logger = logging.getLogger(__name__)


def signed_quantity(direction, quantity) -> Decimal:
    """Outbound lines take stock away, inbound lines add it."""
    quantity = abs(Decimal(quantity))
    return -quantity if direction == Direction.OUT else quantity


def _reference_fields(reference):
    if reference is None:
        return {}
    return {
        "reference_type": getattr(reference, "doc_type", reference._meta.model_name),
        "reference_id": reference.pk,
        "reference_number": getattr(reference, "document_id", "") or "",
    }


@transaction.atomic
def apply_movement(product, quantity, *, kind, warehouse=None, reference=None, description=""):
    """Apply a signed stock change and record it.

    Together, inside one transaction:
    1) lock the product row, add ``quantity`` to stock, recompute status
    2) upsert the (product, warehouse) row when a warehouse is given
    3) append a StockMovement with the unsigned quantity and the signed delta

    A product landing on low_stock triggers a (debounced) notification.
    Returns the StockMovement.
    """
    quantity = Decimal(quantity)
    product_id = product.pk if isinstance(product, Product) else product

    # Lock before compute-then-write so concurrent documents don't lose updates
    product = Product.objects.select_for_update().get(pk=product_id)
    product.stock = product.stock + quantity
    product.last_movement = timezone.localdate()
    product.save(update_fields=["stock", "last_movement"])

    if warehouse is not None:
        ws, _ = WarehouseStock.objects.select_for_update().get_or_create(product=product, warehouse=warehouse)
        ws.quantity = ws.quantity + quantity
        ws.save(update_fields=["quantity", "last_updated"])

    movement = StockMovement.objects.create(
        product=product,
        warehouse=warehouse,
        kind=kind,
        quantity=abs(quantity),
        delta=quantity,
        description=description[:255],
        **_reference_fields(reference),
    )
    logger.debug("Stock %s %s for %s (now %s)", kind, quantity, product.sku, product.stock)

    if product.status == StockStatus.LOW_STOCK and product.min_stock > 0:
        notify_low_stock(product, reference=movement.reference_number)

    return movement


def revert_movement(product, quantity, *, warehouse=None, reference=None, description=""):
    """Undo a previously applied ``quantity``.

    Stock and warehouse stock end where they were before the apply. The log
    keeps both rows; the reversal is booked as a correction.
    """
    return apply_movement(
        product,
        -Decimal(quantity),
        kind=StockMovement.Kind.CORRECTION,
        warehouse=warehouse,
        reference=reference,
        description=description,
    )


@transaction.atomic
def adjust_stock(product, quantity, *, warehouse=None, description="Manual stock adjustment"):
    """Set on-hand quantity by booking the difference as an adjustment.

    With a warehouse the target is that warehouse's quantity, otherwise the
    product total. Returns the movement, or None when nothing changes.
    """
    quantity = Decimal(quantity)
    product = Product.objects.select_for_update().get(pk=product.pk)

    if warehouse is not None:
        current = (
            WarehouseStock.objects
            .filter(product=product, warehouse=warehouse)
            .values_list("quantity", flat=True)
            .first()
        ) or Decimal("0")
    else:
        current = product.stock

    delta = quantity - current
    if delta == 0:
        return None

    return apply_movement(product, delta, kind=StockMovement.Kind.ADJUSTMENT, warehouse=warehouse,
                          description=description)


def warehouse_stock_total(product) -> Decimal:
    total = WarehouseStock.objects.filter(product=product).aggregate(t=Sum("quantity"))["t"]
    return total or Decimal("0")


def stock_drift(product) -> Decimal:
    """Product.stock minus the sum of its warehouse rows.

    Only reported. Stock moved without a warehouse legitimately widens the gap,
    so nothing here reconciles it.
    """
    product = Product.objects.get(pk=product.pk)
    return product.stock - warehouse_stock_total(product)
