import logging
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from core.models import Notification

logger = logging.getLogger(__name__)


def notify(title, message, *, level=Notification.Level.INFO, key="", action_url="", action_label="",
           debounce_seconds=None):
    """Write a notification without ever failing the caller's transaction.

    The insert runs in its own savepoint. Any error rolls back only the
    savepoint, gets logged and is swallowed.

    With ``key`` and ``debounce_seconds``, a notification is skipped when an
    unread one with the same key was written within that window. This is
    best-effort: two concurrent transactions can both pass the check.

    Returns the Notification, or None when skipped or failed.
    """
    try:
        with transaction.atomic():
            if key and debounce_seconds:
                since = timezone.now() - timedelta(seconds=debounce_seconds)
                recent = Notification.objects.filter(key=key, read=False, created_at__gte=since)
                if recent.exists():
                    logger.debug("Notification %s debounced", key)
                    return None

            return Notification.objects.create(
                title=title,
                message=message,
                level=level,
                key=key,
                action_url=action_url,
                action_label=action_label,
            )
    except Exception:
        logger.exception("Could not write notification %r", title)
        return None


def notify_low_stock(product, *, reference=""):
    after = f" after {reference}" if reference else ""
    return notify(
        "Low Stock Alert",
        f'Product "{product.name}" is running low{after}. Current: {product.stock}, Min: {product.min_stock}',
        level=Notification.Level.WARNING,
        key=f"low_stock:{product.pk}",
        action_url=f"/inventory/products/{product.pk}",
        action_label="View Product",
        debounce_seconds=getattr(settings, "LOW_STOCK_NOTIFICATION_DEBOUNCE", 300),
    )


def notify_payment_received(invoice):
    return notify(
        "Payment Received",
        f"Invoice {invoice.document_id} has been marked as PAID.",
        level=Notification.Level.SUCCESS,
        key=f"payment:{invoice.doc_type}:{invoice.pk}",
        action_url=f"/sales/invoices/{invoice.pk}",
        action_label="View Invoice",
    )
