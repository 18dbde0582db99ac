"""Human-readable document numbers: ``PREFIX-MM/YY/NNNN``.

The serial restarts every month. The next serial is the highest one already
stored in the (prefix, month, year) scope plus one, so numbers typed in by
hand are respected.

Allocation reads, the insert writes. Two transactions can read the same
maximum; the unique ``document_id`` column turns that into an IntegrityError
and ``create_numbered`` allocates once more before giving up.
"""

import datetime
import logging
import re

from django.apps import apps
from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models.functions import Length
from django.utils import timezone
from django.utils.dateparse import parse_date

from core.exceptions import DocumentNumberConflict

logger = logging.getLogger(__name__)

DOCUMENT_PREFIXES = {
    "invoice": "FC",           # Facture client
    "estimate": "DV",          # Devis
    "purchase_order": "BC",    # Bon de commande
    "delivery_note": "BL",     # Bon de livraison
    "credit_note": "AV",       # Avoir
    "statement": "RL",         # Relevé
    "purchase_invoice": "FA",  # Facture achat
    "divers": "DIV",           # Sortie divers
    "prelevement": "PRL",      # Prélèvement
}

# model label + extra filter narrowing the scope inside a shared table
DOCUMENT_STORAGE = {
    "invoice": ("documents.SalesInvoice", {}),
    "estimate": ("documents.Estimate", {}),
    "purchase_order": ("documents.PurchaseOrder", {}),
    "delivery_note": ("documents.DeliveryNote", {"document_type": "delivery_note"}),
    "credit_note": ("documents.CreditNote", {}),
    "statement": ("documents.Statement", {}),
    "purchase_invoice": ("documents.PurchaseInvoice", {}),
    "divers": ("documents.DeliveryNote", {"document_type": "divers"}),
    "prelevement": ("documents.Prelevement", {}),
}


def _as_date(value):
    if value is None:
        return timezone.localdate()
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    parsed = parse_date(str(value))
    if parsed is None:
        raise ValueError(f"Invalid document date: {value!r}")
    return parsed


def document_prefix(doc_type: str) -> str:
    try:
        return DOCUMENT_PREFIXES[doc_type]
    except KeyError:
        raise ValueError(f"Unknown document type: {doc_type}") from None


def document_storage(doc_type: str):
    """Return (model class, scope filter) for a document type."""
    document_prefix(doc_type)
    try:
        label, scope = DOCUMENT_STORAGE[doc_type]
    except KeyError:
        raise ValueError(f"No storage mapped for document type: {doc_type}") from None
    return apps.get_model(label), dict(scope)


def scope_base(doc_type: str, date) -> str:
    """``PREFIX-MM/YY/`` for the document's month."""
    d = _as_date(date)
    return f"{document_prefix(doc_type)}-{d.month:02d}/{d.year % 100:02d}/"


def parse_serial(document_id: str):
    """Serial part of ``PREFIX-MM/YY/NNNN`` as int, None if malformed."""
    parts = (document_id or "").split("/")
    if len(parts) != 3:
        return None
    try:
        return int(parts[2])
    except ValueError:
        return None


def is_document_number(doc_type: str, document_id: str) -> bool:
    """True for ``PREFIX-MM/YY/N...`` with this type's prefix and a numeric serial."""
    pattern = rf"{re.escape(document_prefix(doc_type))}-(0[1-9]|1[0-2])/\d{{2}}/\d+"
    return re.fullmatch(pattern, document_id or "") is not None


def allocate_document_number(doc_type: str, date=None) -> str:
    """Allocate the next document number for the type's (month, year) scope.

    Call inside the transaction that inserts the document.
    """
    model, scope = document_storage(doc_type)
    base = scope_base(doc_type, date)

    # Longest first, then descending: the numeric maximum even past 9999.
    last = (
        model.objects
        .filter(document_id__regex=rf"^{re.escape(base)}\d+$", **scope)
        .order_by(Length("document_id").desc(), "-document_id")
        .values_list("document_id", flat=True)
        .first()
    )

    next_serial = 1
    if last:
        last_serial = parse_serial(last)
        if last_serial is not None:
            next_serial = last_serial + 1

    width = getattr(settings, "DOCUMENT_NUMBER_SERIAL_WIDTH", 4)
    return f"{base}{str(next_serial).zfill(width)}"


def create_numbered(doc_type: str, date, create, *, document_id=None):
    """Run ``create(number)`` with a freshly allocated number.

    ``create`` must insert the row holding the number. A duplicate number is
    retried once with a new allocation. A caller-supplied ``document_id`` is
    never replaced: a duplicate fails right away.
    """
    model, _ = document_storage(doc_type)
    attempts = 1 if document_id else 2

    number = document_id
    for attempt in range(attempts):
        if not document_id:
            number = allocate_document_number(doc_type, date)
        try:
            with transaction.atomic():
                return create(number)
        except IntegrityError:
            if not model.objects.filter(document_id=number).exists():
                raise
            logger.warning("Document number %s already taken (attempt %s)", number, attempt + 1)

    raise DocumentNumberConflict(f"Could not allocate a unique {doc_type} number (last tried {number}).")
