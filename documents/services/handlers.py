"""Per-type ledger effects of documents.

A handler describes the stock or money effects of one document type.
``effect_state`` is a fingerprint of what the effects depend on, None while
the document has no live effects. The coordinator compares it before and
after an edit and only replays effects when it changed.
"""

from decimal import Decimal

from django.conf import settings

from core.services.notifications import notify_payment_received
from documents.forms.document_forms import (
    CreditNoteForm,
    DeliveryNoteForm,
    EstimateForm,
    PrelevementForm,
    PurchaseInvoiceForm,
    PurchaseOrderForm,
    SalesInvoiceForm,
    StatementForm,
)
from documents.models import (
    CreditNote,
    DeliveryNote,
    Estimate,
    Prelevement,
    PurchaseInvoice,
    PurchaseOrder,
    SalesInvoice,
    Statement,
    document_direction,
)
from inventory.models import Direction, StockMovement
from inventory.services.stock_ledger import apply_movement, revert_movement, signed_quantity
from treasury.models import TreasuryPayment
from treasury.services.payments import derive_and_create_payment, reverse_payment_for


class DocumentHandler:
    """Document type without ledger effects (estimates, credit notes...)."""

    model = None
    form_class = None
    has_vat = False

    def __init__(self, doc_type):
        self.doc_type = doc_type

    @property
    def line_model(self):
        return self.model._meta.get_field("lines").related_model

    def new_instance(self):
        return self.model()

    def initial_data(self):
        if self.has_vat:
            return {"vat_rate": getattr(settings, "DOCUMENT_VAT_RATE", Decimal("20.00"))}
        return {}

    def effect_state(self, doc, lines):
        return None

    def apply_effects(self, doc, lines):
        pass

    def revert_effects(self, doc, lines):
        pass

    def before_delete(self, doc):
        pass

    def status_changed(self, doc, previous):
        pass


class StockDocumentHandler(DocumentHandler):
    """Documents whose lines move stock through the stock ledger."""

    def is_active(self, doc):
        raise NotImplementedError

    def direction(self, doc):
        raise NotImplementedError

    def movement_kind(self, doc, direction):
        return StockMovement.Kind.OUT if direction == Direction.OUT else StockMovement.Kind.IN

    def describe(self, doc):
        return f"{doc._meta.verbose_name.capitalize()} #{doc.document_id}"

    def effect_state(self, doc, lines):
        if not self.is_active(doc):
            return None
        moved = sorted((line.product_id, Decimal(line.quantity)) for line in lines if line.product_id)
        return self.direction(doc), doc.warehouse_id, tuple(moved)

    def apply_effects(self, doc, lines):
        direction = self.direction(doc)
        kind = self.movement_kind(doc, direction)
        for line in lines:
            if not line.product_id:
                continue
            apply_movement(
                line.product_id,
                signed_quantity(direction, line.quantity),
                kind=kind,
                warehouse=doc.warehouse,
                reference=doc,
                description=self.describe(doc),
            )

    def revert_effects(self, doc, lines):
        # ``doc`` is the stored header, so this is the direction the stock
        # actually moved in, whatever the edit changes.
        direction = self.direction(doc)
        for line in lines:
            if not line.product_id:
                continue
            revert_movement(
                line.product_id,
                signed_quantity(direction, line.quantity),
                warehouse=doc.warehouse,
                reference=doc,
                description=f"Revert: {self.describe(doc)}",
            )


class DeliveryNoteHandler(StockDocumentHandler):
    model = DeliveryNote
    form_class = DeliveryNoteForm

    def new_instance(self):
        return DeliveryNote(document_type=self.doc_type)

    def is_active(self, doc):
        return doc.status != DeliveryNote.Status.CANCELLED

    def direction(self, doc):
        return document_direction(doc)

    def describe(self, doc):
        label = "Divers" if doc.document_type == DeliveryNote.DocumentType.DIVERS else "Bon de Livraison"
        return f"{label} #{doc.document_id}"


class PurchaseOrderHandler(StockDocumentHandler):
    model = PurchaseOrder
    form_class = PurchaseOrderForm

    def is_active(self, doc):
        return doc.status == PurchaseOrder.Status.RECEIVED

    def direction(self, doc):
        return Direction.IN

    def movement_kind(self, doc, direction):
        return StockMovement.Kind.PURCHASE_RECEIVED

    def describe(self, doc):
        return f"Stock added from Purchase Order {doc.document_id}"


class InvoiceHandler(DocumentHandler):
    """Invoices move money once paid, through payment derivation."""

    has_vat = True
    payment_type = None

    def effect_state(self, doc, lines):
        if not doc.is_settled:
            return None
        return doc.total, doc.payment_method, doc.bank_account_id, getattr(doc, "payment_warehouse_id", None)

    def apply_effects(self, doc, lines):
        derive_and_create_payment(doc, self.payment_type)

    def revert_effects(self, doc, lines):
        reverse_payment_for(doc, self.payment_type)

    def before_delete(self, doc):
        # a payment can only exist for a paid invoice, but never leave one behind
        reverse_payment_for(doc, self.payment_type)


class SalesInvoiceHandler(InvoiceHandler):
    model = SalesInvoice
    form_class = SalesInvoiceForm
    payment_type = TreasuryPayment.PaymentType.SALES

    def status_changed(self, doc, previous):
        if doc.status == SalesInvoice.Status.PAID:
            notify_payment_received(doc)


class PurchaseInvoiceHandler(InvoiceHandler):
    model = PurchaseInvoice
    form_class = PurchaseInvoiceForm
    payment_type = TreasuryPayment.PaymentType.PURCHASE


class EstimateHandler(DocumentHandler):
    model = Estimate
    form_class = EstimateForm
    has_vat = True


class CreditNoteHandler(DocumentHandler):
    model = CreditNote
    form_class = CreditNoteForm
    has_vat = True


class PrelevementHandler(DocumentHandler):
    model = Prelevement
    form_class = PrelevementForm


class StatementHandler(DocumentHandler):
    model = Statement
    form_class = StatementForm


HANDLERS = {
    "invoice": SalesInvoiceHandler("invoice"),
    "estimate": EstimateHandler("estimate"),
    "purchase_order": PurchaseOrderHandler("purchase_order"),
    "delivery_note": DeliveryNoteHandler("delivery_note"),
    "credit_note": CreditNoteHandler("credit_note"),
    "statement": StatementHandler("statement"),
    "purchase_invoice": PurchaseInvoiceHandler("purchase_invoice"),
    "divers": DeliveryNoteHandler("divers"),
    "prelevement": PrelevementHandler("prelevement"),
}


def get_handler(doc_type):
    try:
        return HANDLERS[doc_type]
    except KeyError:
        raise ValueError(f"Unknown document type: {doc_type}") from None
