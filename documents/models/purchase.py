from django.db import models
from django_fsm import FSMField, transition

from documents.models.base import BaseDocument, BaseLine, PaymentTermsMixin, VatTotalsMixin


class PurchaseOrder(BaseDocument):
    """Bon de commande. Stock comes in when the order is received."""

    doc_type = "purchase_order"

    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        SENT = "sent", "Sent"
        RECEIVED = "received", "Received"
        CANCELLED = "cancelled", "Cancelled"

    status = FSMField(default=Status.DRAFT, choices=Status.choices, protected=True)

    supplier = models.ForeignKey("masterdata.Contact", on_delete=models.PROTECT, related_name="purchase_orders")
    warehouse = models.ForeignKey("masterdata.Warehouse", null=True, blank=True, on_delete=models.PROTECT,
                                  related_name="purchase_orders", help_text="Receiving warehouse")

    @transition(field=status, source=Status.DRAFT, target=Status.SENT)
    def send(self):
        pass

    @transition(field=status, source=[Status.DRAFT, Status.SENT], target=Status.RECEIVED)
    def receive(self):
        pass

    @transition(field=status, source=[Status.DRAFT, Status.SENT, Status.RECEIVED], target=Status.CANCELLED)
    def cancel(self):
        pass


class PurchaseOrderLine(BaseLine):
    document = models.ForeignKey(PurchaseOrder, on_delete=models.CASCADE, related_name="lines")


class PurchaseInvoice(BaseDocument, VatTotalsMixin, PaymentTermsMixin):
    """Facture achat. A paid purchase invoice takes money out of the bank account."""

    doc_type = "purchase_invoice"

    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        RECEIVED = "received", "Received"
        PAID = "paid", "Paid"
        CANCELLED = "cancelled", "Cancelled"

    status = FSMField(default=Status.DRAFT, choices=Status.choices, protected=True)

    supplier = models.ForeignKey("masterdata.Contact", on_delete=models.PROTECT, related_name="purchase_invoices")
    delivery_note = models.ForeignKey("documents.DeliveryNote", null=True, blank=True, on_delete=models.SET_NULL,
                                      related_name="purchase_invoices")
    attachment_url = models.URLField(max_length=512, blank=True, default="")

    @property
    def is_settled(self) -> bool:
        return self.status == self.Status.PAID

    @transition(field=status, source=Status.DRAFT, target=Status.RECEIVED)
    def receive(self):
        pass

    @transition(field=status, source=[Status.DRAFT, Status.RECEIVED], target=Status.PAID)
    def mark_paid(self):
        self.amount_paid = self.total

    @transition(field=status, source=Status.PAID, target=Status.RECEIVED)
    def mark_unpaid(self):
        self.amount_paid = 0

    @transition(field=status, source=[Status.DRAFT, Status.RECEIVED], target=Status.CANCELLED)
    def cancel(self):
        pass


class PurchaseInvoiceLine(BaseLine):
    document = models.ForeignKey(PurchaseInvoice, on_delete=models.CASCADE, related_name="lines")
