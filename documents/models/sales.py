from django.db import models
from django_fsm import FSMField, transition

from documents.models.base import BaseDocument, BaseLine, PaymentTermsMixin, VatTotalsMixin


class SalesInvoice(BaseDocument, VatTotalsMixin, PaymentTermsMixin):
    """Facture client.

    Becoming ``paid`` derives the treasury payment; leaving ``paid`` (or being
    deleted) reverses it. The transitions only move the state; the document
    coordinator performs the ledger work around them.
    """

    doc_type = "invoice"

    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        SENT = "sent", "Sent"
        PAID = "paid", "Paid"
        CANCELLED = "cancelled", "Cancelled"

    status = FSMField(default=Status.DRAFT, choices=Status.choices, protected=True)

    client = models.ForeignKey("masterdata.Contact", on_delete=models.PROTECT, related_name="sales_invoices")
    payment_warehouse = models.ForeignKey("masterdata.Warehouse", null=True, blank=True, on_delete=models.PROTECT,
                                          related_name="+", help_text="Till receiving cash when no bank account is set")

    @property
    def is_settled(self) -> bool:
        return self.status == self.Status.PAID

    @transition(field=status, source=Status.DRAFT, target=Status.SENT)
    def send(self):
        pass

    @transition(field=status, source=[Status.DRAFT, Status.SENT], target=Status.PAID)
    def mark_paid(self):
        self.amount_paid = self.total

    @transition(field=status, source=Status.PAID, target=Status.SENT)
    def mark_unpaid(self):
        self.amount_paid = 0

    @transition(field=status, source=[Status.DRAFT, Status.SENT], target=Status.CANCELLED)
    def cancel(self):
        pass


class SalesInvoiceLine(BaseLine):
    document = models.ForeignKey(SalesInvoice, on_delete=models.CASCADE, related_name="lines")


class Estimate(BaseDocument, VatTotalsMixin):
    """Devis. Moves neither stock nor money."""

    doc_type = "estimate"

    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        SENT = "sent", "Sent"
        ACCEPTED = "accepted", "Accepted"
        REJECTED = "rejected", "Rejected"
        CANCELLED = "cancelled", "Cancelled"

    status = FSMField(default=Status.DRAFT, choices=Status.choices, protected=True)
    client = models.ForeignKey("masterdata.Contact", on_delete=models.PROTECT, related_name="estimates")
    valid_until = models.DateField(null=True, blank=True)

    @transition(field=status, source=Status.DRAFT, target=Status.SENT)
    def send(self):
        pass

    @transition(field=status, source=Status.SENT, target=Status.ACCEPTED)
    def accept(self):
        pass

    @transition(field=status, source=Status.SENT, target=Status.REJECTED)
    def reject(self):
        pass

    @transition(field=status, source=[Status.DRAFT, Status.SENT], target=Status.CANCELLED)
    def cancel(self):
        pass


class EstimateLine(BaseLine):
    document = models.ForeignKey(Estimate, on_delete=models.CASCADE, related_name="lines")


class CreditNote(BaseDocument, VatTotalsMixin):
    """Avoir, optionally tied to the invoice it credits."""

    doc_type = "credit_note"

    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        SENT = "sent", "Sent"
        CANCELLED = "cancelled", "Cancelled"

    status = FSMField(default=Status.DRAFT, choices=Status.choices, protected=True)
    client = models.ForeignKey("masterdata.Contact", on_delete=models.PROTECT, related_name="credit_notes")
    invoice = models.ForeignKey(SalesInvoice, null=True, blank=True, on_delete=models.SET_NULL,
                                related_name="credit_notes")

    @transition(field=status, source=Status.DRAFT, target=Status.SENT)
    def send(self):
        pass

    @transition(field=status, source=[Status.DRAFT, Status.SENT], target=Status.CANCELLED)
    def cancel(self):
        pass


class CreditNoteLine(BaseLine):
    document = models.ForeignKey(CreditNote, on_delete=models.CASCADE, related_name="lines")


class Prelevement(BaseDocument):
    """Prélèvement (withdrawal) document."""

    doc_type = "prelevement"

    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        SENT = "sent", "Sent"
        CANCELLED = "cancelled", "Cancelled"

    status = FSMField(default=Status.DRAFT, choices=Status.choices, protected=True)
    client = models.ForeignKey("masterdata.Contact", null=True, blank=True, on_delete=models.PROTECT,
                               related_name="prelevements")

    @transition(field=status, source=Status.DRAFT, target=Status.SENT)
    def send(self):
        pass

    @transition(field=status, source=[Status.DRAFT, Status.SENT], target=Status.CANCELLED)
    def cancel(self):
        pass


class PrelevementLine(BaseLine):
    document = models.ForeignKey(Prelevement, on_delete=models.CASCADE, related_name="lines")


class Statement(BaseDocument):
    """Relevé sent to a client for a period."""

    doc_type = "statement"

    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        SENT = "sent", "Sent"
        CANCELLED = "cancelled", "Cancelled"

    status = FSMField(default=Status.DRAFT, choices=Status.choices, protected=True)
    client = models.ForeignKey("masterdata.Contact", on_delete=models.PROTECT, related_name="statements")
    period_start = models.DateField(null=True, blank=True)
    period_end = models.DateField(null=True, blank=True)

    @transition(field=status, source=Status.DRAFT, target=Status.SENT)
    def send(self):
        pass

    @transition(field=status, source=[Status.DRAFT, Status.SENT], target=Status.CANCELLED)
    def cancel(self):
        pass


class StatementLine(BaseLine):
    document = models.ForeignKey(Statement, on_delete=models.CASCADE, related_name="lines")
