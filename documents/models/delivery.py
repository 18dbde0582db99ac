from django.db import models
from django.db.models import Q
from django_fsm import FSMField, transition

from documents.models.base import BaseDocument, BaseLine
from inventory.models import Direction


def document_direction(header) -> str:
    """Outbound when the note has a client or is a "divers" exit, inbound otherwise.

    Pure function of the header. Evaluate it on the stored header to revert
    and on the edited header to apply; never reuse one result for both.
    """
    if header.client_id or header.document_type == DeliveryNote.DocumentType.DIVERS:
        return Direction.OUT
    return Direction.IN


class DeliveryNote(BaseDocument):
    """Bon de livraison, also used for miscellaneous ("divers") stock exits.

    Stock moves when the note is created and stays moved until it is
    cancelled or deleted.
    """

    class DocumentType(models.TextChoices):
        DELIVERY_NOTE = "delivery_note", "Delivery note"
        DIVERS = "divers", "Miscellaneous"

    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        DELIVERED = "delivered", "Delivered"
        CANCELLED = "cancelled", "Cancelled"

    document_type = models.CharField(max_length=20, choices=DocumentType.choices,
                                     default=DocumentType.DELIVERY_NOTE)
    status = FSMField(default=Status.DRAFT, choices=Status.choices, protected=True)

    client = models.ForeignKey("masterdata.Contact", null=True, blank=True, on_delete=models.PROTECT,
                               related_name="delivery_notes")
    supplier = models.ForeignKey("masterdata.Contact", null=True, blank=True, on_delete=models.PROTECT,
                                 related_name="supplier_delivery_notes")
    warehouse = models.ForeignKey("masterdata.Warehouse", null=True, blank=True, on_delete=models.PROTECT,
                                  related_name="delivery_notes")

    # Stored at every write from document_direction()
    direction = models.CharField(max_length=3, choices=Direction.choices, default=Direction.IN, editable=False)

    class Meta(BaseDocument.Meta):
        constraints = [
            models.CheckConstraint(
                condition=Q(client__isnull=True) | Q(supplier__isnull=True),
                name="delivery_note_single_counterparty",
            ),
        ]
        indexes = [models.Index(fields=["document_type", "date"])]

    @property
    def doc_type(self):
        return self.document_type

    def save(self, *args, **kwargs):
        self.direction = document_direction(self)
        update_fields = kwargs.get("update_fields")
        if update_fields is not None:
            kwargs["update_fields"] = {*update_fields, "direction"}
        super().save(*args, **kwargs)

    @transition(field=status, source=Status.DRAFT, target=Status.DELIVERED)
    def deliver(self):
        pass

    @transition(field=status, source=[Status.DRAFT, Status.DELIVERED], target=Status.CANCELLED)
    def cancel(self):
        pass


class DeliveryNoteLine(BaseLine):
    document = models.ForeignKey(DeliveryNote, on_delete=models.CASCADE, related_name="lines")
