from django.contrib import admin, messages
from django_object_actions import DjangoObjectActions, action

from core.exceptions import DocumentValidationError
from documents.models import (
    CreditNote,
    CreditNoteLine,
    DeliveryNote,
    DeliveryNoteLine,
    Estimate,
    EstimateLine,
    Prelevement,
    PrelevementLine,
    PurchaseInvoice,
    PurchaseInvoiceLine,
    PurchaseOrder,
    PurchaseOrderLine,
    SalesInvoice,
    SalesInvoiceLine,
    Statement,
    StatementLine,
)
from documents.services.coordinator import delete_document, transition_document


def status_action(status, label):
    """Change action moving the document to ``status`` through the coordinator."""

    @action(label=label, description=f"Change status to {status}")
    def change_status(self, request, obj):
        self.move_to(request, obj, status)

    change_status.__name__ = f"to_{status}"
    return change_status


class LineInline(admin.TabularInline):
    extra = 0
    fk_name = "document"
    fields = ("product", "description", "quantity", "unit_price", "total")
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


class DocumentAdmin(DjangoObjectActions, admin.ModelAdmin):
    """Read-only view of a document; every change goes through the coordinator.

    Documents are created and edited by the CRUD layer calling
    documents.services.coordinator. Here they can be moved along their
    status machine and deleted, both with all ledger effects.
    """

    list_display = ("document_id", "date", "status", "subtotal")
    list_filter = ("status",)
    search_fields = ("document_id",)
    date_hierarchy = "date"

    # (action name, target status), in button order
    status_actions = ()

    def doc_type_for(self, obj):
        return obj.doc_type

    def has_add_permission(self, request):
        return False

    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    def get_change_actions(self, request, object_id, form_url):
        obj = self.get_object(request, object_id)
        if not obj:
            return ()
        reachable = [t.target for t in obj.get_available_status_transitions()]
        return tuple(name for name, target in self.status_actions if target in reachable)

    def move_to(self, request, obj, status):
        try:
            doc = transition_document(self.doc_type_for(obj), obj.pk, status)
        except DocumentValidationError as exc:
            self.message_user(request, f"Could not change status: {'; '.join(exc.messages)}", level=messages.ERROR)
            return
        self.message_user(request, f"{doc.document_id} is now {doc.get_status_display()}.", level=messages.SUCCESS)

    def delete_model(self, request, obj):
        delete_document(self.doc_type_for(obj), obj.pk)

    def delete_queryset(self, request, queryset):
        for obj in queryset:
            self.delete_model(request, obj)


class SalesInvoiceLineInline(LineInline):
    model = SalesInvoiceLine


@admin.register(SalesInvoice)
class SalesInvoiceAdmin(DocumentAdmin):
    inlines = [SalesInvoiceLineInline]
    list_display = ("document_id", "date", "client", "status", "total", "payment_method")
    list_select_related = ("client",)

    status_actions = (
        ("to_sent", SalesInvoice.Status.SENT),
        ("to_paid", SalesInvoice.Status.PAID),
        ("to_cancelled", SalesInvoice.Status.CANCELLED),
    )
    change_actions = tuple(name for name, _ in status_actions) + ("mark_unpaid",)

    to_sent = status_action(SalesInvoice.Status.SENT, "Send")
    to_paid = status_action(SalesInvoice.Status.PAID, "Mark paid")
    to_cancelled = status_action(SalesInvoice.Status.CANCELLED, "Cancel")

    def get_change_actions(self, request, object_id, form_url):
        obj = self.get_object(request, object_id)
        if obj and obj.status == SalesInvoice.Status.PAID:
            # paid -> sent is the "unpaid" move
            return ("mark_unpaid",)
        return super().get_change_actions(request, object_id, form_url)

    @action(label="Mark unpaid", description="Reverse the payment and reopen the invoice")
    def mark_unpaid(self, request, obj):
        self.move_to(request, obj, SalesInvoice.Status.SENT)


class EstimateLineInline(LineInline):
    model = EstimateLine


@admin.register(Estimate)
class EstimateAdmin(DocumentAdmin):
    inlines = [EstimateLineInline]
    list_display = ("document_id", "date", "client", "status", "total", "valid_until")

    status_actions = (
        ("to_sent", Estimate.Status.SENT),
        ("to_accepted", Estimate.Status.ACCEPTED),
        ("to_rejected", Estimate.Status.REJECTED),
        ("to_cancelled", Estimate.Status.CANCELLED),
    )
    change_actions = tuple(name for name, _ in status_actions)

    to_sent = status_action(Estimate.Status.SENT, "Send")
    to_accepted = status_action(Estimate.Status.ACCEPTED, "Accept")
    to_rejected = status_action(Estimate.Status.REJECTED, "Reject")
    to_cancelled = status_action(Estimate.Status.CANCELLED, "Cancel")


class CreditNoteLineInline(LineInline):
    model = CreditNoteLine


@admin.register(CreditNote)
class CreditNoteAdmin(DocumentAdmin):
    inlines = [CreditNoteLineInline]
    list_display = ("document_id", "date", "client", "invoice", "status", "total")

    status_actions = (
        ("to_sent", CreditNote.Status.SENT),
        ("to_cancelled", CreditNote.Status.CANCELLED),
    )
    change_actions = tuple(name for name, _ in status_actions)

    to_sent = status_action(CreditNote.Status.SENT, "Send")
    to_cancelled = status_action(CreditNote.Status.CANCELLED, "Cancel")


class PrelevementLineInline(LineInline):
    model = PrelevementLine


@admin.register(Prelevement)
class PrelevementAdmin(DocumentAdmin):
    inlines = [PrelevementLineInline]

    status_actions = (
        ("to_sent", Prelevement.Status.SENT),
        ("to_cancelled", Prelevement.Status.CANCELLED),
    )
    change_actions = tuple(name for name, _ in status_actions)

    to_sent = status_action(Prelevement.Status.SENT, "Send")
    to_cancelled = status_action(Prelevement.Status.CANCELLED, "Cancel")


class StatementLineInline(LineInline):
    model = StatementLine


@admin.register(Statement)
class StatementAdmin(DocumentAdmin):
    inlines = [StatementLineInline]
    list_display = ("document_id", "date", "client", "period_start", "period_end", "status")

    status_actions = (
        ("to_sent", Statement.Status.SENT),
        ("to_cancelled", Statement.Status.CANCELLED),
    )
    change_actions = tuple(name for name, _ in status_actions)

    to_sent = status_action(Statement.Status.SENT, "Send")
    to_cancelled = status_action(Statement.Status.CANCELLED, "Cancel")


class DeliveryNoteLineInline(LineInline):
    model = DeliveryNoteLine


@admin.register(DeliveryNote)
class DeliveryNoteAdmin(DocumentAdmin):
    inlines = [DeliveryNoteLineInline]
    list_display = ("document_id", "document_type", "date", "client", "supplier", "warehouse", "direction", "status")
    list_filter = ("document_type", "direction", "status")

    status_actions = (
        ("to_delivered", DeliveryNote.Status.DELIVERED),
        ("to_cancelled", DeliveryNote.Status.CANCELLED),
    )
    change_actions = tuple(name for name, _ in status_actions)

    to_delivered = status_action(DeliveryNote.Status.DELIVERED, "Mark delivered")
    to_cancelled = status_action(DeliveryNote.Status.CANCELLED, "Cancel and return stock")


class PurchaseOrderLineInline(LineInline):
    model = PurchaseOrderLine


@admin.register(PurchaseOrder)
class PurchaseOrderAdmin(DocumentAdmin):
    inlines = [PurchaseOrderLineInline]
    list_display = ("document_id", "date", "supplier", "warehouse", "status", "subtotal")

    status_actions = (
        ("to_sent", PurchaseOrder.Status.SENT),
        ("to_received", PurchaseOrder.Status.RECEIVED),
        ("to_cancelled", PurchaseOrder.Status.CANCELLED),
    )
    change_actions = tuple(name for name, _ in status_actions)

    to_sent = status_action(PurchaseOrder.Status.SENT, "Send")
    to_received = status_action(PurchaseOrder.Status.RECEIVED, "Receive stock")
    to_cancelled = status_action(PurchaseOrder.Status.CANCELLED, "Cancel")


class PurchaseInvoiceLineInline(LineInline):
    model = PurchaseInvoiceLine


@admin.register(PurchaseInvoice)
class PurchaseInvoiceAdmin(DocumentAdmin):
    inlines = [PurchaseInvoiceLineInline]
    list_display = ("document_id", "date", "supplier", "delivery_note", "status", "total")

    status_actions = (
        ("to_received", PurchaseInvoice.Status.RECEIVED),
        ("to_paid", PurchaseInvoice.Status.PAID),
        ("to_cancelled", PurchaseInvoice.Status.CANCELLED),
    )
    change_actions = tuple(name for name, _ in status_actions) + ("mark_unpaid",)

    to_received = status_action(PurchaseInvoice.Status.RECEIVED, "Mark received")
    to_paid = status_action(PurchaseInvoice.Status.PAID, "Mark paid")
    to_cancelled = status_action(PurchaseInvoice.Status.CANCELLED, "Cancel")

    def get_change_actions(self, request, object_id, form_url):
        obj = self.get_object(request, object_id)
        if obj and obj.status == PurchaseInvoice.Status.PAID:
            return ("mark_unpaid",)
        return super().get_change_actions(request, object_id, form_url)

    @action(label="Mark unpaid", description="Reverse the payment and reopen the invoice")
    def mark_unpaid(self, request, obj):
        self.move_to(request, obj, PurchaseInvoice.Status.RECEIVED)
