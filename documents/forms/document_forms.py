from decimal import Decimal

from django import forms
from django.core.exceptions import ValidationError

from documents.models import (
    CreditNote,
    DeliveryNote,
    Estimate,
    Prelevement,
    PurchaseInvoice,
    PurchaseOrder,
    SalesInvoice,
    Statement,
)
from masterdata.models import Product


def normalize_payload(data, field_names):
    """Accept ``client_id`` style keys for relation fields named ``client``."""
    result = {}
    for key, value in data.items():
        if key.endswith("_id") and key[:-3] in field_names and key[:-3] not in data:
            key = key[:-3]
        result[key] = value
    return result


class DeliveryNoteForm(forms.ModelForm):
    class Meta:
        model = DeliveryNote
        fields = ["date", "client", "supplier", "warehouse", "note"]

    def clean(self):
        cleaned = super().clean()
        if cleaned.get("client") and cleaned.get("supplier"):
            raise ValidationError("A delivery note has a client or a supplier, not both.")
        return cleaned


class PurchaseOrderForm(forms.ModelForm):
    class Meta:
        model = PurchaseOrder
        fields = ["date", "supplier", "warehouse", "note"]


class SalesInvoiceForm(forms.ModelForm):
    class Meta:
        model = SalesInvoice
        fields = [
            "date",
            "due_date",
            "client",
            "payment_method",
            "check_number",
            "bank_account",
            "payment_warehouse",
            "vat_rate",
            "note",
        ]

    def clean(self):
        cleaned = super().clean()
        # The check number only means something for checks
        if cleaned.get("payment_method") != SalesInvoice.PaymentMethod.CHECK:
            cleaned["check_number"] = ""
        return cleaned


class PurchaseInvoiceForm(forms.ModelForm):
    class Meta:
        model = PurchaseInvoice
        fields = [
            "date",
            "due_date",
            "supplier",
            "delivery_note",
            "payment_method",
            "check_number",
            "bank_account",
            "vat_rate",
            "attachment_url",
            "note",
        ]

    def clean_delivery_note(self):
        """One live purchase invoice per delivery note."""
        note = self.cleaned_data.get("delivery_note")
        if note is None:
            return note
        existing = (
            PurchaseInvoice.objects
            .filter(delivery_note=note)
            .exclude(status=PurchaseInvoice.Status.CANCELLED)
            .exclude(pk=self.instance.pk)
            .first()
        )
        if existing:
            raise ValidationError(
                f"An invoice ({existing.document_id}) already exists for this delivery note.",
                code="duplicate_invoice_from_delivery_note",
            )
        return note


class EstimateForm(forms.ModelForm):
    class Meta:
        model = Estimate
        fields = ["date", "valid_until", "client", "vat_rate", "note"]


class CreditNoteForm(forms.ModelForm):
    class Meta:
        model = CreditNote
        fields = ["date", "client", "invoice", "vat_rate", "note"]


class PrelevementForm(forms.ModelForm):
    class Meta:
        model = Prelevement
        fields = ["date", "client", "note"]


class StatementForm(forms.ModelForm):
    class Meta:
        model = Statement
        fields = ["date", "client", "period_start", "period_end", "note"]


class DocumentLineForm(forms.Form):
    """One incoming line item. Unit price defaults to the product price."""

    product = forms.ModelChoiceField(queryset=Product.objects.all(), required=False)
    description = forms.CharField(max_length=255, required=False)
    quantity = forms.DecimalField(max_digits=14, decimal_places=3, min_value=Decimal("0.001"))
    unit_price = forms.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal("0"), required=False)

    def clean(self):
        cleaned = super().clean()
        product = cleaned.get("product")
        if not product and not cleaned.get("description"):
            raise ValidationError("A line needs a product or a description.")
        if cleaned.get("unit_price") is None:
            cleaned["unit_price"] = product.price if product else Decimal("0.00")
        return cleaned
