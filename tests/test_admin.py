"""Admin change actions drive documents through the coordinator."""

from decimal import Decimal

from django.urls import reverse

from documents.models import DeliveryNote, SalesInvoice
from documents.services.coordinator import create_document
from masterdata.models import Product
from treasury.models import BankAccount, TreasuryPayment

from tests.utils import reload


def action_url(obj, tool):
    return reverse(f"admin:{obj._meta.app_label}_{obj._meta.model_name}_actions", args=[obj.pk, tool])


def test_document_change_page_renders(admin_client, invoice_payload):
    invoice = create_document("invoice", invoice_payload())

    response = admin_client.get(reverse("admin:documents_salesinvoice_change", args=[invoice.pk]))

    assert response.status_code == 200
    assert invoice.document_id in response.content.decode()


def test_mark_paid_action_derives_payment(admin_client, invoice_payload, bank_account):
    invoice = create_document("invoice", invoice_payload())

    response = admin_client.get(action_url(invoice, "to_paid"))

    assert response.status_code == 302
    assert reload(invoice).status == SalesInvoice.Status.PAID
    assert TreasuryPayment.objects.filter(sales_invoice=invoice).exists()
    assert BankAccount.objects.get(pk=bank_account.pk).balance == Decimal("240.00")


def test_unreachable_status_is_reported_not_applied(admin_client, invoice_payload):
    invoice = create_document("invoice", invoice_payload(status="paid"))

    response = admin_client.get(action_url(invoice, "to_cancelled"), follow=True)

    assert "Could not change status" in response.content.decode()
    assert reload(invoice).status == SalesInvoice.Status.PAID


def test_admin_delete_reverts_stock(admin_client, delivery_payload, stocked_product):
    note = create_document("delivery_note", delivery_payload())

    response = admin_client.post(reverse("admin:documents_deliverynote_delete", args=[note.pk]), {"post": "yes"})

    assert response.status_code == 302
    assert not DeliveryNote.objects.exists()
    assert Product.objects.get(pk=stocked_product.pk).stock == Decimal("50")


def test_clear_action_books_a_check(admin_client, invoice_payload, bank_account):
    invoice = create_document("invoice", invoice_payload(status="paid", payment_method="check"))
    payment = TreasuryPayment.objects.get(sales_invoice=invoice)

    admin_client.get(action_url(payment, "clear_action"))

    assert reload(payment).status == TreasuryPayment.Status.CLEARED
    assert BankAccount.objects.get(pk=bank_account.pk).balance == Decimal("240.00")
