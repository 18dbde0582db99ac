"""Treasury: payment derivation, balance effects and deferred clearing."""

from decimal import Decimal
from types import SimpleNamespace

import pytest
from django_fsm import TransitionNotAllowed

from documents.services.coordinator import create_document, delete_document, transition_document
from treasury.models import BankAccount, TreasuryPayment, WarehouseCash
from treasury.services.ledger import apply_balance_change, signed_payment_amount
from treasury.services.payments import (
    clear_payment,
    counterparty_label,
    deposit_payment,
    derive_and_create_payment,
    resolve_payment_status,
)

from tests.utils import reload


def balance(account):
    return BankAccount.objects.get(pk=account.pk).balance


def test_resolve_payment_status():
    assert resolve_payment_status(TreasuryPayment.Method.CASH) == TreasuryPayment.Status.CLEARED
    assert resolve_payment_status(TreasuryPayment.Method.BANK_TRANSFER) == TreasuryPayment.Status.CLEARED
    assert resolve_payment_status(TreasuryPayment.Method.CHECK) == TreasuryPayment.Status.IN_HAND


def test_counterparty_label_prefers_company_then_name_then_fallback():
    company = SimpleNamespace(company="Atlas Trading", name="Youssef")
    person = SimpleNamespace(company="", name="Karim")

    assert counterparty_label(SimpleNamespace(client=company), TreasuryPayment.PaymentType.SALES) == "Atlas Trading"
    assert counterparty_label(SimpleNamespace(supplier=person), TreasuryPayment.PaymentType.PURCHASE) == "Karim"
    assert counterparty_label(SimpleNamespace(client=None), TreasuryPayment.PaymentType.SALES) == "Unknown Client"
    assert counterparty_label(SimpleNamespace(), TreasuryPayment.PaymentType.PURCHASE) == "Unknown Supplier"


def test_balance_change_needs_a_single_target(bank_account, warehouse):
    with pytest.raises(ValueError):
        apply_balance_change(Decimal("10"), bank_account=bank_account, warehouse=warehouse)


def test_balance_change_without_target_books_nothing(db, caplog):
    assert apply_balance_change(Decimal("10")) is None
    assert "nothing booked" in caplog.text


# ---------------------------------------------------------------------------
# derivation
# ---------------------------------------------------------------------------


def test_cleared_sales_payment_adds_to_bank_balance(invoice_payload, bank_account):
    invoice = create_document("invoice", invoice_payload(status="paid"))

    payment = TreasuryPayment.objects.get(sales_invoice=invoice)
    assert payment.status == TreasuryPayment.Status.CLEARED
    assert payment.amount == Decimal("240.00")
    assert payment.entity == "Atlas Trading"
    assert payment.invoice_number == invoice.document_id
    assert balance(bank_account) == Decimal("240.00")


def test_purchase_payment_takes_money_out(doc_date, supplier, bank_account, product):
    invoice = create_document("purchase_invoice", {
        "date": doc_date,
        "supplier_id": supplier.pk,
        "payment_method": "cash",
        "bank_account_id": bank_account.pk,
        "status": "paid",
        "items": [{"product_id": product.pk, "quantity": 2, "unit_price": 50}],
    })

    payment = TreasuryPayment.objects.get(purchase_invoice=invoice)
    assert signed_payment_amount(payment) == Decimal("-120.00")
    assert payment.entity == "Karim Benali"
    assert balance(bank_account) == Decimal("-120.00")


def test_sales_payment_without_bank_account_goes_to_warehouse_cash(invoice_payload, warehouse):
    create_document("invoice", invoice_payload(
        status="paid", payment_method="cash", bank_account_id=None, payment_warehouse_id=warehouse.pk,
    ))

    assert WarehouseCash.objects.get(warehouse=warehouse).amount == Decimal("240.00")


def test_check_payment_stays_in_hand_without_balance_effect(invoice_payload, bank_account):
    invoice = create_document("invoice", invoice_payload(status="paid", payment_method="check",
                                                         check_number="CHQ-7781"))

    payment = TreasuryPayment.objects.get(sales_invoice=invoice)
    assert payment.status == TreasuryPayment.Status.IN_HAND
    assert payment.check_number == "CHQ-7781"
    assert balance(bank_account) == Decimal("0.00")


def test_derivation_is_idempotent(invoice_payload, bank_account):
    invoice = create_document("invoice", invoice_payload(status="paid"))

    assert derive_and_create_payment(invoice, TreasuryPayment.PaymentType.SALES) is None
    assert TreasuryPayment.objects.count() == 1
    assert balance(bank_account) == Decimal("240.00")


def test_derivation_requires_a_paid_invoice(invoice_payload):
    invoice = create_document("invoice", invoice_payload())

    with pytest.raises(ValueError):
        derive_and_create_payment(invoice, TreasuryPayment.PaymentType.SALES)
    assert not TreasuryPayment.objects.exists()


# ---------------------------------------------------------------------------
# deferred clearing
# ---------------------------------------------------------------------------


def test_clearing_a_check_applies_the_deferred_balance(invoice_payload, bank_account):
    invoice = create_document("invoice", invoice_payload(status="paid", payment_method="check"))
    payment = TreasuryPayment.objects.get(sales_invoice=invoice)

    deposit_payment(payment)
    assert reload(payment).status == TreasuryPayment.Status.PENDING_BANK
    assert balance(bank_account) == Decimal("0.00")

    clear_payment(payment)
    assert reload(payment).status == TreasuryPayment.Status.CLEARED
    assert balance(bank_account) == Decimal("240.00")


def test_cleared_payment_cannot_be_cleared_twice(invoice_payload, bank_account):
    invoice = create_document("invoice", invoice_payload(status="paid"))
    payment = TreasuryPayment.objects.get(sales_invoice=invoice)

    with pytest.raises(TransitionNotAllowed):
        clear_payment(payment)
    assert balance(bank_account) == Decimal("240.00")


def test_invoice_without_payment_method_gives_an_in_hand_payment(invoice_payload, bank_account):
    """No method on the invoice: stored as a transfer, but nothing booked yet."""

    invoice = create_document("invoice", invoice_payload(status="paid", payment_method=""))

    payment = TreasuryPayment.objects.get(sales_invoice=invoice)
    assert payment.payment_method == TreasuryPayment.Method.BANK_TRANSFER
    assert payment.status == TreasuryPayment.Status.IN_HAND
    assert balance(bank_account) == Decimal("0.00")


# ---------------------------------------------------------------------------
# reversal
# ---------------------------------------------------------------------------


@pytest.fixture
def paid_purchase_invoice(doc_date, supplier, bank_account, product):
    return create_document("purchase_invoice", {
        "date": doc_date,
        "supplier_id": supplier.pk,
        "payment_method": "bank_transfer",
        "bank_account_id": bank_account.pk,
        "status": "paid",
        "items": [{"product_id": product.pk, "quantity": 2, "unit_price": 50}],
    })


def test_deleting_a_paid_purchase_invoice_adds_the_money_back(paid_purchase_invoice, bank_account):
    assert balance(bank_account) == Decimal("-120.00")

    delete_document("purchase_invoice", paid_purchase_invoice.pk)

    assert not TreasuryPayment.objects.exists()
    assert balance(bank_account) == Decimal("0.00")


def test_unpaying_a_purchase_invoice_adds_the_money_back(paid_purchase_invoice, bank_account):
    transition_document("purchase_invoice", paid_purchase_invoice.pk, "received")

    assert not TreasuryPayment.objects.exists()
    assert balance(bank_account) == Decimal("0.00")


def test_deleting_a_cash_sale_takes_the_money_out_of_the_till(invoice_payload, warehouse):
    invoice = create_document("invoice", invoice_payload(
        status="paid", payment_method="cash", bank_account_id=None, payment_warehouse_id=warehouse.pk,
    ))
    assert WarehouseCash.objects.get(warehouse=warehouse).amount == Decimal("240.00")

    delete_document("invoice", invoice.pk)

    assert not TreasuryPayment.objects.exists()
    assert WarehouseCash.objects.get(warehouse=warehouse).amount == Decimal("0.00")
