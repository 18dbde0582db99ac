"""Payment derivation: from a settled invoice to at most one TreasuryPayment."""

import logging

from django.db import IntegrityError, transaction
from django.utils import timezone

from treasury.models import TreasuryPayment
from treasury.services.ledger import apply_payment, revert_payment

logger = logging.getLogger(__name__)

CLEARED_METHODS = {TreasuryPayment.Method.CASH, TreasuryPayment.Method.BANK_TRANSFER}

_LINK_FIELDS = {
    TreasuryPayment.PaymentType.SALES: "sales_invoice",
    TreasuryPayment.PaymentType.PURCHASE: "purchase_invoice",
}


def resolve_payment_status(payment_method) -> str:
    """Cash and transfers are money already received; a check is not."""
    if payment_method in CLEARED_METHODS:
        return TreasuryPayment.Status.CLEARED
    return TreasuryPayment.Status.IN_HAND


def counterparty_label(invoice, payment_type) -> str:
    if payment_type == TreasuryPayment.PaymentType.SALES:
        contact, fallback = getattr(invoice, "client", None), "Unknown Client"
    else:
        contact, fallback = getattr(invoice, "supplier", None), "Unknown Supplier"
    if contact is None:
        return fallback
    return contact.company or contact.name or fallback


def payment_for(invoice, payment_type):
    link = _LINK_FIELDS[payment_type]
    return TreasuryPayment.objects.filter(**{link: invoice}).first()


@transaction.atomic
def derive_and_create_payment(invoice, payment_type):
    """Create the payment for a paid invoice and book it if cleared.

    Idempotent: an invoice that already has a payment is left alone and None
    is returned, so repeated "mark paid" calls never double-count. A racing
    insert loses on the one-to-one constraint and is treated the same way.

    The status comes from the invoice's own payment method; an invoice without
    one gets an in-hand payment stored as a bank transfer.

    Sales payments go to the invoice's bank account, or to the warehouse till
    when no bank account is set. Purchase payments only use bank accounts.
    """
    if not invoice.is_settled:
        raise ValueError(f"{invoice} is not paid; no payment to derive.")

    link = _LINK_FIELDS[payment_type]
    if TreasuryPayment.objects.filter(**{link: invoice}).exists():
        return None

    method = invoice.payment_method or TreasuryPayment.Method.BANK_TRANSFER
    warehouse = None
    if payment_type == TreasuryPayment.PaymentType.SALES and not invoice.bank_account_id:
        warehouse = invoice.payment_warehouse

    try:
        with transaction.atomic():
            payment = TreasuryPayment.objects.create(
                **{link: invoice},
                invoice_number=invoice.document_id,
                entity=counterparty_label(invoice, payment_type),
                amount=invoice.total,
                payment_method=method,
                payment_type=payment_type,
                status=resolve_payment_status(invoice.payment_method),
                check_number=invoice.check_number if method == TreasuryPayment.Method.CHECK else "",
                payment_date=timezone.localdate(),
                bank_account=invoice.bank_account,
                warehouse=warehouse,
            )
    except IntegrityError:
        if TreasuryPayment.objects.filter(**{link: invoice}).exists():
            logger.info("Payment for %s created concurrently; skipping", invoice.document_id)
            return None
        raise

    apply_payment(payment)
    logger.info("Payment %s for %s: %s %s", payment.pk, invoice.document_id, payment.amount, payment.status)
    return payment


@transaction.atomic
def reverse_payment(payment):
    """Undo a payment's balance effect (if it had one) and delete it."""
    payment = TreasuryPayment.objects.select_for_update().get(pk=payment.pk)
    revert_payment(payment)
    logger.info("Payment %s for %s reversed", payment.pk, payment.invoice_number)
    payment.delete()


def reverse_payment_for(invoice, payment_type):
    payment = payment_for(invoice, payment_type)
    if payment is not None:
        reverse_payment(payment)
    return payment


@transaction.atomic
def deposit_payment(payment):
    """Hand an in-hand check to the bank. Balance is untouched."""
    payment = TreasuryPayment.objects.select_for_update().get(pk=payment.pk)
    payment.deposit()
    payment.save()
    return payment


@transaction.atomic
def clear_payment(payment):
    """Deferred clearing: the only place a non-cleared payment reaches a balance."""
    payment = TreasuryPayment.objects.select_for_update().get(pk=payment.pk)
    payment.clear()
    payment.save()
    apply_payment(payment)
    logger.info("Payment %s for %s cleared", payment.pk, payment.invoice_number)
    return payment
