import logging
from decimal import Decimal

from django.db import transaction

from treasury.models import BankAccount, TreasuryPayment, WarehouseCash

logger = logging.getLogger(__name__)


def signed_payment_amount(payment) -> Decimal:
    """Sales money comes in (+), purchase money goes out (-)."""
    amount = abs(Decimal(payment.amount))
    if payment.payment_type == TreasuryPayment.PaymentType.PURCHASE:
        return -amount
    return amount


@transaction.atomic
def apply_balance_change(amount, *, bank_account=None, warehouse=None):
    """Add a signed amount to a bank account or to a warehouse's cash.

    Exactly one target is expected. Without any target nothing is booked and
    None is returned; the target row is returned otherwise.
    """
    amount = Decimal(amount)

    if bank_account is not None and warehouse is not None:
        raise ValueError("A balance change targets a bank account or a warehouse, not both.")

    if bank_account is not None:
        account_id = bank_account.pk if isinstance(bank_account, BankAccount) else bank_account
        account = BankAccount.objects.select_for_update().get(pk=account_id)
        account.balance = account.balance + amount
        account.save(update_fields=["balance", "updated_at"])
        logger.debug("Bank account %s %+.2f (now %s)", account.pk, amount, account.balance)
        return account

    if warehouse is not None:
        cash, _ = WarehouseCash.objects.select_for_update().get_or_create(warehouse=warehouse)
        cash.amount = cash.amount + amount
        cash.save(update_fields=["amount", "updated_at"])
        logger.debug("Warehouse cash %s %+.2f (now %s)", cash.warehouse_id, amount, cash.amount)
        return cash

    logger.warning("Balance change of %s has no bank account or warehouse; nothing booked", amount)
    return None


def revert_balance_change(amount, *, bank_account=None, warehouse=None):
    """Inverse of apply_balance_change for the same signed amount."""
    return apply_balance_change(-Decimal(amount), bank_account=bank_account, warehouse=warehouse)


def apply_payment(payment):
    """Book a cleared payment on its target balance."""
    if payment.status != TreasuryPayment.Status.CLEARED:
        return None
    return apply_balance_change(
        signed_payment_amount(payment),
        bank_account=payment.bank_account_id,
        warehouse=None if payment.bank_account_id else payment.warehouse,
    )


def revert_payment(payment):
    """Take back exactly what apply_payment booked."""
    if payment.status != TreasuryPayment.Status.CLEARED:
        return None
    return revert_balance_change(
        signed_payment_amount(payment),
        bank_account=payment.bank_account_id,
        warehouse=None if payment.bank_account_id else payment.warehouse,
    )
