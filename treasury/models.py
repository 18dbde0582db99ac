from decimal import Decimal

from django.db import models
from django.db.models import Q
from django.utils import timezone
from django_fsm import FSMField, transition


class BankAccount(models.Model):
    name = models.CharField(max_length=120)
    bank = models.CharField(max_length=120, blank=True, default="")
    account_number = models.CharField(max_length=64, blank=True, default="", help_text="RIB / IBAN")

    balance = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.bank})" if self.bank else self.name


class WarehouseCash(models.Model):
    """Cash held at a warehouse (till). One row per warehouse, created on first use."""

    warehouse = models.OneToOneField("masterdata.Warehouse", on_delete=models.CASCADE, related_name="cash")
    amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = "warehouse cash"

    def __str__(self):
        return f"{self.warehouse}: {self.amount}"


class TreasuryPayment(models.Model):
    """Payment derived from a settled sales or purchase invoice.

    Only a ``cleared`` payment has touched a balance. The one-to-one links make
    "at most one payment per invoice" a database guarantee.
    """

    class Method(models.TextChoices):
        CASH = "cash", "Cash"
        CHECK = "check", "Check"
        BANK_TRANSFER = "bank_transfer", "Bank transfer"

    class Status(models.TextChoices):
        IN_HAND = "in-hand", "In hand"
        PENDING_BANK = "pending_bank", "Pending bank"
        CLEARED = "cleared", "Cleared"

    class PaymentType(models.TextChoices):
        SALES = "sales", "Sales"
        PURCHASE = "purchase", "Purchase"

    sales_invoice = models.OneToOneField("documents.SalesInvoice", null=True, blank=True, on_delete=models.PROTECT,
                                         related_name="payment")
    purchase_invoice = models.OneToOneField("documents.PurchaseInvoice", null=True, blank=True,
                                            on_delete=models.PROTECT, related_name="payment")

    invoice_number = models.CharField(max_length=40, blank=True, default="")
    entity = models.CharField(max_length=255, blank=True, default="", help_text="Counterparty display name")

    amount = models.DecimalField(max_digits=14, decimal_places=2)
    payment_method = models.CharField(max_length=20, choices=Method.choices, default=Method.BANK_TRANSFER)
    payment_type = models.CharField(max_length=10, choices=PaymentType.choices)
    status = FSMField(default=Status.IN_HAND, choices=Status.choices, protected=True)

    check_number = models.CharField(max_length=50, blank=True, default="")
    maturity_date = models.DateField(null=True, blank=True)
    payment_date = models.DateField(default=timezone.localdate)

    bank_account = models.ForeignKey(BankAccount, null=True, blank=True, on_delete=models.PROTECT,
                                     related_name="payments")
    warehouse = models.ForeignKey("masterdata.Warehouse", null=True, blank=True, on_delete=models.PROTECT,
                                  related_name="payments")

    notes = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-payment_date", "-id"]
        constraints = [
            models.CheckConstraint(
                condition=Q(sales_invoice__isnull=True) | Q(purchase_invoice__isnull=True),
                name="treasury_payment_single_invoice",
            ),
        ]

    def __str__(self):
        return f"{self.get_payment_type_display()} {self.invoice_number or self.pk} {self.amount} ({self.status})"

    @transition(field=status, source=Status.IN_HAND, target=Status.PENDING_BANK)
    def deposit(self):
        """Check handed to the bank; no balance effect yet."""

    @transition(field=status, source=[Status.IN_HAND, Status.PENDING_BANK], target=Status.CLEARED)
    def clear(self):
        """Money arrived. Callers apply the balance effect (treasury.services.payments.clear_payment)."""
