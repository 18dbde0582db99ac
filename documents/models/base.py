from decimal import Decimal

from django.db import models

CENT = Decimal("0.01")


class BaseDocument(models.Model):
    """Fields shared by every numbered document.

    ``doc_type`` names the numbering scope (see core.services.numbering).
    """

    doc_type = None

    document_id = models.CharField(max_length=40, unique=True)
    date = models.DateField()
    note = models.TextField(blank=True, default="")

    subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ("-date", "-id")

    def __str__(self):
        return f"{self._meta.verbose_name.capitalize()} {self.document_id or self.pk}"


class VatTotalsMixin(models.Model):
    vat_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("20.00"))
    vat_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        abstract = True


class PaymentTermsMixin(models.Model):
    """How an invoice is (to be) settled."""

    class PaymentMethod(models.TextChoices):
        CASH = "cash", "Cash"
        CHECK = "check", "Check"
        BANK_TRANSFER = "bank_transfer", "Bank transfer"

    due_date = models.DateField(null=True, blank=True)
    payment_method = models.CharField(max_length=20, choices=PaymentMethod.choices, blank=True, default="")
    check_number = models.CharField(max_length=50, blank=True, default="")
    bank_account = models.ForeignKey("treasury.BankAccount", null=True, blank=True, on_delete=models.PROTECT,
                                     related_name="+")
    amount_paid = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        abstract = True


class BaseLine(models.Model):
    """Document line. Subclasses add ``document = ForeignKey(..., related_name="lines")``."""

    product = models.ForeignKey("masterdata.Product", null=True, blank=True, on_delete=models.PROTECT,
                                related_name="+")
    description = models.CharField(max_length=255, blank=True, default="")

    quantity = models.DecimalField(max_digits=14, decimal_places=3, default=Decimal("0.000"))
    unit_price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        abstract = True
        ordering = ["id"]

    def save(self, *args, **kwargs):
        """Default description from product; total is always quantity x unit price."""
        if not self.description and self.product_id:
            self.description = self.product.name
        self.total = self.net
        super().save(*args, **kwargs)

    @property
    def net(self) -> Decimal:
        return (Decimal(self.quantity) * Decimal(self.unit_price)).quantize(CENT)
