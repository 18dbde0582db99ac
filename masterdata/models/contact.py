from django.db import models


class Contact(models.Model):
    """Client or supplier.

    Used by documents as counterparty and, for payments, only as a display
    label. It never takes part in ledger math.
    """

    class ContactType(models.TextChoices):
        CLIENT = "client", "Client"
        SUPPLIER = "supplier", "Supplier"

    contact_type = models.CharField(max_length=10, choices=ContactType.choices, default=ContactType.CLIENT)

    name = models.CharField(max_length=255)
    company = models.CharField(max_length=255, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    phone = models.CharField(max_length=50, blank=True, default="")
    city = models.CharField(max_length=120, blank=True, default="")
    address = models.TextField(blank=True, default="")

    # Moroccan company identifiers
    ice = models.CharField(max_length=30, blank=True, default="")
    if_number = models.CharField(max_length=30, blank=True, default="")
    rc = models.CharField(max_length=30, blank=True, default="")

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.display_name

    @property
    def display_name(self) -> str:
        return self.company or self.name
