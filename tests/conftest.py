"""Shared pytest fixtures for the ledger engine tests."""

import datetime
from decimal import Decimal

import pytest

from inventory.models import StockMovement
from inventory.services.stock_ledger import apply_movement
from masterdata.models import Contact, Product, Warehouse
from treasury.models import BankAccount

DOC_DATE = datetime.date(2025, 3, 14)


@pytest.fixture
def doc_date():
    return DOC_DATE


@pytest.fixture
def warehouse(db):
    return Warehouse.objects.create(code="CAS", name="Casablanca depot", city="Casablanca")


@pytest.fixture
def other_warehouse(db):
    return Warehouse.objects.create(code="RBA", name="Rabat depot", city="Rabat")


@pytest.fixture
def product(db):
    return Product.objects.create(sku="P-100", name="Steel bolt", price=Decimal("20.00"))


@pytest.fixture
def other_product(db):
    return Product.objects.create(sku="P-200", name="Steel nut", price=Decimal("5.00"))


@pytest.fixture
def stocked_product(product, warehouse):
    """``product`` with 50 units received into ``warehouse``."""
    apply_movement(product, Decimal("50"), kind=StockMovement.Kind.ADJUSTMENT, warehouse=warehouse,
                   description="Opening stock")
    product.refresh_from_db()
    return product


@pytest.fixture
def client_contact(db):
    return Contact.objects.create(contact_type=Contact.ContactType.CLIENT, name="Youssef Alami",
                                  company="Atlas Trading")


@pytest.fixture
def supplier(db):
    return Contact.objects.create(contact_type=Contact.ContactType.SUPPLIER, name="Karim Benali",
                                  company="")


@pytest.fixture
def bank_account(db):
    return BankAccount.objects.create(name="Main account", bank="Attijariwafa", account_number="007780000123")


@pytest.fixture
def delivery_payload(doc_date, client_contact, warehouse, stocked_product):
    def _payload(**overrides):
        payload = {
            "date": doc_date,
            "client_id": client_contact.pk,
            "warehouse_id": warehouse.pk,
            "items": [{"product_id": stocked_product.pk, "quantity": 10, "unit_price": 20}],
        }
        payload.update(overrides)
        return payload

    return _payload


@pytest.fixture
def invoice_payload(doc_date, client_contact, bank_account, product):
    def _payload(**overrides):
        payload = {
            "date": doc_date,
            "client_id": client_contact.pk,
            "payment_method": "bank_transfer",
            "bank_account_id": bank_account.pk,
            "items": [{"product_id": product.pk, "quantity": 10, "unit_price": 20}],
        }
        payload.update(overrides)
        return payload

    return _payload

