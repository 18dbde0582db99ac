"""Document numbers: ``PREFIX-MM/YY/NNNN`` per type and month."""

import datetime
from unittest.mock import Mock

import pytest

from core.exceptions import DocumentNumberConflict, DocumentValidationError
from core.services import numbering
from core.services.numbering import allocate_document_number, is_document_number, parse_serial, scope_base
from documents.models import Estimate
from documents.services.coordinator import create_document


@pytest.fixture
def estimate_payload(doc_date, client_contact):
    def _payload(**overrides):
        payload = {
            "date": doc_date,
            "client_id": client_contact.pk,
            "items": [{"description": "Installation", "quantity": 1, "unit_price": 100}],
        }
        payload.update(overrides)
        return payload

    return _payload


def test_scope_base_and_serial_parsing():
    assert scope_base("delivery_note", datetime.date(2025, 3, 14)) == "BL-03/25/"
    assert scope_base("divers", "2024-12-01") == "DIV-12/24/"
    assert parse_serial("FC-03/25/0042") == 42
    assert parse_serial("garbage") is None


def test_unknown_document_type_is_rejected(db):
    with pytest.raises(ValueError, match="Unknown document type"):
        allocate_document_number("quote", datetime.date(2025, 3, 14))


def test_first_number_in_scope(db, doc_date):
    assert allocate_document_number("invoice", doc_date) == "FC-03/25/0001"


def test_numbers_increase_within_scope(estimate_payload):
    first = create_document("estimate", estimate_payload())
    second = create_document("estimate", estimate_payload())

    assert first.document_id == "DV-03/25/0001"
    assert second.document_id == "DV-03/25/0002"


def test_scope_restarts_each_month(estimate_payload):
    create_document("estimate", estimate_payload())
    april = create_document("estimate", estimate_payload(date=datetime.date(2025, 4, 2)))

    assert april.document_id == "DV-04/25/0001"


def test_delivery_notes_and_divers_share_a_table_not_a_scope(delivery_payload):
    create_document("delivery_note", delivery_payload())
    divers = create_document("divers", delivery_payload(client_id=None))

    assert divers.document_id == "DIV-03/25/0001"


def test_manual_numbers_are_respected(estimate_payload):
    create_document("estimate", estimate_payload(document_id="DV-03/25/0041"))

    assert create_document("estimate", estimate_payload()).document_id == "DV-03/25/0042"


def test_serial_keeps_growing_past_its_width(estimate_payload):
    create_document("estimate", estimate_payload(document_id="DV-03/25/9999"))
    create_document("estimate", estimate_payload())

    assert create_document("estimate", estimate_payload()).document_id == "DV-03/25/10001"


# ---------------------------------------------------------------------------
# collisions
# ---------------------------------------------------------------------------


def test_collision_is_retried_once(monkeypatch, caplog, estimate_payload):
    create_document("estimate", estimate_payload())
    monkeypatch.setattr(numbering, "allocate_document_number",
                        Mock(side_effect=["DV-03/25/0001", "DV-03/25/0002"]))

    doc = create_document("estimate", estimate_payload())

    assert doc.document_id == "DV-03/25/0002"
    assert "already taken" in caplog.text


def test_second_collision_surfaces_a_conflict(monkeypatch, estimate_payload):
    create_document("estimate", estimate_payload())
    monkeypatch.setattr(numbering, "allocate_document_number", Mock(return_value="DV-03/25/0001"))

    with pytest.raises(DocumentNumberConflict):
        create_document("estimate", estimate_payload())


def test_duplicate_manual_number_is_not_replaced(estimate_payload):
    create_document("estimate", estimate_payload(document_id="DV-03/25/0007"))

    with pytest.raises(DocumentNumberConflict):
        create_document("estimate", estimate_payload(document_id="DV-03/25/0007"))


@pytest.mark.parametrize("document_id", ["DV-03/25/MANUAL", "FC-03/25/0001", "DV-13/25/0001", "DV-03/25/"])
def test_malformed_manual_number_is_rejected(estimate_payload, document_id):
    with pytest.raises(DocumentValidationError) as excinfo:
        create_document("estimate", estimate_payload(document_id=document_id))

    assert "document_id" in excinfo.value.message_dict
    assert not Estimate.objects.exists()


def test_non_numeric_numbers_do_not_reset_the_serial(estimate_payload):
    """Rows typed in elsewhere with a text serial are ignored by allocation."""

    create_document("estimate", estimate_payload())
    Estimate.objects.filter(document_id="DV-03/25/0001").update(document_id="DV-03/25/0002")
    other = create_document("estimate", estimate_payload())
    Estimate.objects.filter(pk=other.pk).update(document_id="DV-03/25/MANUAL-LONGER")

    assert allocate_document_number("estimate", datetime.date(2025, 3, 1)) == "DV-03/25/0003"


def test_is_document_number():
    assert is_document_number("invoice", "FC-03/25/0001")
    assert is_document_number("invoice", "FC-03/25/10000")
    assert not is_document_number("invoice", "FC-03/25/00A1")
    assert not is_document_number("divers", "BL-03/25/0001")
