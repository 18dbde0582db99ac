"""Best-effort notifications."""

from unittest.mock import Mock

from django.db import DatabaseError

from core.models import Notification
from core.services.notifications import notify, notify_low_stock


def test_notify_writes_a_notification(db):
    note = notify("Hello", "World", level=Notification.Level.SUCCESS, key="greeting")

    assert note.pk is not None
    assert note.read is False


def test_same_key_is_debounced_while_unread(db):
    first = notify("A", "a", key="k", debounce_seconds=300)
    second = notify("A", "a", key="k", debounce_seconds=300)

    assert first is not None
    assert second is None
    assert Notification.objects.filter(key="k").count() == 1


def test_read_notifications_do_not_debounce(db):
    notify("A", "a", key="k", debounce_seconds=300)
    Notification.objects.update(read=True)

    assert notify("A", "a", key="k", debounce_seconds=300) is not None


def test_without_debounce_every_call_writes(db):
    notify("A", "a", key="k")
    notify("A", "a", key="k")

    assert Notification.objects.count() == 2


def test_database_error_is_logged_and_swallowed(db, monkeypatch, caplog):
    monkeypatch.setattr(Notification.objects, "create", Mock(side_effect=DatabaseError("locked")))

    assert notify("A", "a") is None
    assert "Could not write notification" in caplog.text
    # the surrounding transaction is still usable
    assert Notification.objects.count() == 0


def test_low_stock_message(product):
    product.min_stock = 5
    note = notify_low_stock(product, reference="BL-03/25/0001")

    assert note.title == "Low Stock Alert"
    assert "after BL-03/25/0001" in note.message
    assert note.key == f"low_stock:{product.pk}"


def test_any_error_is_logged_and_swallowed(db, monkeypatch, caplog):
    monkeypatch.setattr(Notification.objects, "create", Mock(side_effect=RuntimeError("sink down")))

    assert notify("A", "a") is None
    assert "Could not write notification" in caplog.text
