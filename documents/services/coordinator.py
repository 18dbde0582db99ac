"""Atomic create/update/delete/transition of documents.

Each operation runs in one transaction: the document header and lines, the
stock ledger, warehouse stock, treasury payments and balances either all
change or none do. Payloads are validated before anything is written.

Edits follow revert-then-apply: the effects of the stored document are undone
from the stored header, then the effects of the edited document are applied
from the edited header. When the effect-relevant state did not change,
nothing is replayed.
"""

import logging
from decimal import Decimal

from django.db import transaction
from django.forms.models import model_to_dict

from core.exceptions import DocumentNotFound, DocumentValidationError
from core.services.numbering import create_numbered, is_document_number
from documents.forms.document_forms import DocumentLineForm, normalize_payload
from documents.models.base import CENT
from documents.services.handlers import get_handler

logger = logging.getLogger(__name__)

LINE_FIELDS = ("product", "description", "quantity", "unit_price")

# Keys handled by the coordinator itself, never by the header form
RESERVED_KEYS = ("items", "status", "document_id")


def _split_payload(payload):
    payload = dict(payload or {})
    reserved = {key: payload.pop(key, None) for key in RESERVED_KEYS}
    return payload, reserved


def _validate_header(handler, data, instance):
    field_names = handler.form_class._meta.fields
    data = normalize_payload(data, field_names)
    if instance.pk:
        # partial update: unspecified fields keep their stored value
        merged = model_to_dict(instance, fields=field_names)
        merged.update(data)
        data = merged
    else:
        data = {**handler.initial_data(), **data}

    form = handler.form_class(data=data, instance=instance)
    if not form.is_valid():
        raise DocumentValidationError(form.errors.as_data())
    return form


def _validate_lines(handler, items):
    if not items:
        raise DocumentValidationError({"items": ["At least one line item is required."]})

    lines = []
    errors = []
    for index, item in enumerate(items, start=1):
        form = DocumentLineForm(data=normalize_payload(item, LINE_FIELDS))
        if not form.is_valid():
            for field, field_errors in form.errors.items():
                label = "" if field == "__all__" else f"{field}: "
                errors.extend(f"Line {index}: {label}{message}" for message in field_errors)
            continue
        lines.append(handler.line_model(**form.cleaned_data))

    if errors:
        raise DocumentValidationError({"items": errors})
    return lines


def _compute_totals(handler, doc, lines):
    doc.subtotal = sum((line.net for line in lines), Decimal("0.00")).quantize(CENT)
    if handler.has_vat:
        doc.vat_amount = (doc.subtotal * doc.vat_rate / Decimal("100")).quantize(CENT)
        doc.total = doc.subtotal + doc.vat_amount


def _move_to_status(doc, target):
    """Fire the FSM transition leading from the current status to ``target``."""
    if not target or doc.status == target:
        return
    for available in doc.get_available_status_transitions():
        if available.target == target:
            getattr(doc, available.name)()
            return
    raise DocumentValidationError(
        {"status": [f"Cannot change status from '{doc.status}' to '{target}'."]}
    )


def _save_lines(doc, lines):
    for line in lines:
        line.pk = None
        line.document = doc
        line.save()


def _lock(handler, pk):
    try:
        return handler.model.objects.select_for_update().get(pk=pk)
    except handler.model.DoesNotExist:
        raise DocumentNotFound(f"{handler.doc_type} {pk} does not exist.") from None


def _reload(handler, doc):
    return handler.model.objects.prefetch_related("lines").get(pk=doc.pk)


def create_document(doc_type, payload):
    """Validate, number and persist a document, then apply its effects."""
    handler = get_handler(doc_type)
    data, reserved = _split_payload(payload)

    if reserved["document_id"] and not is_document_number(doc_type, reserved["document_id"]):
        raise DocumentValidationError(
            {"document_id": [f"'{reserved['document_id']}' is not a valid {doc_type} number."]}
        )

    instance = handler.new_instance()
    lines = _validate_lines(handler, reserved["items"])
    form = _validate_header(handler, data, instance)

    with transaction.atomic():
        doc = form.save(commit=False)
        _compute_totals(handler, doc, lines)
        _move_to_status(doc, reserved["status"])

        def insert(number):
            doc.document_id = number
            doc.save()
            return doc

        doc = create_numbered(doc_type, doc.date, insert, document_id=reserved["document_id"])
        _save_lines(doc, lines)

        if handler.effect_state(doc, lines) is not None:
            handler.apply_effects(doc, lines)
        if reserved["status"]:
            handler.status_changed(doc, None)

    logger.info("Created %s %s (status %s, %s lines)", doc_type, doc.document_id, doc.status, len(lines))
    return _reload(handler, doc)


def update_document(doc_type, pk, payload):
    """Apply a partial edit, optionally with a status change.

    ``items``, when present, replaces all lines. Effects are replayed only
    if the edit touches what they depend on.
    """
    handler = get_handler(doc_type)
    data, reserved = _split_payload(payload)
    if reserved["document_id"]:
        raise DocumentValidationError({"document_id": ["Document numbers cannot be changed."]})

    with transaction.atomic():
        stored = _lock(handler, pk)
        stored_lines = list(stored.lines.all())
        # separate instance: the form mutates it, ``stored`` keeps the pre-edit header
        doc = handler.model.objects.get(pk=pk)

        form = _validate_header(handler, data, doc)
        replace_lines = reserved["items"] is not None
        lines = _validate_lines(handler, reserved["items"]) if replace_lines else stored_lines

        doc = form.save(commit=False)
        _compute_totals(handler, doc, lines)
        _move_to_status(doc, reserved["status"])

        before = handler.effect_state(stored, stored_lines)
        after = handler.effect_state(doc, lines)
        replay = before != after

        if replay and before is not None:
            handler.revert_effects(stored, stored_lines)

        doc.save()
        if replace_lines:
            doc.lines.all().delete()
            _save_lines(doc, lines)

        if replay and after is not None:
            handler.apply_effects(doc, list(doc.lines.all()))
        if doc.status != stored.status:
            handler.status_changed(doc, stored.status)

    if doc.status != stored.status:
        logger.info("Updated %s %s (%s -> %s)", doc_type, doc.document_id, stored.status, doc.status)
    else:
        logger.info("Updated %s %s", doc_type, doc.document_id)
    return _reload(handler, doc)


def transition_document(doc_type, pk, status):
    """Status-only update."""
    return update_document(doc_type, pk, {"status": status})


def delete_document(doc_type, pk):
    """Revert every effect of the document, then remove it with its lines."""
    handler = get_handler(doc_type)

    with transaction.atomic():
        doc = _lock(handler, pk)
        lines = list(doc.lines.all())

        if handler.effect_state(doc, lines) is not None:
            handler.revert_effects(doc, lines)
        handler.before_delete(doc)

        document_id = doc.document_id
        doc.lines.all().delete()
        doc.delete()

    logger.info("Deleted %s %s", doc_type, document_id)
    return document_id
