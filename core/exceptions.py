"""Error types raised by the document engine.

Validation and not-found errors are raised before any ledger effect happens.
Anything else escaping a coordinator call has already been rolled back by the
surrounding ``transaction.atomic`` block.
"""

from django.core.exceptions import ObjectDoesNotExist, ValidationError


class DocumentValidationError(ValidationError):
    """Missing or invalid header/line fields, or an unreachable status."""


class DocumentNotFound(ObjectDoesNotExist):
    """The document id to mutate does not exist."""


class DocumentNumberConflict(Exception):
    """Two allocations in the same scope produced the same number.

    Raised after the single internal retry collided as well, or straight away
    when the caller supplied a number that is already taken. Safe to retry.
    """
