"""Document status enums and effective status computation.

State flow:
    DRAFT → SUBMITTED → APPROVED → OBSOLETE
    SUBMITTED → REJECTED
    SUBMITTED → DRAFT (withdraw)

EXPIRED is never stored. It is derived at read time for APPROVED documents
whose expiry date has passed.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Optional

from ..errors import DomainViolationError


class DocumentStatus(str, Enum):
    """Stored document status."""
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"        # Terminal (a new revision starts over)
    OBSOLETE = "OBSOLETE"        # Terminal


class EffectiveStatus(str, Enum):
    """Status as seen by authorization and domain checks."""
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    OBSOLETE = "OBSOLETE"
    EXPIRED = "EXPIRED"


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they are stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def get_effective_document_status(document, now: Optional[datetime] = None) -> EffectiveStatus:
    """Determine the status a document effectively has right now.

    An APPROVED document whose expiry_date lies strictly before ``now`` is
    EXPIRED; every other document keeps its stored status. The result is
    advisory and never written back.

    Args:
        document: Any object exposing ``status`` and ``expiry_date``
        now: Reference instant (defaults to the current UTC time)

    Returns:
        EffectiveStatus: Derived status

    Example:
        >>> doc = SimpleNamespace(status=DocumentStatus.APPROVED, expiry_date=None)
        >>> get_effective_document_status(doc)
        <EffectiveStatus.APPROVED: 'APPROVED'>
    """
    stored = EffectiveStatus(DocumentStatus(document.status).value)
    expiry_date = getattr(document, "expiry_date", None)
    if stored is not EffectiveStatus.APPROVED or expiry_date is None:
        return stored

    reference = _as_utc(now) if now is not None else datetime.now(timezone.utc)
    if _as_utc(expiry_date) < reference:
        return EffectiveStatus.EXPIRED
    return stored


def require_effective_status(
    document,
    allowed: Iterable[EffectiveStatus],
    operation: str,
    now: Optional[datetime] = None,
) -> EffectiveStatus:
    """Enforce an effective-status precondition for a domain operation.

    Args:
        document: Document to check
        allowed: Effective statuses under which the operation may proceed
        operation: Human readable operation name used in the error message
        now: Reference instant for the expiry check

    Returns:
        EffectiveStatus: The effective status that satisfied the check

    Raises:
        DomainViolationError: If the document is EXPIRED or in another status
    """
    allowed = frozenset(allowed)
    effective = get_effective_document_status(document, now=now)
    if effective is EffectiveStatus.EXPIRED and EffectiveStatus.EXPIRED not in allowed:
        raise DomainViolationError(f"Cannot {operation}: the document has expired")
    if effective not in allowed:
        expected = ", ".join(sorted(s.value for s in allowed))
        raise DomainViolationError(
            f"Cannot {operation}: document status is {effective.value} "
            f"(allowed: {expected})"
        )
    return effective
