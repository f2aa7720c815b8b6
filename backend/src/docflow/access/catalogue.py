"""Permission catalogue seeding.

Permission codes are global and immutable; seeding only inserts codes that
are missing and never renames or deletes existing rows.
"""

import logging
from typing import Iterable, List, Union

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models.user import Permission
from .permissions import PermissionCode, classify, code_value

logger = logging.getLogger(__name__)


def describe(code: Union[PermissionCode, str]) -> str:
    """Default description, e.g. "Document approve (GATED)"."""
    value = code_value(code)
    words = value.replace("DMS_", "").replace("_", " ").capitalize()
    return f"{words} ({classify(value).value})"


def seed_permission_catalogue(
    db: Session, codes: Iterable[Union[PermissionCode, str]] = tuple(PermissionCode)
) -> List[str]:
    """Insert missing permission codes.

    The caller owns the transaction; rows are flushed, not committed.

    Returns:
        List[str]: Codes that were inserted
    """
    wanted = [code_value(code) for code in codes]
    existing = set(
        db.execute(select(Permission.code).where(Permission.code.in_(wanted))).scalars()
    )
    inserted = [code for code in wanted if code not in existing]
    db.add_all(Permission(code=code, description=describe(code)) for code in inserted)
    db.flush()
    if inserted:
        logger.info(f"Seeded {len(inserted)} permission codes")
    return inserted
