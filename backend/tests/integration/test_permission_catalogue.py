"""Permission catalogue seeding against a real database."""

import pytest
from sqlalchemy import func, select

from docflow.access.catalogue import describe, seed_permission_catalogue
from docflow.access.permissions import PermissionCode
from docflow.models import Permission

pytestmark = pytest.mark.integration


def test_seed_inserts_every_code(db_session):
    inserted = seed_permission_catalogue(db_session)
    db_session.commit()

    assert set(inserted) == {code.value for code in PermissionCode}
    count = db_session.execute(select(func.count()).select_from(Permission)).scalar()
    assert count == len(PermissionCode)


def test_seed_is_idempotent(db_session, permission_catalogue):
    assert seed_permission_catalogue(db_session) == []
    count = db_session.execute(select(func.count()).select_from(Permission)).scalar()
    assert count == len(PermissionCode)


def test_seed_keeps_existing_descriptions(db_session):
    db_session.add(Permission(code=PermissionCode.DMS_VIEW.value, description="custom"))
    db_session.commit()

    inserted = seed_permission_catalogue(db_session)
    db_session.commit()

    assert PermissionCode.DMS_VIEW.value not in inserted
    row = db_session.execute(
        select(Permission).where(Permission.code == PermissionCode.DMS_VIEW.value)
    ).scalar_one()
    assert row.description == "custom"


def test_describe_includes_class():
    assert describe(PermissionCode.DMS_DOCUMENT_APPROVE) == "Document approve (GATED)"
    assert describe("DMS_VIEW").endswith("(READ)")
