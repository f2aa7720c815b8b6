"""Pytest fixtures for the DocFlow core.

Provides reusable test fixtures for:
- A file-backed SQLite database per test (two sessions can race on it)
- Tenants, the permission catalogue, roles, users and folders
- Document rows in the common workflow states

Builders for ad-hoc data live in factories.py.

Usage:
    def test_submit(gateway, audit, author, draft_document):
        transition_document_status(gateway, audit, draft_document.id, ...)
"""

import os

# Set environment variables BEFORE any docflow import so cached settings see them
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from docflow.audit.service import SqlAuditEmitter
from docflow.models import Base, Document, Folder, Role, Tenant, User
from docflow.persistence.sqlalchemy_gateway import SqlAlchemyDocumentGateway
from docflow.workflow.status import DocumentStatus

from factories import (
    APPROVER_CODES,
    AUTHOR_CODES,
    READER_CODES,
    make_document,
    make_folder,
    make_role,
    make_tenant,
    make_user,
    past,
    seed_permissions,
)


@pytest.fixture(scope="function")
def db_engine(tmp_path):
    """SQLite engine on a fresh file with all tables created."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'docflow.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db_session(session_factory) -> Generator[Session, None, None]:
    """Create a fresh database session for each test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def gateway(db_session: Session) -> SqlAlchemyDocumentGateway:
    return SqlAlchemyDocumentGateway(db_session)


@pytest.fixture
def audit(db_session: Session) -> SqlAuditEmitter:
    return SqlAuditEmitter(db_session)


@pytest.fixture
def permission_catalogue(db_session: Session) -> dict:
    return seed_permissions(db_session)


@pytest.fixture
def tenant(db_session: Session) -> Tenant:
    return make_tenant(db_session, "acme")


@pytest.fixture
def other_tenant(db_session: Session) -> Tenant:
    return make_tenant(db_session, "globex")


@pytest.fixture
def author_role(db_session, tenant, permission_catalogue) -> Role:
    return make_role(db_session, tenant, "Author", AUTHOR_CODES)


@pytest.fixture
def approver_role(db_session, tenant, permission_catalogue) -> Role:
    return make_role(db_session, tenant, "Approver", APPROVER_CODES)


@pytest.fixture
def reader_role(db_session, tenant, permission_catalogue) -> Role:
    return make_role(db_session, tenant, "Reader", READER_CODES)


@pytest.fixture
def author(db_session, tenant, author_role) -> User:
    return make_user(db_session, tenant, "author@acme.test", [author_role])


@pytest.fixture
def approver(db_session, tenant, approver_role) -> User:
    return make_user(db_session, tenant, "approver@acme.test", [approver_role])


@pytest.fixture
def reader(db_session, tenant, reader_role) -> User:
    return make_user(db_session, tenant, "reader@acme.test", [reader_role])


@pytest.fixture
def folder(db_session, tenant) -> Folder:
    return make_folder(db_session, tenant)


@pytest.fixture
def draft_document(db_session, folder, author) -> Document:
    return make_document(db_session, folder, author)


@pytest.fixture
def submitted_document(db_session, folder, author) -> Document:
    return make_document(db_session, folder, author, status=DocumentStatus.SUBMITTED)


@pytest.fixture
def approved_document(db_session, folder, author) -> Document:
    return make_document(
        db_session, folder, author, status=DocumentStatus.APPROVED, with_version=True
    )


@pytest.fixture
def expired_document(db_session, folder, author) -> Document:
    return make_document(
        db_session,
        folder,
        author,
        status=DocumentStatus.APPROVED,
        expiry_date=past(),
        with_version=True,
    )
