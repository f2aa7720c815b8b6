"""Persistence gateway - port, record snapshots and the SQLAlchemy adapter."""

from .ports import (
    AcknowledgementRecord,
    DocumentGateway,
    DocumentRecord,
    FolderRecord,
    VersionRecord,
)

__all__ = [
    "AcknowledgementRecord",
    "DocumentGateway",
    "DocumentRecord",
    "FolderRecord",
    "VersionRecord",
]
