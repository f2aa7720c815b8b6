"""Unit tests for the closed audit metadata model."""

from uuid import uuid4

import pytest
from pydantic import ValidationError

from docflow.audit.schemas import AUDIT_METADATA_VERSION, AuditMetadata

pytestmark = pytest.mark.unit


class TestAuditMetadata:

    def test_unknown_fields_are_rejected(self):
        with pytest.raises(ValidationError):
            AuditMetadata(from_status="DRAFT", free_text="anything")

    def test_json_omits_unset_fields_and_carries_version(self):
        data = AuditMetadata(from_status="DRAFT", to_status="SUBMITTED").to_json()

        assert data == {
            "schema_version": AUDIT_METADATA_VERSION,
            "from_status": "DRAFT",
            "to_status": "SUBMITTED",
        }

    def test_uuids_are_serialized_as_strings(self):
        folder_id = uuid4()
        data = AuditMetadata(permission_code="DMS_VIEW", folder_id=folder_id).to_json()

        assert data["folder_id"] == str(folder_id)

    def test_metadata_is_immutable(self):
        metadata = AuditMetadata(comment="ok")

        with pytest.raises(ValidationError):
            metadata.comment = "changed"
