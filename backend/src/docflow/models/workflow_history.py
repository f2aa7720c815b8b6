"""WorkflowHistory SQLAlchemy model"""

from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Index, Text, Uuid

from .base import Base, utcnow


class WorkflowHistory(Base):
    """Append-only trail of status transitions, one row per transition."""
    __tablename__ = "workflow_history"
    __table_args__ = (
        Index("ix_workflow_history_tenant_document", "tenant_id", "document_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenant.id", ondelete="RESTRICT"), nullable=False)
    document_id = Column(Uuid, ForeignKey("document.id", ondelete="CASCADE"), nullable=False)
    action = Column(Text, nullable=False)
    from_status = Column(Text, nullable=False)
    to_status = Column(Text, nullable=False)
    comment = Column(Text, nullable=True)
    actor_id = Column(Uuid, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
