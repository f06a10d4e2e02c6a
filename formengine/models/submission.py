"""FormSubmission model for accepted submissions."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, JSON, String, text
from sqlalchemy.orm import Mapped, mapped_column

from formengine.models.database import Base
from formengine.models.form import new_id


class FormSubmission(Base):
    """Model for storing a validated submission.

    Attributes:
        id: Primary key (UUID string)
        form_id: Foreign key to forms table
        data: Submitted values keyed by field name, in JSON form
        client_info: Request metadata (user agent, remote address)
        submitted_at: When the submission was accepted
    """

    __tablename__ = "form_submissions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    form_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("forms.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    data: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
        comment="Submitted values keyed by field name"
    )
    client_info: Mapped[Optional[dict]] = mapped_column(
        JSON,
        nullable=True,
        comment="Request metadata"
    )
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_submissions_form_submitted", "form_id", "submitted_at"),
    )

    def __repr__(self) -> str:
        return f"<FormSubmission(id={self.id}, form_id={self.form_id})>"
