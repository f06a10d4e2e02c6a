"""Form definition models.

A form owns ordered steps, a step owns ordered fields, and an option-based
field owns ordered options. Settings, conditions and validation rules are
stored as JSON next to the row they belong to.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from formengine.models.database import Base


def new_id() -> str:
    return str(uuid.uuid4())


class Form(Base):
    """Model for a stored form definition.

    Attributes:
        id: Primary key (UUID string)
        slug: URL identifier, unique across live and deleted forms
        name: Human-readable name
        description: Optional description
        settings: JSON presentation/submission settings
        created_at: When the form was first saved
        updated_at: Last time the definition was replaced
        deleted_at: Soft-delete marker (NULL for live forms)
        steps: Ordered steps
    """

    __tablename__ = "forms"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    slug: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        unique=True,
        comment="URL identifier"
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    settings: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
        comment="Presentation and submission settings"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="Soft-delete timestamp (NULL for live forms)"
    )

    steps: Mapped[list["FormStep"]] = relationship(
        "FormStep",
        back_populates="form",
        cascade="all, delete-orphan",
        order_by="FormStep.sort_order",
    )

    __table_args__ = (
        Index("idx_forms_deleted_at", "deleted_at"),
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def mark_deleted(self) -> None:
        """Soft-delete the form. Submissions are kept."""
        self.deleted_at = datetime.now(timezone.utc)

    def __repr__(self) -> str:
        return f"<Form(id={self.id}, slug={self.slug}, deleted={self.is_deleted})>"


class FormStep(Base):
    """Model for one step of a form."""

    __tablename__ = "form_steps"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    form_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("forms.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    condition: Mapped[Optional[dict]] = mapped_column(
        JSON,
        nullable=True,
        comment="Visibility condition in wire JSON"
    )

    form: Mapped["Form"] = relationship("Form", back_populates="steps")
    fields: Mapped[list["FormField"]] = relationship(
        "FormField",
        back_populates="step",
        cascade="all, delete-orphan",
        order_by="FormField.sort_order",
    )

    def __repr__(self) -> str:
        return f"<FormStep(id={self.id}, name={self.name}, order={self.sort_order})>"


class FormField(Base):
    """Model for one input (or display element) of a step."""

    __tablename__ = "form_fields"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    step_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("form_steps.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    field_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Stored input type name"
    )
    required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    placeholder: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    help_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    default_value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    validation_rules: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    condition: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    ui_options: Mapped[Optional[dict]] = mapped_column(
        JSON,
        nullable=True,
        comment="Free-form rendering hints"
    )

    step: Mapped["FormStep"] = relationship("FormStep", back_populates="fields")
    options: Mapped[list["FormFieldOption"]] = relationship(
        "FormFieldOption",
        back_populates="field",
        cascade="all, delete-orphan",
        order_by="FormFieldOption.sort_order",
    )

    def __repr__(self) -> str:
        return f"<FormField(id={self.id}, name={self.name}, type={self.field_type})>"


class FormFieldOption(Base):
    """Model for one choice of an option-based field."""

    __tablename__ = "form_field_options"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    field_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("form_fields.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    value: Mapped[str] = mapped_column(String(255), nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    field: Mapped["FormField"] = relationship("FormField", back_populates="options")

    def __repr__(self) -> str:
        return f"<FormFieldOption(id={self.id}, value={self.value})>"
