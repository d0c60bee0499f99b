"""
Saved Specification Model
=========================

A generated document the user chose to keep, together with the idea text
and module selection that produced it. Records are private to their owner;
every query filters on owner_id. Names are free text and need not be
unique.

saved_at is the last write time (updated_at), so a re-save moves the
record to the top of the owner's list.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from sqlalchemy import JSON, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from specforge.db.base import Base, TimestampMixin


class SavedSpec(Base, TimestampMixin):

    __tablename__ = "saved_specs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    owner_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    idea_text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    generated_document: Mapped[str] = mapped_column(Text, nullable=False, default="")
    selected_module_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    @property
    def saved_at(self) -> datetime:
        return self.updated_at
