"""
MouzaForm Backend — Form Data SQLAlchemy Models
=================================================

What:  ORM models for the `form_data` (location) and `mouza_info`
       (survey-sheet entry) tables.
Who:   Used by the store gateway for every statement and by
       Database.ensure_schema() for table creation.

Table Design:
    form_data(id, division, district, upazila, union)
    mouza_info(id, form_data_id → form_data.id ON DELETE CASCADE,
               mouzaName, surveyType, sheetNumber)

    - Integer AUTOINCREMENT keys: store-assigned, increasing, never reused
    - Column names match the JSON the frontend sends (mouzaName, not
      mouza_name); Python attributes stay snake_case
    - `union` is an SQL keyword; SQLAlchemy quotes it in every statement
"""

from typing import Optional

from sqlalchemy import ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from mouzaform.database import Base


class FormData(Base):
    """
    A location record: one submitted form.

    Lifecycle:
        1. Created by the submission workflow
        2. Never updated in place
        3. Deleted explicitly; its mouza_info rows go with it
    """

    __tablename__ = "form_data"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    division: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    district: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    upazila: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    union: Mapped[Optional[str]] = mapped_column("union", Text, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<FormData(id={self.id}, division='{self.division}', "
            f"district='{self.district}', upazila='{self.upazila}')>"
        )


class MouzaInfo(Base):
    """A survey-sheet entry owned by exactly one FormData row."""

    __tablename__ = "mouza_info"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    form_data_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("form_data.id", ondelete="CASCADE"),
        nullable=False,
    )
    mouza_name: Mapped[Optional[str]] = mapped_column("mouzaName", Text, nullable=True)
    survey_type: Mapped[Optional[str]] = mapped_column("surveyType", Text, nullable=True)
    sheet_number: Mapped[Optional[str]] = mapped_column("sheetNumber", Text, nullable=True)

    # Every read of children filters on the parent key
    __table_args__ = (
        Index("idx_mouza_info_form_data_id", "form_data_id"),
        {"sqlite_autoincrement": True},
    )

    def __repr__(self) -> str:
        return (
            f"<MouzaInfo(id={self.id}, form_data_id={self.form_data_id}, "
            f"mouza_name='{self.mouza_name}')>"
        )
