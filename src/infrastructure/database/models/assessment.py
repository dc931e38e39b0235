# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Question bank and exam models.

ExamQuestion is the link table between the two. A question may appear
at most once per exam (uq_exam_questions_exam_question) and cannot be
deleted while any exam still references it (ondelete=RESTRICT).
"""

from typing import Any, Optional

from sqlalchemy import Boolean, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import (
    Base,
    TenantScopedMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from src.infrastructure.database.models.school import Subject
from src.infrastructure.database.models.user import User


class Question(Base, UUIDPrimaryKeyMixin, TimestampMixin, TenantScopedMixin):
    """A single question bank entry.

    answers holds an ordered list of {"text": str, "is_correct": bool}
    objects for multiple_choice questions and is empty for essays.
    """

    __tablename__ = "questions"

    subject_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("subjects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    topic: Mapped[str] = mapped_column(String(255), nullable=False)
    difficulty: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    answers: Mapped[list[dict[str, Any]]] = mapped_column(JSONB, nullable=False, default=list)
    image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    tags: Mapped[list[str]] = mapped_column(ARRAY(String(100)), nullable=False, default=list)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_by: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    subject: Mapped[Subject] = relationship(lazy="raise")
    creator: Mapped[User] = relationship(lazy="raise")

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Question(id={self.id}, difficulty={self.difficulty}, type={self.type})>"


class Exam(Base, UUIDPrimaryKeyMixin, TimestampMixin, TenantScopedMixin):
    """Timed, scored container of questions."""

    __tablename__ = "exams"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    subject_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("subjects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    total_points: Mapped[int] = mapped_column(Integer, nullable=False)
    is_randomized: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_by: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    subject: Mapped[Subject] = relationship(lazy="raise")
    creator: Mapped[User] = relationship(lazy="raise")
    exam_questions: Mapped[list["ExamQuestion"]] = relationship(
        back_populates="exam",
        order_by="ExamQuestion.order",
        lazy="raise",
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Exam(id={self.id}, title={self.title})>"


class ExamQuestion(Base, UUIDPrimaryKeyMixin, TimestampMixin, TenantScopedMixin):
    """Link row placing one question in one exam with its points and order."""

    __tablename__ = "exam_questions"
    __table_args__ = (
        UniqueConstraint("exam_id", "question_id", name="uq_exam_questions_exam_question"),
    )

    exam_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("exams.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    question_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("questions.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    points: Mapped[float] = mapped_column(Float, nullable=False)
    order: Mapped[int] = mapped_column(Integer, nullable=False)

    exam: Mapped[Exam] = relationship(back_populates="exam_questions", lazy="raise")
    question: Mapped[Question] = relationship(lazy="raise")

    def __repr__(self) -> str:
        return (
            f"<ExamQuestion(exam_id={self.exam_id}, question_id={self.question_id}, "
            f"order={self.order})>"
        )
