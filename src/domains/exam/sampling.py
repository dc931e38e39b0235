# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Stratified sampling of the question bank.

Sampling only reads. A request is fully planned, every bucket drawn and
the total verified, before the caller writes anything, so a short bank
never leaves a partial exam behind.
"""

import logging
from dataclasses import dataclass
from typing import Mapping, Union

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.exam.exceptions import InsufficientQuestionsError, InvalidCompositionError
from src.infrastructure.database.models import Question
from src.models.common import Difficulty

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlannedQuestion:
    """One sampled question with its place in the exam."""

    question_id: str
    difficulty: str
    points: float
    order: int


def points_per_question(total_points: int, total_questions: int) -> int:
    """Even split of the exam's points, rounded down."""
    if total_questions <= 0:
        raise InvalidCompositionError("total_questions must be positive")
    points = total_points // total_questions
    if points < 1:
        raise InvalidCompositionError(
            f"total_points {total_points} is too small for {total_questions} questions"
        )
    return points


def _bucket_name(difficulty: Union[Difficulty, str]) -> str:
    return difficulty.value if isinstance(difficulty, Difficulty) else str(difficulty)


async def sample_bucket(
    db: AsyncSession,
    tenant_id: str,
    subject_id: str,
    difficulty: str,
    count: int,
) -> list[str]:
    """Uniformly draw up to count question ids of one difficulty, without replacement."""
    stmt = (
        select(Question.id)
        .where(
            and_(
                Question.tenant_id == tenant_id,
                Question.subject_id == subject_id,
                Question.difficulty == difficulty,
            )
        )
        .order_by(func.random())
        .limit(count)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def plan_auto_exam(
    db: AsyncSession,
    tenant_id: str,
    subject_id: str,
    difficulty_distribution: Mapping[Union[Difficulty, str], int],
    total_questions: int,
    total_points: int,
) -> list[PlannedQuestion]:
    """Draw every requested bucket and lay the questions out in order.

    Buckets are drawn in the order the distribution lists them; order
    numbers run on across buckets starting at 1. Buckets with a zero
    count are skipped.

    Args:
        db: Session used for the reads.
        tenant_id: Tenant whose bank is sampled.
        subject_id: Subject the questions must belong to.
        difficulty_distribution: Questions to draw per difficulty.
        total_questions: Expected overall count.
        total_points: Exam total, split evenly across questions.

    Returns:
        The planned questions.

    Raises:
        InsufficientQuestionsError: If a bucket has too few questions.
        InvalidCompositionError: If the counts do not add up to total_questions.
    """
    points = points_per_question(total_points, total_questions)
    planned: list[PlannedQuestion] = []

    for difficulty, count in difficulty_distribution.items():
        if count <= 0:
            continue
        bucket = _bucket_name(difficulty)
        ids = await sample_bucket(db, tenant_id, subject_id, bucket, count)
        if len(ids) < count:
            raise InsufficientQuestionsError(bucket, len(ids), count)

        for question_id in ids:
            planned.append(
                PlannedQuestion(
                    question_id=question_id,
                    difficulty=bucket,
                    points=points,
                    order=len(planned) + 1,
                )
            )
        logger.debug("Sampled %d %s questions for subject %s", count, bucket, subject_id)

    if len(planned) != total_questions:
        raise InvalidCompositionError(
            f"Sampled {len(planned)} questions but {total_questions} were requested",
            {"sampled": len(planned), "requested": total_questions},
        )

    return planned
