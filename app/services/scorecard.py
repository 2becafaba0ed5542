"""Report-card scorecards folded from the grade ledger."""
from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Grade, Semester, Subject


class LedgerRow(Protocol):
    semester_id: int
    semester_name: str
    subject_id: int
    subject_name: str
    type: str
    grade: float
    min_score: float
    max_score: float


def _round(value: float) -> float:
    """Round half up to 2 decimals."""
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _average(total: float, count: int) -> float:
    return _round(total / count) if count > 0 else 0


def fold_scorecard(rows: Iterable[LedgerRow]) -> list[dict[str, Any]]:
    """
    Group ledger rows by semester, then subject, then grade type.

    Averages are plain means of the raw grades at each level. Groups keep the
    order in which their first row appears.
    """
    semesters: dict[int, dict[str, Any]] = {}

    for row in rows:
        semester = semesters.setdefault(
            row.semester_id,
            {"semester_id": row.semester_id, "semester_name": row.semester_name, "subjects": {}, "total": 0.0, "count": 0},
        )
        subject = semester["subjects"].setdefault(
            row.subject_id,
            {"subject_id": row.subject_id, "subject_name": row.subject_name, "grade_types": {}, "total": 0.0, "count": 0},
        )
        grade_type = subject["grade_types"].setdefault(
            row.type, {"type": row.type, "assignments": [], "total": 0.0, "count": 0}
        )

        score = float(row.grade or 0)
        max_score = float(row.max_score or 0)
        percentage = (score / max_score) * 100 if max_score > 0 else 0

        grade_type["assignments"].append(
            {
                "score": score,
                "min_score": float(row.min_score or 0),
                "max_score": max_score,
                "percentage": _round(percentage),
            }
        )
        for bucket in (grade_type, subject, semester):
            bucket["total"] += score
            bucket["count"] += 1

    return [
        {
            "semester_id": semester["semester_id"],
            "semester_name": semester["semester_name"],
            "subjects": [
                {
                    "subject_id": subject["subject_id"],
                    "subject_name": subject["subject_name"],
                    "grade_types": [
                        {
                            "type": grade_type["type"],
                            "assignments": grade_type["assignments"],
                            "typeAverage": _average(grade_type["total"], grade_type["count"]),
                            "assignment_count": grade_type["count"],
                            "typeTotal": _round(grade_type["total"]),
                        }
                        for grade_type in subject["grade_types"].values()
                    ],
                    "subjectAverage": _average(subject["total"], subject["count"]),
                    "totalAssignments": subject["count"],
                    "totalScore": _round(subject["total"]),
                }
                for subject in semester["subjects"].values()
            ],
            "semesterAverage": _average(semester["total"], semester["count"]),
            "totalSemesterAssignments": semester["count"],
            "totalSemesterScore": _round(semester["total"]),
        }
        for semester in semesters.values()
    ]


class ScorecardAggregator:
    async def build_scorecard(self, session: AsyncSession, archive_id: int) -> list[dict[str, Any]]:
        """Read every grade of an archive with subject and semester names and fold them."""
        stmt = (
            select(
                Grade.semester_id,
                Semester.semester_name,
                Grade.subject_id,
                Subject.name.label("subject_name"),
                Grade.type,
                Grade.grade,
                Grade.min_score,
                Grade.max_score,
            )
            .join(Subject, Grade.subject_id == Subject.id)
            .join(Semester, Grade.semester_id == Semester.id)
            .where(Grade.archive_id == archive_id)
            .order_by(Grade.id)
        )
        result = await session.execute(stmt)
        return fold_scorecard(result.all())
