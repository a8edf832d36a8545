"""Competency seeding, scored attempts and course progress."""

from datetime import date
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.competency.service import seed_assessment
from app.core.config import CompetencyDefaults
from app.core.models import CompetencyAssessment, CompetencyType


async def _enrolled_student(client: AsyncClient, course_id: int, student_id: str = "STU-C1") -> str:
    response = await client.post(
        "/api/v1/students",
        json={"student_id": student_id, "first_name": "Lia", "last_name": "Santos", "course_id": course_id},
    )
    assert response.status_code == 201
    return student_id


@pytest.mark.asyncio
async def test_seed_attempts_increment_by_one(client: AsyncClient, db_session: AsyncSession, make_course) -> None:
    course_id = await make_course()
    student_id = await _enrolled_student(client, course_id)

    second = await seed_assessment(db_session, student_id, course_id)
    third = await seed_assessment(db_session, student_id, course_id)
    await db_session.commit()

    assert (second.attempt, third.attempt) == (2, 3)
    attempts = (
        await db_session.execute(
            select(CompetencyAssessment.attempt_number)
            .where(CompetencyAssessment.student_id == student_id)
            .order_by(CompetencyAssessment.attempt_number)
        )
    ).scalars().all()
    assert attempts == [1, 2, 3]


@pytest.mark.asyncio
async def test_seed_row_is_failing_placeholder(client: AsyncClient, db_session: AsyncSession, make_course) -> None:
    course_id = await make_course()
    student_id = await _enrolled_student(client, course_id)

    row = (
        await db_session.execute(
            select(
                CompetencyAssessment.score,
                CompetencyAssessment.passing_score,
                CompetencyAssessment.exam_status,
                CompetencyAssessment.assessment_date,
            ).where(CompetencyAssessment.student_id == student_id)
        )
    ).one()
    assert row.score == Decimal("0.00")
    assert row.passing_score == Decimal("75.00")
    assert row.exam_status == "failed"
    assert row.assessment_date == date.today()


@pytest.mark.asyncio
async def test_seed_falls_back_to_configured_defaults(
    client: AsyncClient, db_session: AsyncSession, make_course
) -> None:
    course_id = await make_course()
    student_id = await _enrolled_student(client, course_id)
    defaults = CompetencyDefaults(type_id=42, type_name="Basic", passing_score=Decimal("60.00"))

    info = await seed_assessment(
        db_session, student_id, course_id, competency_type_name="Expert", defaults=defaults
    )
    await db_session.commit()

    assert info.type == "Basic"
    assert info.attempt == 1
    row = (
        await db_session.execute(
            select(CompetencyAssessment.passing_score).where(CompetencyAssessment.competency_type_id == 42)
        )
    ).scalar_one()
    assert row == Decimal("60.00")


@pytest.mark.asyncio
async def test_add_scored_assessment(client: AsyncClient, db_session: AsyncSession, make_course) -> None:
    course_id = await make_course()
    student_id = await _enrolled_student(client, course_id)
    basic_id = (
        await db_session.execute(select(CompetencyType.type_id).where(CompetencyType.type_name == "Basic"))
    ).scalar_one()

    response = await client.post(
        "/api/v1/students/competency-assessments",
        json={"student_id": student_id, "course_id": course_id, "competency_type_id": basic_id, "score": 82.5},
    )
    assert response.status_code == 201
    assessment = response.json()["assessment"]
    assert assessment["attempt_number"] == 2
    assert assessment["status"] == "completed"
    assert assessment["is_passed"] is True
    assert assessment["passing_score"] == 75.0


@pytest.mark.asyncio
async def test_add_assessment_below_passing_score_fails(
    client: AsyncClient, db_session: AsyncSession, make_course
) -> None:
    course_id = await make_course()
    student_id = await _enrolled_student(client, course_id)
    basic_id = (
        await db_session.execute(select(CompetencyType.type_id).where(CompetencyType.type_name == "Basic"))
    ).scalar_one()

    response = await client.post(
        "/api/v1/students/competency-assessments",
        json={"student_id": student_id, "course_id": course_id, "competency_type_id": basic_id, "score": 74.99},
    )
    assert response.status_code == 201
    assert response.json()["assessment"]["status"] == "failed"


@pytest.mark.asyncio
async def test_add_assessment_requires_enrollment(client: AsyncClient, make_course, count_rows) -> None:
    course_id = await make_course()
    other_course = await make_course("Other")
    student_id = await _enrolled_student(client, course_id)

    response = await client.post(
        "/api/v1/students/competency-assessments",
        json={"student_id": student_id, "course_id": other_course, "competency_type_id": 1, "score": 90},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Student is not enrolled in this course"
    assert await count_rows(CompetencyAssessment) == 1


@pytest.mark.asyncio
async def test_add_assessment_missing_fields(client: AsyncClient) -> None:
    response = await client.post("/api/v1/students/competency-assessments", json={"student_id": "X"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_add_assessment_unknown_type(client: AsyncClient, make_course) -> None:
    course_id = await make_course()
    student_id = await _enrolled_student(client, course_id)
    response = await client.post(
        "/api/v1/students/competency-assessments",
        json={"student_id": student_id, "course_id": course_id, "competency_type_id": 777},
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_course_competency_progress(client: AsyncClient, db_session: AsyncSession, make_course) -> None:
    course_id = await make_course()
    student_id = await _enrolled_student(client, course_id)
    db_session.add(CompetencyType(type_name="Advanced", passing_score=Decimal("85.00")))
    await db_session.commit()
    advanced_id = (
        await db_session.execute(select(CompetencyType.type_id).where(CompetencyType.type_name == "Advanced"))
    ).scalar_one()
    basic_id = (
        await db_session.execute(select(CompetencyType.type_id).where(CompetencyType.type_name == "Basic"))
    ).scalar_one()

    for type_id, score in ((basic_id, 90), (advanced_id, 50)):
        response = await client.post(
            "/api/v1/students/competency-assessments",
            json={"student_id": student_id, "course_id": course_id, "competency_type_id": type_id, "score": score},
        )
        assert response.status_code == 201

    response = await client.get(f"/api/v1/students/{student_id}/courses/{course_id}/competency")
    assert response.status_code == 200
    data = response.json()
    assert data["completion_rate"] == 50.0
    by_type = {c["competency_type"]: c for c in data["competencies"]}
    assert by_type["Basic"]["attempts"] == 2
    assert by_type["Basic"]["is_passed"] is True
    assert by_type["Basic"]["best_score"] == 90.0
    assert by_type["Advanced"]["latest_status"] == "failed"
    assert by_type["Advanced"]["is_passed"] is False


@pytest.mark.asyncio
async def test_course_competency_not_found(client: AsyncClient) -> None:
    response = await client.get("/api/v1/students/NOPE/courses/1/competency")
    assert response.status_code == 404
