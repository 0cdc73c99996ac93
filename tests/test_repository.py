"""Tests for session, assessment and result storage."""
import json

import pytest

from interprep.infrastructure.data import InMemoryStorage, InterviewRepository, JsonFileStorage
from interprep.interview.models import (
    Assessment, AssessmentConfig, AssessmentResult, Badge, Difficulty,
    InterviewConfig, InterviewSession, InterviewSummary, InterviewType,
)

from conftest import entry


def make_session(date="2024-05-01T12:00:00+00:00", average=70):
    return InterviewSession(
        date=date,
        type="Behavioral - Software Engineer",
        duration=4,
        average_score=average,
        config=InterviewConfig(),
        transcript=(entry(score=average, duration=42, notes="STAR"),),
        summary=InterviewSummary("Nice.", ("Tip",), badges_earned=(Badge.TIME_MANAGER,)),
    )


def make_assessment(assessment_id="a1", created_by="rita", created_at="2024-05-01T00:00:00+00:00"):
    return Assessment(
        id=assessment_id,
        job_role="Data Analyst",
        created_by=created_by,
        created_at=created_at,
        config=AssessmentConfig(type=InterviewType.TECHNICAL, difficulty=Difficulty.HARD),
        questions=("One?", "Two?"),
    )


@pytest.fixture(params=["memory", "json"])
def repository(request, tmp_path):
    if request.param == "memory":
        return InterviewRepository(InMemoryStorage())
    return InterviewRepository(JsonFileStorage(str(tmp_path / "data")))


class TestSessions:

    def test_save_and_load(self, repository):
        session = make_session()
        record_id = repository.save_session(session)

        assert repository.get_session(record_id) == session

    def test_unknown_session(self, repository):
        assert repository.get_session("missing") is None

    def test_list_newest_first(self, repository):
        repository.save_session(make_session(date="2024-05-01T12:00:00+00:00", average=50))
        repository.save_session(make_session(date="2024-06-01T12:00:00+00:00", average=90))

        assert [s.average_score for s in repository.list_sessions()] == [90, 50]


class TestAssessments:

    def test_save_and_load(self, repository):
        assessment = make_assessment()
        repository.save_assessment(assessment)

        loaded = repository.get_assessment("a1")
        assert loaded == assessment
        assert loaded.interview_config() == InterviewConfig(
            type=InterviewType.TECHNICAL, difficulty=Difficulty.HARD, role="Data Analyst",
        )

    def test_filter_by_recruiter(self, repository):
        repository.save_assessment(make_assessment("a1", created_by="rita"))
        repository.save_assessment(make_assessment("a2", created_by="sam"))

        assert [a.id for a in repository.list_assessments(created_by="sam")] == ["a2"]
        assert len(repository.list_assessments()) == 2

    def test_results_by_assessment(self, repository):
        for result_id, assessment_id in (("r1", "a1"), ("r2", "a2"), ("r3", "a1")):
            repository.save_result(AssessmentResult(
                id=result_id,
                assessment_id=assessment_id,
                candidate_name="Jane",
                candidate_email="jane@example.com",
                completed_at=f"2024-05-0{result_id[1]}T00:00:00+00:00",
                session=make_session(),
            ))

        assert [r.id for r in repository.list_results("a1")] == ["r3", "r1"]
        assert repository.list_results("a1")[0].session == make_session()


class TestJsonFileStorage:

    def test_documents_are_camel_case_json(self, tmp_path):
        repository = InterviewRepository(JsonFileStorage(str(tmp_path)))
        record_id = repository.save_session(make_session())

        with open(tmp_path / "sessions" / f"{record_id}.json", encoding="utf-8") as f:
            document = json.load(f)

        assert document["id"] == record_id
        assert document["averageScore"] == 70
        assert document["summary"]["badgesEarned"] == ["Time Manager"]
        assert document["transcript"][0]["notes"] == "STAR"

    def test_unreadable_records_are_skipped(self, tmp_path):
        storage = JsonFileStorage(str(tmp_path))
        storage.put("sessions", "good", {"id": "good"})
        (tmp_path / "sessions" / "bad.json").write_text("{not json", encoding="utf-8")

        assert storage.list("sessions") == [{"id": "good"}]

    def test_ids_cannot_escape_the_collection(self, tmp_path):
        storage = JsonFileStorage(str(tmp_path))
        storage.put("sessions", "secret", {"id": "secret"})

        assert storage.get("assessments", "../sessions/secret") is None
        assert storage.get("assessments", "..") is None
        with pytest.raises(ValueError):
            storage.put("assessments", "../sessions/evil", {"id": "evil"})
        assert storage.list("sessions") == [{"id": "secret"}]

    def test_corrupt_record_reads_as_missing(self, tmp_path):
        storage = JsonFileStorage(str(tmp_path))
        storage.put("assessments", "ok", {"id": "ok"})
        (tmp_path / "assessments" / "broken.json").write_text("{not json", encoding="utf-8")

        assert storage.get("assessments", "broken") is None
        assert InterviewRepository(storage).get_assessment("broken") is None
