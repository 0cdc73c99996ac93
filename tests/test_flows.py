"""Tests for the practice and assessment flows."""
import asyncio

import pytest

from interprep.infrastructure.data import InMemoryStorage, InterviewRepository
from interprep.interview.feedback import FeedbackAggregator
from interprep.interview.flows import (
    AssessmentResultRecorder, author_assessment, create_assessment_interview, create_practice_interview,
)
from interprep.interview.models import (
    CandidateIdentity, Difficulty, InterviewConfig, InterviewSummary, InterviewType, Persona,
)
from interprep.interview.schemas import Phase
from interprep.interview.testing import (
    MockOracle, MockRecognizer, MockSynthesisBackend, fast_timings, wait_for_capture,
)


async def speak_answer(orchestrator, recognizer, text):
    await wait_for_capture(orchestrator, recognizer)
    recognizer.emit_result(text, is_final=True)
    recognizer.emit_end()


@pytest.fixture
def repository():
    return InterviewRepository(InMemoryStorage())


class TestAuthorAssessment:

    def test_generates_and_stores(self, repository):
        assessment = author_assessment(
            MockOracle(), repository, recruiter="rita", job_role="  Data Analyst ",
            interview_type=InterviewType.TECHNICAL, difficulty=Difficulty.HARD,
            persona=Persona.STRICT, count=3,
        )

        assert assessment.job_role == "Data Analyst"
        assert len(assessment.questions) == 3
        assert assessment.config.persona == Persona.STRICT
        assert repository.get_assessment(assessment.id) == assessment

    @pytest.mark.parametrize("job_role,count", [("   ", 3), ("Analyst", 0)])
    def test_rejects_bad_input(self, repository, job_role, count):
        with pytest.raises(ValueError):
            author_assessment(MockOracle(), repository, "rita", job_role, count=count)
        assert repository.list_assessments() == []


class TestAssessmentFlow:

    async def test_candidate_answers_fixed_questions(self, repository):
        assessment = author_assessment(MockOracle(), repository, "rita", "Support Engineer", count=2)
        oracle = MockOracle(scores=[90, 70])
        recognizer = MockRecognizer()
        orchestrator = create_assessment_interview(
            assessment, CandidateIdentity("Jane Doe", "jane@example.com"),
            oracle, MockSynthesisBackend(), recognizer,
            repository=repository, timings=fast_timings(),
        )

        await orchestrator.start()
        await speak_answer(orchestrator, recognizer, "First.")
        await speak_answer(orchestrator, recognizer, "Second.")
        session = await asyncio.wait_for(orchestrator.wait_finished(), 2)

        assert orchestrator.phase == Phase.FINISHED
        assert orchestrator.questions == list(assessment.questions)
        assert oracle.question_calls == []
        assert session.type == "Behavioral - Support Engineer"

        results = repository.list_results(assessment.id)
        assert len(results) == 1
        assert results[0].id == orchestrator.record_id
        assert results[0].candidate_name == "Jane Doe"
        assert results[0].session.average_score == 80
        assert repository.list_sessions() == []

    def test_recorder_stores_result(self, repository):
        assessment = author_assessment(MockOracle(), repository, "rita", "Analyst", count=1)
        recorder = AssessmentResultRecorder(repository, assessment, CandidateIdentity("Sam"))
        session = FeedbackAggregator.build_session(assessment.interview_config(), [], InterviewSummary("ok"))

        result_id = recorder(session)

        [result] = repository.list_results(assessment.id)
        assert result.id == result_id
        assert result.candidate_email == ""


class TestPracticeFlow:

    async def test_practice_session_saved_to_history(self, repository):
        recognizer = MockRecognizer()
        orchestrator = create_practice_interview(
            InterviewConfig(type=InterviewType.TECHNICAL, role="Backend Engineer"),
            MockOracle(scores=[65]), MockSynthesisBackend(), recognizer,
            repository=repository, total_questions=1, timings=fast_timings(),
        )

        await orchestrator.start()
        await speak_answer(orchestrator, recognizer, "I'd add an index.")
        await asyncio.wait_for(orchestrator.wait_finished(), 2)

        [saved] = repository.list_sessions()
        assert saved.type == "Technical - Backend Engineer"
        assert saved.average_score == 65
        assert repository.get_session(orchestrator.record_id) == saved

    async def test_practice_without_repository_still_reports(self):
        recognizer = MockRecognizer()
        orchestrator = create_practice_interview(
            InterviewConfig(), MockOracle(), MockSynthesisBackend(), recognizer,
            total_questions=1, timings=fast_timings(),
        )

        await orchestrator.start()
        await speak_answer(orchestrator, recognizer, "Answer.")
        session = await asyncio.wait_for(orchestrator.wait_finished(), 2)

        assert session.average_score == 75
        assert orchestrator.record_id is None
