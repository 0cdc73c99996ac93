"""
Practice and assessment flows.

Both flows run the same InterviewOrchestrator; they differ only in where
questions come from and how the finished session is stored.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from .events import InterviewEventBus
from .feedback import FeedbackAggregator
from .models import (
    Assessment, AssessmentConfig, AssessmentResult, CandidateContext,
    CandidateIdentity, Difficulty, InterviewConfig, InterviewSession,
    InterviewType, Persona,
)
from .oracles import InterviewOracle
from .orchestrator import InterviewOrchestrator
from .services import (
    FixedQuestionSource, GeneratedQuestionSource, QuestionSource,
    SpeechInputController, SpeechOutputController,
)
from ..config import LANGUAGE_CODE, PRACTICE_QUESTION_COUNT, SessionTimings, VoicePreferences
from ..infrastructure.data import InterviewRepository, new_id
from ..infrastructure.media import MediaDevices
from ..infrastructure.speech import SpeechRecognizer, SynthesisBackend

logger = logging.getLogger("flows")


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class AssessmentResultRecorder:
    """Persistence collaborator for the assessment flow."""

    def __init__(self, repository: InterviewRepository, assessment: Assessment, candidate: CandidateIdentity):
        self.repository = repository
        self.assessment = assessment
        self.candidate = candidate

    def __call__(self, session: InterviewSession) -> str:
        result = AssessmentResult(
            id=new_id(),
            assessment_id=self.assessment.id,
            candidate_name=self.candidate.name,
            candidate_email=self.candidate.email,
            completed_at=_utc_now(),
            session=session,
        )
        return self.repository.save_result(result)


def _build_interview(config: InterviewConfig,
                     questions: QuestionSource,
                     oracle: InterviewOracle,
                     synthesis: SynthesisBackend,
                     recognizer: SpeechRecognizer,
                     media: Optional[MediaDevices],
                     persist,
                     timings: Optional[SessionTimings],
                     voice: Optional[VoicePreferences],
                     language_code: str,
                     event_bus: Optional[InterviewEventBus]) -> InterviewOrchestrator:
    timings = timings or SessionTimings()
    return InterviewOrchestrator(
        config=config,
        questions=questions,
        speech_output=SpeechOutputController(synthesis, voice, language_code),
        speech_input=SpeechInputController(recognizer, timings, language_code),
        aggregator=FeedbackAggregator(oracle),
        media=media,
        persist=persist,
        timings=timings,
        event_bus=event_bus,
    )


def create_practice_interview(config: InterviewConfig,
                              oracle: InterviewOracle,
                              synthesis: SynthesisBackend,
                              recognizer: SpeechRecognizer,
                              repository: Optional[InterviewRepository] = None,
                              candidate: Optional[CandidateContext] = None,
                              media: Optional[MediaDevices] = None,
                              total_questions: int = PRACTICE_QUESTION_COUNT,
                              timings: Optional[SessionTimings] = None,
                              voice: Optional[VoicePreferences] = None,
                              language_code: str = LANGUAGE_CODE,
                              event_bus: Optional[InterviewEventBus] = None) -> InterviewOrchestrator:
    """Practice interview with adaptive generated questions."""
    logger.info("Creating practice interview: %s, %d questions", config.label, total_questions)
    return _build_interview(
        config,
        GeneratedQuestionSource(oracle, candidate, total_questions),
        oracle, synthesis, recognizer, media,
        repository.save_session if repository is not None else None,
        timings, voice, language_code, event_bus,
    )


def create_assessment_interview(assessment: Assessment,
                                candidate: CandidateIdentity,
                                oracle: InterviewOracle,
                                synthesis: SynthesisBackend,
                                recognizer: SpeechRecognizer,
                                repository: Optional[InterviewRepository] = None,
                                media: Optional[MediaDevices] = None,
                                timings: Optional[SessionTimings] = None,
                                voice: Optional[VoicePreferences] = None,
                                language_code: str = LANGUAGE_CODE,
                                event_bus: Optional[InterviewEventBus] = None) -> InterviewOrchestrator:
    """Recruiter assessment: fixed questions, result stored against the assessment."""
    logger.info("Creating assessment interview %s for %s", assessment.id, candidate.name)
    recorder = AssessmentResultRecorder(repository, assessment, candidate) if repository is not None else None
    return _build_interview(
        assessment.interview_config(),
        FixedQuestionSource(assessment.questions),
        oracle, synthesis, recognizer, media, recorder,
        timings, voice, language_code, event_bus,
    )


def author_assessment(oracle: InterviewOracle,
                      repository: InterviewRepository,
                      recruiter: str,
                      job_role: str,
                      interview_type: InterviewType = InterviewType.BEHAVIORAL,
                      difficulty: Difficulty = Difficulty.MEDIUM,
                      persona: Persona = Persona.NEUTRAL,
                      count: int = PRACTICE_QUESTION_COUNT) -> Assessment:
    """
    Generate and store a new assessment.

    Raises whatever the oracle raises; authoring has no fallback.
    """
    if not job_role.strip():
        raise ValueError("job_role is required")
    if count < 1:
        raise ValueError("count must be at least 1")

    questions = oracle.generate_assessment_questions(job_role, interview_type, difficulty, count)
    assessment = Assessment(
        id=new_id(),
        job_role=job_role.strip(),
        created_by=recruiter,
        created_at=_utc_now(),
        config=AssessmentConfig(type=interview_type, difficulty=difficulty, persona=persona),
        questions=tuple(questions),
    )
    repository.save_assessment(assessment)
    return assessment
