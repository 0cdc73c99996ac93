"""
Data models for the interview engine.

Dictionary conversion uses the camelCase document shape the web
application stores, so records written here can be read by either side.
"""
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple


NO_ANSWER = "No answer provided."
NO_SPEECH_ANSWER = "I did not provide an answer."
FALLBACK_RESPONSE = "Sorry, I couldn't process that."


class InterviewType(str, Enum):
    BEHAVIORAL = "Behavioral"
    TECHNICAL = "Technical"
    ROLE_SPECIFIC = "Role-Specific"


class Difficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class Persona(str, Enum):
    NEUTRAL = "Neutral"
    FRIENDLY = "Friendly"
    STRICT = "Strict"


class Badge(str, Enum):
    """Session-level achievement tags."""
    GOOD_COMMUNICATOR = "Good Communicator"
    TIME_MANAGER = "Time Manager"


@dataclass(frozen=True)
class InterviewConfig:
    """Immutable per-session parameters."""
    type: InterviewType = InterviewType.BEHAVIORAL
    difficulty: Difficulty = Difficulty.MEDIUM
    persona: Persona = Persona.NEUTRAL
    role: str = "Software Engineer"

    @property
    def label(self) -> str:
        return f"{self.type.value} - {self.role}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "difficulty": self.difficulty.value,
            "persona": self.persona.value,
            "role": self.role,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'InterviewConfig':
        return cls(
            type=InterviewType(data.get("type", InterviewType.BEHAVIORAL.value)),
            difficulty=Difficulty(data.get("difficulty", Difficulty.MEDIUM.value)),
            persona=Persona(data.get("persona", Persona.NEUTRAL.value)),
            role=data.get("role", ""),
        )


@dataclass(frozen=True)
class Evaluation:
    """Short text judgments, one per criterion."""
    clarity: str = "N/A"
    relevance: str = "N/A"
    structure: str = "N/A"
    confidence: str = "N/A"


@dataclass(frozen=True)
class GrammarCorrection:
    has_errors: bool = False
    explanation: str = ""


@dataclass(frozen=True)
class InterviewFeedback:
    """Scored feedback for one answer, produced by the scoring oracle."""
    score: int
    response_quality: int
    evaluation: Evaluation
    grammar_correction: GrammarCorrection
    professional_rewrite: str
    tips: Tuple[str, ...]
    alexis_response: str
    word_count: int = 0
    filler_words: int = 0
    has_example: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "responseQuality": self.response_quality,
            "evaluation": {
                "clarity": self.evaluation.clarity,
                "relevance": self.evaluation.relevance,
                "structure": self.evaluation.structure,
                "confidence": self.evaluation.confidence,
            },
            "grammarCorrection": {
                "hasErrors": self.grammar_correction.has_errors,
                "explanation": self.grammar_correction.explanation,
            },
            "professionalRewrite": self.professional_rewrite,
            "tips": list(self.tips),
            "alexisResponse": self.alexis_response,
            "wordCount": self.word_count,
            "fillerWords": self.filler_words,
            "hasExample": self.has_example,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'InterviewFeedback':
        evaluation = data.get("evaluation") or {}
        grammar = data.get("grammarCorrection") or {}
        return cls(
            score=int(data.get("score", 0)),
            response_quality=int(data.get("responseQuality", 0)),
            evaluation=Evaluation(
                clarity=evaluation.get("clarity", "N/A"),
                relevance=evaluation.get("relevance", "N/A"),
                structure=evaluation.get("structure", "N/A"),
                confidence=evaluation.get("confidence", "N/A"),
            ),
            grammar_correction=GrammarCorrection(
                has_errors=bool(grammar.get("hasErrors", False)),
                explanation=grammar.get("explanation", ""),
            ),
            professional_rewrite=data.get("professionalRewrite", ""),
            tips=tuple(data.get("tips") or ()),
            alexis_response=data.get("alexisResponse", ""),
            word_count=int(data.get("wordCount", 0)),
            filler_words=int(data.get("fillerWords", 0)),
            has_example=bool(data.get("hasExample", False)),
        )


def fallback_feedback(answer: str) -> InterviewFeedback:
    """Zero-score feedback used when the scoring oracle fails."""
    return InterviewFeedback(
        score=0,
        response_quality=0,
        evaluation=Evaluation(),
        grammar_correction=GrammarCorrection(has_errors=False, explanation="Error analyzing."),
        professional_rewrite=answer,
        tips=(),
        alexis_response=FALLBACK_RESPONSE,
        word_count=0,
        filler_words=0,
        has_example=False,
    )


@dataclass(frozen=True)
class TranscriptEntry:
    """One answered question. Appended once, never mutated."""
    question: str
    answer: str
    feedback: InterviewFeedback
    notes: Optional[str] = None
    duration: Optional[int] = None  # seconds spent answering

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "question": self.question,
            "answer": self.answer,
            "feedback": self.feedback.to_dict(),
        }
        if self.notes is not None:
            data["notes"] = self.notes
        if self.duration is not None:
            data["duration"] = self.duration
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TranscriptEntry':
        return cls(
            question=data["question"],
            answer=data["answer"],
            feedback=InterviewFeedback.from_dict(data.get("feedback") or {}),
            notes=data.get("notes"),
            duration=data.get("duration"),
        )


def _badge_order(badges: Iterable[Badge]) -> Tuple[Badge, ...]:
    unique = set(badges)
    return tuple(b for b in Badge if b in unique)


@dataclass(frozen=True)
class InterviewSummary:
    """Holistic report for a finished session."""
    overall_summary: str
    actionable_tips: Tuple[str, ...] = ()
    encouragement: str = ""
    simulated_facial_expression_analysis: str = ""
    simulated_body_language_analysis: str = ""
    simulated_audio_analysis: str = ""
    badges_earned: Tuple[Badge, ...] = ()

    def with_badges(self, badges: Iterable[Badge]) -> 'InterviewSummary':
        return replace(self, badges_earned=_badge_order(badges))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overallSummary": self.overall_summary,
            "actionableTips": list(self.actionable_tips),
            "encouragement": self.encouragement,
            "simulatedFacialExpressionAnalysis": self.simulated_facial_expression_analysis,
            "simulatedBodyLanguageAnalysis": self.simulated_body_language_analysis,
            "simulatedAudioAnalysis": self.simulated_audio_analysis,
            "badgesEarned": [b.value for b in self.badges_earned],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'InterviewSummary':
        return cls(
            overall_summary=data.get("overallSummary", ""),
            actionable_tips=tuple(data.get("actionableTips") or ()),
            encouragement=data.get("encouragement", ""),
            simulated_facial_expression_analysis=data.get("simulatedFacialExpressionAnalysis", ""),
            simulated_body_language_analysis=data.get("simulatedBodyLanguageAnalysis", ""),
            simulated_audio_analysis=data.get("simulatedAudioAnalysis", ""),
            badges_earned=_badge_order(Badge(b) for b in data.get("badgesEarned") or ()),
        )


@dataclass(frozen=True)
class InterviewSession:
    """Session aggregate, created once at completion."""
    date: str
    type: str
    duration: int  # minutes
    average_score: int
    config: InterviewConfig
    transcript: Tuple[TranscriptEntry, ...]
    summary: InterviewSummary

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "type": self.type,
            "duration": self.duration,
            "averageScore": self.average_score,
            "config": self.config.to_dict(),
            "transcript": [entry.to_dict() for entry in self.transcript],
            "summary": self.summary.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'InterviewSession':
        return cls(
            date=data["date"],
            type=data["type"],
            duration=int(data.get("duration", 0)),
            average_score=int(data.get("averageScore", 0)),
            config=InterviewConfig.from_dict(data.get("config") or {}),
            transcript=tuple(TranscriptEntry.from_dict(e) for e in data.get("transcript") or ()),
            summary=InterviewSummary.from_dict(data.get("summary") or {}),
        )


@dataclass(frozen=True)
class CandidateContext:
    """Resume/profile context handed to the question oracle."""
    summary: str = ""
    skills: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CandidateContext':
        return cls(summary=data.get("summary", ""), skills=tuple(data.get("skills") or ()))


@dataclass(frozen=True)
class AssessmentConfig:
    """Assessment settings; the role comes from the assessment's job role."""
    type: InterviewType = InterviewType.BEHAVIORAL
    difficulty: Difficulty = Difficulty.MEDIUM
    persona: Persona = Persona.NEUTRAL


@dataclass(frozen=True)
class Assessment:
    """Recruiter-authored assessment with a fixed question list."""
    id: str
    job_role: str
    created_by: str
    created_at: str
    config: AssessmentConfig
    questions: Tuple[str, ...]

    def interview_config(self) -> InterviewConfig:
        return InterviewConfig(
            type=self.config.type,
            difficulty=self.config.difficulty,
            persona=self.config.persona,
            role=self.job_role,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "jobRole": self.job_role,
            "createdBy": self.created_by,
            "createdAt": self.created_at,
            "config": {
                "type": self.config.type.value,
                "difficulty": self.config.difficulty.value,
                "persona": self.config.persona.value,
            },
            "questions": list(self.questions),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Assessment':
        config = data.get("config") or {}
        return cls(
            id=data["id"],
            job_role=data["jobRole"],
            created_by=data.get("createdBy", ""),
            created_at=data.get("createdAt", ""),
            config=AssessmentConfig(
                type=InterviewType(config.get("type", InterviewType.BEHAVIORAL.value)),
                difficulty=Difficulty(config.get("difficulty", Difficulty.MEDIUM.value)),
                persona=Persona(config.get("persona", Persona.NEUTRAL.value)),
            ),
            questions=tuple(data.get("questions") or ()),
        )


@dataclass(frozen=True)
class AssessmentResult:
    """A candidate's completed assessment."""
    id: str
    assessment_id: str
    candidate_name: str
    candidate_email: str
    completed_at: str
    session: InterviewSession

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "assessmentId": self.assessment_id,
            "candidateName": self.candidate_name,
            "candidateEmail": self.candidate_email,
            "completedAt": self.completed_at,
            "session": self.session.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AssessmentResult':
        return cls(
            id=data["id"],
            assessment_id=data["assessmentId"],
            candidate_name=data.get("candidateName", ""),
            candidate_email=data.get("candidateEmail", ""),
            completed_at=data.get("completedAt", ""),
            session=InterviewSession.from_dict(data["session"]),
        )


@dataclass
class CandidateIdentity:
    """Who is taking an assessment."""
    name: str
    email: str = ""
