"""
Interview prompt templates and response schemas.

This module contains all the prompt templates sent to the oracles, keeping
them separate from the business logic for easier maintenance and editing.
"""

from typing import Any, Dict, List, Sequence
import json

from .models import CandidateContext, InterviewConfig, InterviewSession, TranscriptEntry


# Vertex AI responseSchema definitions (OpenAPI subset)
FEEDBACK_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "score": {"type": "NUMBER", "description": "Strict overall score, 0-100."},
        "responseQuality": {"type": "NUMBER", "description": "Quality of this answer, 0-100."},
        "evaluation": {
            "type": "OBJECT",
            "properties": {
                "clarity": {"type": "STRING"},
                "relevance": {"type": "STRING"},
                "structure": {"type": "STRING"},
                "confidence": {"type": "STRING"},
            },
            "required": ["clarity", "relevance", "structure", "confidence"],
        },
        "grammarCorrection": {
            "type": "OBJECT",
            "properties": {
                "hasErrors": {"type": "BOOLEAN"},
                "explanation": {"type": "STRING"},
            },
            "required": ["hasErrors", "explanation"],
        },
        "professionalRewrite": {"type": "STRING"},
        "tips": {"type": "ARRAY", "items": {"type": "STRING"}},
        "alexisResponse": {"type": "STRING"},
        "wordCount": {"type": "NUMBER"},
        "fillerWords": {"type": "NUMBER"},
        "hasExample": {"type": "BOOLEAN"},
    },
    "required": [
        "score", "responseQuality", "evaluation", "grammarCorrection",
        "professionalRewrite", "tips", "alexisResponse", "wordCount",
        "fillerWords", "hasExample",
    ],
}

SUMMARY_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "overallSummary": {"type": "STRING"},
        "actionableTips": {"type": "ARRAY", "items": {"type": "STRING"}},
        "encouragement": {"type": "STRING"},
        "simulatedFacialExpressionAnalysis": {"type": "STRING"},
        "simulatedBodyLanguageAnalysis": {"type": "STRING"},
        "simulatedAudioAnalysis": {"type": "STRING"},
    },
    "required": [
        "overallSummary", "actionableTips", "encouragement",
        "simulatedFacialExpressionAnalysis", "simulatedBodyLanguageAnalysis",
        "simulatedAudioAnalysis",
    ],
}

QUESTION_LIST_SCHEMA: Dict[str, Any] = {
    "type": "ARRAY",
    "items": {"type": "STRING"},
}


class InterviewPrompts:
    """Collection of all oracle prompts."""

    @staticmethod
    def coach_persona() -> str:
        """Shared persona preamble."""
        return """
You are Alexis, the interview coach of InterPrepAI, an adaptive mock interview platform.
You are friendly, insightful and encouraging, and your feedback is precise and personal.
        """.strip()

    @staticmethod
    def next_question(
        config: InterviewConfig,
        history: Sequence[TranscriptEntry],
        candidate: CandidateContext,
        ordinal: int,
        total: int,
    ) -> str:
        """Prompt for the next adaptive interview question."""
        if history:
            progress = "Previous questions and answer quality (0-100): " + json.dumps(
                [{"question": h.question, "answerQuality": h.feedback.response_quality} for h in history],
                ensure_ascii=False,
            )
        else:
            progress = "This is the first question of the interview."

        skills = ", ".join(candidate.skills) if candidate.skills else "not provided"
        resume = candidate.summary or "not provided"

        return f"""
{InterviewPrompts.coach_persona()}
You are interviewing a candidate for a "{config.role}" position.
This is a {config.difficulty.value} level {config.type.value} interview, and your manner is {config.persona.value.lower()}.

Candidate:
- Resume summary: {resume}
- Key skills: [{skills}]

Progress:
{progress}

Write interview question {ordinal} of {total}.
- Keep it relevant to the "{config.role}" role and to the candidate's background.
- Adapt the difficulty: after strong answers (answerQuality above 75) go deeper or harder,
  after weak answers (answerQuality below 50) ask something simpler and foundational.
- Never repeat an earlier question.
- Make it open-ended so the candidate has room to give a detailed answer.

Respond with ONLY the question text - no numbering, no quotes, no JSON.
        """.strip()

    @staticmethod
    def score_answer(question: str, answer: str) -> str:
        """Prompt for structured feedback on a single answer."""
        return f"""
{InterviewPrompts.coach_persona()}

Evaluate the candidate's answer to the interview question below.

Consider clarity, relevance to the question, structure (for example the STAR method),
confidence inferred from the wording, professional tone, use of concrete examples,
problem solving, grammar, vocabulary and filler words ("um", "uh", "like", "so", "you know").

Fill in:
- score: a strict overall score from 0 to 100
- responseQuality: how well this answer met the criteria, 0 to 100
- evaluation: one sentence each for clarity, relevance, structure and confidence
- grammarCorrection: whether there are errors or heavy filler use, with a short explanation
- professionalRewrite: a strong, concise professional version of the answer
- tips: one or two actionable tips
- alexisResponse: a short, warm spoken reply summarizing the feedback
- wordCount, fillerWords: counts taken from the answer
- hasExample: whether the answer cites a specific project, situation or metric

Question: {json.dumps(question, ensure_ascii=False)}
Answer: {json.dumps(answer, ensure_ascii=False)}
        """.strip()

    @staticmethod
    def summarize(feedback: List[Dict[str, Any]]) -> str:
        """Prompt for the end-of-session summary."""
        return f"""
{InterviewPrompts.coach_persona()}

The mock interview is over. Summarize the whole session from the per-answer feedback below.

- overallSummary: two or three friendly sentences covering strengths and what to practice
- actionableTips: three to five concrete tips drawn from recurring patterns
- simulatedFacialExpressionAnalysis, simulatedBodyLanguageAnalysis, simulatedAudioAnalysis:
  one encouraging, clearly hypothetical sentence each, inferred from the confidence and
  quality of the answers
- encouragement: one closing sentence

Feedback: {json.dumps(feedback, ensure_ascii=False)}
        """.strip()

    @staticmethod
    def follow_up(session: InterviewSession, question: str) -> str:
        """Prompt for answering a candidate's question about their report."""
        snippets = [
            {
                "question": entry.question,
                "answer": entry.answer[:100] + "...",
                "score": entry.feedback.score,
                "feedbackSummary": entry.feedback.evaluation.structure,
            }
            for entry in session.transcript
        ]

        return f"""
{InterviewPrompts.coach_persona()}
You just finished a mock interview with this candidate and they have a follow-up question.

Session:
- Role: {session.config.role}
- Overall score: {session.average_score}%
- Your summary: {session.summary.overall_summary}
- Your tips: {"; ".join(session.summary.actionable_tips)}
- Transcript snippets: {json.dumps(snippets, ensure_ascii=False)}

Answer using this session as your main context. For general questions, tie the advice
to how they actually did. Do not invent new feedback.
Reply in plain text, two to four sentences, no JSON.

Candidate's question: {json.dumps(question, ensure_ascii=False)}
        """.strip()

    @staticmethod
    def assessment_questions(job_role: str, interview_type: str, difficulty: str, count: int) -> str:
        """Prompt for a recruiter's fixed assessment question list."""
        return f"""
You are an experienced hiring manager preparing a {difficulty} {interview_type} interview
assessment for the role of "{job_role}".

Write exactly {count} clear, concise, open-ended questions.
- Technical and Role-Specific questions must target the skills and duties of a "{job_role}".
- Behavioral questions must test competencies that matter for a "{job_role}".

Respond with ONLY a JSON array of {count} strings.
        """.strip()
