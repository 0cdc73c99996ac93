"""
InterPrep: voice-driven mock interview practice.

Runs spoken interview sessions with adaptive questions, per-answer coaching
feedback, badges and a final report, plus recruiter-authored assessments.
"""

__version__ = "1.0.0"

# Main entry points
from .interview.orchestrator import InterviewOrchestrator
from .interview.flows import create_practice_interview, create_assessment_interview, author_assessment
from .interview.models import InterviewConfig, InterviewSession, Assessment

__all__ = [
    "InterviewOrchestrator",
    "create_practice_interview", "create_assessment_interview", "author_assessment",
    "InterviewConfig", "InterviewSession", "Assessment",
]
