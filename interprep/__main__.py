#!/usr/bin/env python3
"""
Main entry point for the InterPrep interview engine.
Allows running the package with: python -m interprep

Usage:
    python -m interprep [--text | --speech] [--demo]
                        [--type=Behavioral] [--difficulty=Medium] [--persona=Neutral]
                        [--role="Software Engineer"] [--questions=5] [--resume=profile.json]
    python -m interprep --create-assessment --role="Data Analyst" [--recruiter=NAME] [--questions=5]
    python -m interprep --assessment=ID --name="Jane Doe" [--email=jane@example.com]
    python -m interprep --history
    python -m interprep --assessments [--recruiter=NAME]
    python -m interprep --results=ASSESSMENT_ID
"""
import asyncio
import json
import signal
import sys
from typing import Dict, Optional

from .config import get_config, DEFAULT_INTERVIEW_TYPE, DEFAULT_DIFFICULTY, DEFAULT_PERSONA, DEFAULT_ROLE
from .utils import setup_logging
from .infrastructure.data import InterviewRepository, JsonFileStorage
from .infrastructure.media import MicrophoneDevices
from .infrastructure.speech import SpeechRecognizer, SynthesisBackend, Utterance, create_speech_backends
from .interview.errors import InterviewError
from .interview.events import EventType
from .interview.flows import author_assessment, create_assessment_interview, create_practice_interview
from .interview.models import (
    CandidateContext, CandidateIdentity, Difficulty, InterviewConfig,
    InterviewSession, InterviewType, Persona,
)
from .interview.oracles import GeminiOracle, InterviewOracle
from .interview.orchestrator import InterviewOrchestrator
from .interview.schemas import Phase


def _parse_options(argv) -> Dict[str, str]:
    """--key=value pairs and bare --flags (mapped to "")."""
    options = {}
    for arg in argv:
        if not arg.startswith("--"):
            continue
        key, _, value = arg[2:].partition("=")
        options[key] = value
    return options


def _parse_enum(enum_cls, raw: str, option: str):
    for member in enum_cls:
        if member.value.lower() == raw.lower() or member.name.lower() == raw.lower().replace("-", "_"):
            return member
    choices = ", ".join(m.value for m in enum_cls)
    print(f"❌ Invalid --{option} value '{raw}'. Use one of: {choices}")
    sys.exit(1)


def _parse_count(raw: Optional[str], default: int) -> int:
    if raw is None:
        return default
    try:
        count = int(raw)
    except ValueError:
        count = 0
    if count < 1:
        print("❌ Invalid question count. Use --questions=1 or more")
        sys.exit(1)
    return count


def _load_candidate(path: Optional[str]) -> Optional[CandidateContext]:
    if not path:
        return None
    try:
        with open(path, encoding="utf-8") as f:
            return CandidateContext.from_dict(json.load(f))
    except (OSError, ValueError) as e:
        print(f"❌ Could not read resume profile {path}: {e}")
        sys.exit(1)


def _build_oracle(config, demo: bool) -> InterviewOracle:
    if demo:
        from .interview.testing import MockOracle
        print("🧪 Demo mode: scripted questions and feedback, no Google Cloud calls")
        return MockOracle()

    from .infrastructure.llm import VertexRestClient
    llm = VertexRestClient(
        project=config.google_cloud_project,
        location=config.vertex_location,
        model=config.model_name,
        credentials_json=config.google_application_credentials,
    )
    return GeminiOracle(llm)


def _print_report(session: InterviewSession) -> None:
    summary = session.summary
    print("\n" + "=" * 50)
    print(f"🏁 Interview complete: {session.type}")
    print(f"📊 Average score: {session.average_score}%   ⏱️  Duration: {session.duration} min")
    if summary.badges_earned:
        print(f"🏅 Badges: {', '.join(b.value for b in summary.badges_earned)}")
    print(f"\n📝 {summary.overall_summary}")
    if summary.actionable_tips:
        print("\n💡 Tips:")
        for tip in summary.actionable_tips:
            print(f"   - {tip}")
    print(f"\n🙂 Expression: {summary.simulated_facial_expression_analysis}")
    print(f"🧍 Body language: {summary.simulated_body_language_analysis}")
    print(f"🔉 Voice: {summary.simulated_audio_analysis}")
    if summary.encouragement:
        print(f"\n🌟 {summary.encouragement}")

    for i, entry in enumerate(session.transcript, 1):
        fb = entry.feedback
        print(f"\n--- Question {i} ({fb.score}%) ---")
        print(f"❓ {entry.question}")
        print(f"💬 {entry.answer}")
        if fb.grammar_correction.has_errors:
            print(f"✏️  {fb.grammar_correction.explanation}")
        if fb.professional_rewrite:
            print(f"✨ Stronger answer: {fb.professional_rewrite}")
        for tip in fb.tips:
            print(f"   💡 {tip}")
    print("=" * 50)


def _attach_console_output(orchestrator: InterviewOrchestrator) -> None:
    """Render session events as console status lines."""
    bus = orchestrator.event_bus

    def on_question(event):
        print(f"\n❓ Question {event.data['ordinal']}/{event.data['total']}")

    def on_phase(event):
        phase = event.data["phase"]
        if phase == Phase.ANALYZING.value:
            print("🤔 Analyzing your answer...")
        elif phase == Phase.GENERATING_SUMMARY.value:
            print("\n📝 Generating your report...")

    def on_scored(event):
        print(f"📊 Score: {event.data['score']}% ({event.data['duration']}s)")
        if event.data["alexis_response"]:
            print(f"🤖 {event.data['alexis_response']}")

    def on_error(event):
        message = event.data["error_message"]
        if message:
            print(f"{'❌' if event.data['fatal'] else '⚠️ '} {message}")

    bus.subscribe(EventType.QUESTION_ASKED, on_question)
    bus.subscribe(EventType.PHASE_CHANGED, on_phase)
    bus.subscribe(EventType.ANSWER_SCORED, on_scored)
    bus.subscribe(EventType.ERROR_OCCURRED, on_error)


async def _run_session(orchestrator: InterviewOrchestrator, log_file: str) -> Optional[InterviewSession]:
    _attach_console_output(orchestrator)

    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, lambda: asyncio.ensure_future(orchestrator.end_interview()))
    except NotImplementedError:
        pass

    print(f"\n🎙️  Starting interview - {orchestrator.total_questions} questions")
    print(f"📝 Detailed logs: {log_file}")
    print("   (Press Ctrl+C to end early and get your report)")
    print("=" * 50)

    try:
        await orchestrator.start()
        return await orchestrator.wait_finished()
    finally:
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except NotImplementedError:
            pass


async def _capture_once(recognizer: SpeechRecognizer) -> str:
    """One final recognition result, or "" when nothing was heard."""
    loop = asyncio.get_running_loop()
    done = loop.create_future()
    heard = []

    def on_result(batch):
        finals = [r.transcript for r in batch.results if r.is_final]
        if finals and not heard:
            heard.append(" ".join(finals))
            recognizer.stop()

    def on_end():
        if not done.done():
            done.set_result(heard[0].strip() if heard else "")

    recognizer.on_start = None
    recognizer.on_result = on_result
    recognizer.on_error = None
    recognizer.on_end = on_end
    recognizer.start()
    return await done


async def _follow_up(session: InterviewSession, oracle: InterviewOracle,
                     synthesis: SynthesisBackend, recognizer: SpeechRecognizer, language_code: str) -> None:
    """Ask the coach about the report until an empty question."""
    print("\n💬 Ask your coach about this session (empty answer to quit)")
    while True:
        question = await _capture_once(recognizer)
        if not question:
            return
        try:
            answer = await asyncio.to_thread(oracle.answer_follow_up, session, question)
        except Exception as e:
            print(f"❌ Could not answer that right now: {e}")
            continue
        await synthesis.play(Utterance(text=answer, lang=language_code))


async def _interview(config, options, oracle: InterviewOracle, repository: InterviewRepository) -> None:
    try:
        synthesis, recognizer = create_speech_backends(config.speech_mode, config.language_code)
    except InterviewError as e:
        print(f"❌ {e.user_message}")
        sys.exit(1)
    media = MicrophoneDevices() if config.speech_mode == "google" else None

    if "assessment" in options:
        assessment = repository.get_assessment(options["assessment"])
        if assessment is None:
            print(f"❌ No assessment with id {options['assessment']}")
            sys.exit(1)
        name = options.get("name", "").strip()
        if not name:
            print("❌ Assessments need a candidate name. Use --name=\"Your Name\"")
            sys.exit(1)
        print(f"📋 Assessment: {assessment.job_role} ({len(assessment.questions)} questions)")
        orchestrator = create_assessment_interview(
            assessment, CandidateIdentity(name=name, email=options.get("email", "")),
            oracle, synthesis, recognizer, repository=repository, media=media,
            timings=config.timings, voice=config.voice, language_code=config.language_code,
        )
    else:
        interview_config = InterviewConfig(
            type=_parse_enum(InterviewType, options.get("type", DEFAULT_INTERVIEW_TYPE), "type"),
            difficulty=_parse_enum(Difficulty, options.get("difficulty", DEFAULT_DIFFICULTY), "difficulty"),
            persona=_parse_enum(Persona, options.get("persona", DEFAULT_PERSONA), "persona"),
            role=options.get("role") or DEFAULT_ROLE,
        )
        print(f"🎯 {interview_config.label} ({interview_config.difficulty.value}, {interview_config.persona.value})")
        orchestrator = create_practice_interview(
            interview_config, oracle, synthesis, recognizer,
            repository=repository,
            candidate=_load_candidate(options.get("resume")),
            media=media,
            total_questions=_parse_count(options.get("questions"), config.practice_question_count),
            timings=config.timings, voice=config.voice, language_code=config.language_code,
        )

    session = await _run_session(orchestrator, config.log_file)
    if orchestrator.phase == Phase.ERROR or session is None:
        print(f"\n❌ {orchestrator.error or 'The interview could not be completed.'}")
        sys.exit(1)

    _print_report(session)
    if orchestrator.record_id:
        print(f"💾 Saved as {orchestrator.record_id}")
    if session.transcript:
        await _follow_up(session, oracle, synthesis, recognizer, config.language_code)


def _create_assessment(options, oracle: InterviewOracle, repository: InterviewRepository, default_count: int) -> None:
    role = options.get("role", "").strip()
    if not role:
        print("❌ Assessments need a job role. Use --role=\"Job Title\"")
        sys.exit(1)
    try:
        assessment = author_assessment(
            oracle, repository,
            recruiter=options.get("recruiter") or "recruiter",
            job_role=role,
            interview_type=_parse_enum(InterviewType, options.get("type", DEFAULT_INTERVIEW_TYPE), "type"),
            difficulty=_parse_enum(Difficulty, options.get("difficulty", DEFAULT_DIFFICULTY), "difficulty"),
            persona=_parse_enum(Persona, options.get("persona", DEFAULT_PERSONA), "persona"),
            count=_parse_count(options.get("questions"), default_count),
        )
    except Exception as e:
        print(f"❌ Could not create assessment: {e}")
        sys.exit(1)

    print(f"✅ Assessment created: {assessment.id}")
    for i, question in enumerate(assessment.questions, 1):
        print(f"   {i}. {question}")
    print(f"\nShare with candidates: python -m interprep --assessment={assessment.id} --name=\"Candidate Name\"")


def _print_history(repository: InterviewRepository) -> None:
    sessions = repository.list_sessions()
    if not sessions:
        print("📚 No practice sessions yet")
        return
    print(f"📚 {len(sessions)} practice sessions")
    for session in sessions:
        badges = ", ".join(b.value for b in session.summary.badges_earned)
        print(f"   {session.date[:16]}  {session.average_score:3d}%  {session.type}" + (f"  🏅 {badges}" if badges else ""))


def _print_assessments(repository: InterviewRepository, recruiter: Optional[str] = None) -> None:
    assessments = repository.list_assessments(created_by=recruiter)
    if not assessments:
        print("📋 No assessments yet" + (f" for {recruiter}" if recruiter else ""))
        return
    print(f"📋 {len(assessments)} assessments" + (f" by {recruiter}" if recruiter else ""))
    for assessment in assessments:
        submissions = len(repository.list_results(assessment.id))
        print(f"   {assessment.id}  {assessment.created_at[:10]}  {assessment.job_role}"
              f"  ({len(assessment.questions)} questions, {submissions} submissions, by {assessment.created_by})")


def _print_results(repository: InterviewRepository, assessment_id: str) -> None:
    assessment = repository.get_assessment(assessment_id)
    if assessment is None:
        print(f"❌ No assessment with id {assessment_id}")
        sys.exit(1)

    results = repository.list_results(assessment.id)
    print(f"📋 {assessment.job_role}: {len(results)} submissions")
    if not results:
        return
    for result in results:
        contact = f" <{result.candidate_email}>" if result.candidate_email else ""
        print(f"   {result.completed_at[:16]}  {result.session.average_score:3d}%  {result.candidate_name}{contact}")
    for result in results:
        print(f"\n👤 {result.candidate_name}")
        _print_report(result.session)


def main():
    """Command-line interface for the interview engine."""
    options = _parse_options(sys.argv[1:])
    demo = "demo" in options
    browsing = any(key in options for key in ("history", "assessments", "results"))

    if "speech" in options:
        speech_mode = "google"
    elif "text" in options:
        speech_mode = "console"
    else:
        speech_mode = None

    # Load configuration from environment
    try:
        config = get_config(speech_mode=speech_mode, require_project=not (demo or browsing))
    except ValueError as e:
        print(f"❌ Configuration Error: {e}")
        sys.exit(1)

    setup_logging(config.log_file, config.log_level)
    repository = InterviewRepository(JsonFileStorage(config.data_dir))

    if "history" in options:
        _print_history(repository)
        return

    if "assessments" in options:
        _print_assessments(repository, options.get("recruiter") or None)
        return

    if "results" in options:
        _print_results(repository, options["results"])
        return

    oracle = _build_oracle(config, demo)

    if "create-assessment" in options:
        _create_assessment(options, oracle, repository, config.practice_question_count)
        return

    if config.speech_mode == "google":
        print("🔊 Speech Mode: questions are spoken and answers captured from the microphone")
    else:
        print("📝 Text Mode: questions are printed and answers typed")
        print("   (Use --speech for voice answers)")

    asyncio.run(_interview(config, options, oracle, repository))


if __name__ == "__main__":
    main()
