"""Tests for the speech controllers and question sources."""
import asyncio

import pytest

from interprep.config import VoicePreferences
from interprep.infrastructure.speech import NETWORK, NO_SPEECH, SERVICE_NOT_ALLOWED, Voice
from interprep.interview.errors import MSG_PERMISSION_DENIED, QuestionGenerationError
from interprep.interview.models import InterviewConfig, NO_SPEECH_ANSWER
from interprep.interview.services import (
    FixedQuestionSource, GeneratedQuestionSource, SpeechInputController, SpeechOutputController,
)
from interprep.interview.testing import (
    MockOracle, MockRecognizer, MockSynthesisBackend, fast_timings, wait_until,
)


def output_with(voices, **prefs):
    controller = SpeechOutputController(MockSynthesisBackend(), VoicePreferences(**prefs))
    controller.voices = list(voices)
    return controller


class TestVoiceSelection:

    def test_ideal_voice_wins(self):
        controller = output_with(
            [Voice("Samantha", "en-US"), Voice("Zephyr", "en-US")],
            preferred_voices=["Samantha"],
        )
        assert controller.select_voice().name == "Zephyr"

    def test_preferred_voices_in_list_order(self):
        controller = output_with(
            [Voice("Samantha", "en-US"), Voice("Google US English", "en-US")],
            preferred_voices=["Google US English", "Samantha"],
        )
        assert controller.select_voice().name == "Google US English"

    def test_gendered_voice_in_language(self):
        controller = output_with(
            [
                Voice("fr-FR-Standard-A", "fr-FR", "female"),
                Voice("en-US-Standard-B", "en-US", "male"),
                Voice("en-GB-Standard-A", "en-GB", "female"),
            ],
            preferred_voices=[],
        )
        assert controller.select_voice().name == "en-GB-Standard-A"

    def test_gender_in_name(self):
        controller = output_with([Voice("English Female", "en-AU")], preferred_voices=[])
        assert controller.select_voice().name == "English Female"

    def test_no_match_uses_platform_default(self):
        controller = output_with([Voice("Thomas", "fr-FR", "male")], preferred_voices=[])
        utterance = controller.build_utterance("Hello")

        assert controller.select_voice() is None
        assert utterance.voice is None
        assert (utterance.pitch, utterance.rate) == (1.0, 1.0)

    def test_pitch_and_rate_only_with_selected_voice(self):
        controller = output_with([Voice("Zephyr", "en-US")])
        utterance = controller.build_utterance("Hello")

        assert utterance.voice.name == "Zephyr"
        assert utterance.pitch == pytest.approx(1.05)
        assert utterance.rate == pytest.approx(1.0)


class TestSpeechOutput:

    async def test_voices_load_in_background(self):
        backend = MockSynthesisBackend(voices=[Voice("Zephyr", "en-US")])
        controller = SpeechOutputController(backend)

        controller.load_voices()
        await wait_until(lambda: controller.voices)

        assert controller.select_voice().name == "Zephyr"

    async def test_completion_fires_once(self):
        backend = MockSynthesisBackend()
        controller = SpeechOutputController(backend)
        done = []

        await controller.speak("Question one?", on_complete=lambda: done.append(True))

        assert done == [True]
        assert backend.spoken == ["Question one?"]
        assert not controller.speaking

    async def test_new_utterance_cancels_the_active_one(self):
        backend = MockSynthesisBackend(hold=True)
        controller = SpeechOutputController(backend)
        done = []

        controller.speak("first", on_complete=lambda: done.append("first"))
        await wait_until(lambda: backend.utterances)
        second = controller.speak("second", on_complete=lambda: done.append("second"))
        await wait_until(lambda: len(backend.utterances) == 2)
        backend.release()
        await second

        assert backend.cancelled == ["first"]
        assert done == ["second"]

    async def test_playback_failure_still_completes(self):
        controller = SpeechOutputController(MockSynthesisBackend(fail=True))
        done = []

        await controller.speak("Hello", on_complete=lambda: done.append(True))

        assert done == [True]


class TestSpeechInput:

    def make(self, listening=True, **timing_overrides):
        recognizer = MockRecognizer()
        controller = SpeechInputController(recognizer, fast_timings(**timing_overrides))
        calls = {"answers": [], "retries": 0, "fatal": [], "status": []}
        controller.is_listening = lambda: listening
        controller.on_answer = lambda text, duration: calls["answers"].append((text, duration))
        controller.on_retry_question = lambda: calls.__setitem__("retries", calls["retries"] + 1)
        controller.on_fatal = calls["fatal"].append
        controller.on_status = calls["status"].append
        return controller, recognizer, calls

    async def test_configures_recognizer(self):
        controller, recognizer, _ = self.make()
        assert recognizer.continuous and recognizer.interim_results
        assert recognizer.lang == "en-US"

    async def test_elapsed_ticks_while_capturing(self):
        controller, recognizer, calls = self.make(tick_interval=0.01)
        ticks = []
        controller.on_tick = ticks.append

        controller.listen()
        await wait_until(lambda: len(ticks) >= 3)
        recognizer.emit_end()

        assert ticks[:3] == [1, 2, 3]
        assert calls["answers"][0][1] >= 3

    async def test_answer_submitted_once(self):
        controller, recognizer, calls = self.make()

        controller.listen()
        await wait_until(lambda: recognizer.active)
        recognizer.emit_result("Done.", is_final=True)
        recognizer.emit_end()
        recognizer.emit_end()

        assert [a[0] for a in calls["answers"]] == ["Done."]

    async def test_events_ignored_when_not_listening(self):
        controller, recognizer, calls = self.make(listening=False)

        controller.listen()
        await wait_until(lambda: recognizer.active)
        recognizer.emit_error(NO_SPEECH)

        assert calls == {"answers": [], "retries": 0, "fatal": [], "status": [None]}

    async def test_no_speech_policy(self):
        controller, recognizer, calls = self.make()
        controller.new_question()

        for expected_retries in (1, 2):
            controller.listen()
            await wait_until(lambda: recognizer.active)
            recognizer.emit_error(NO_SPEECH)
            assert calls["retries"] == expected_retries

        controller.listen()
        await wait_until(lambda: recognizer.active)
        recognizer.emit_error(NO_SPEECH)

        assert calls["answers"] == [(NO_SPEECH_ANSWER, 0)]

    async def test_network_restart_does_not_reset_counter(self):
        controller, recognizer, calls = self.make()

        controller.listen()
        await wait_until(lambda: recognizer.active)
        recognizer.emit_error(NETWORK)
        await wait_until(lambda: recognizer.start_count == 2 and recognizer.active)

        assert controller.network_retries == 1
        assert calls["answers"] == []
        controller.cancel()

    async def test_service_not_allowed_is_fatal(self):
        controller, recognizer, calls = self.make()

        controller.listen()
        await wait_until(lambda: recognizer.active)
        recognizer.emit_error(SERVICE_NOT_ALLOWED)

        assert calls["fatal"] == [MSG_PERMISSION_DENIED]
        assert calls["answers"] == []

    async def test_cancel_aborts_and_clears_timers(self):
        controller, recognizer, calls = self.make(silence_timeout=0.02)

        controller.listen()
        await wait_until(lambda: recognizer.active)
        recognizer.emit_result("partial", is_final=True)
        controller.is_listening = lambda: False
        controller.cancel()
        await asyncio.sleep(0.05)

        assert recognizer.abort_count == 1
        assert recognizer.stop_count == 0
        assert calls["answers"] == []


class TestQuestionSources:

    async def test_generated_questions_are_stripped(self):
        source = GeneratedQuestionSource(MockOracle(questions=["  Why us?  "]), total=3)
        question = await source.next_question(InterviewConfig(), [], 1)
        assert question == "Why us?"
        assert source.total == 3

    async def test_oracle_failure_becomes_question_error(self):
        source = GeneratedQuestionSource(MockOracle(fail_questions=True))
        with pytest.raises(QuestionGenerationError):
            await source.next_question(InterviewConfig(), [], 1)

    async def test_empty_question_is_an_error(self):
        source = GeneratedQuestionSource(MockOracle(questions=["   "]))
        with pytest.raises(QuestionGenerationError):
            await source.next_question(InterviewConfig(), [], 1)

    async def test_fixed_questions_in_order(self):
        source = FixedQuestionSource(["One?", "", "Two?"])
        assert source.total == 2
        assert await source.next_question(InterviewConfig(), [], 2) == "Two?"
        with pytest.raises(QuestionGenerationError):
            await source.next_question(InterviewConfig(), [], 3)

    def test_fixed_source_needs_questions(self):
        with pytest.raises(ValueError):
            FixedQuestionSource(["  "])
