"""
Error taxonomy for the interview engine.

Every exception carries a short user-facing message; raw transport errors
are converted at the call site and never shown to the candidate.
"""

MSG_PERMISSION_DENIED = (
    "Microphone access was denied. Please enable it in your system settings to continue."
)
MSG_MEDIA_UNAVAILABLE = (
    "Could not access the microphone. Please ensure it is connected and not in use by another application."
)
MSG_UNSUPPORTED_PLATFORM = (
    "Speech recognition is not available on this system. Please install the audio extras or use text mode."
)
MSG_QUESTION_FAILED = (
    "Failed to generate the next question from the AI. Please try ending and restarting the interview."
)
MSG_SUMMARY_FAILED = "Could not generate interview summary."
MSG_NETWORK_FAILED = "A network error occurred with the speech service. Please check your connection."
MSG_NETWORK_RETRYING = "Network issue. Retrying... ({attempt}/{limit})"
MSG_RECOGNITION_FAILED = "An unexpected error occurred: {kind}."


class InterviewError(Exception):
    """Base class for all interview errors."""

    default_message = "Something went wrong during the interview."

    def __init__(self, user_message: str = None, detail: str = None):
        self.user_message = user_message or self.default_message
        self.detail = detail
        super().__init__(detail or self.user_message)


class QuestionGenerationError(InterviewError):
    default_message = MSG_QUESTION_FAILED


class SummaryGenerationError(InterviewError):
    default_message = MSG_SUMMARY_FAILED


class MediaPermissionError(InterviewError):
    default_message = MSG_PERMISSION_DENIED


class MediaUnavailableError(InterviewError):
    default_message = MSG_MEDIA_UNAVAILABLE


class UnsupportedPlatformError(InterviewError):
    default_message = MSG_UNSUPPORTED_PLATFORM


class OracleResponseError(InterviewError):
    """The oracle answered, but not with something usable."""
    default_message = "The AI returned an unexpected response."
