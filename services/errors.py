# services/errors.py
from __future__ import annotations


class EngineError(Exception):
    """Base class for every failure the problem engine reports to its callers."""

    status_code = 500

    @property
    def kind(self) -> str:
        return type(self).__name__


# --- Provider ------------------------------------------------------------------


class ProviderError(EngineError):
    status_code = 502


class ProviderUnavailable(ProviderError):
    pass


class ProviderTimeout(ProviderError):
    pass


# --- Untrusted provider output ------------------------------------------------


class InvalidPayload(EngineError):
    status_code = 502


class InvalidProblemFormat(InvalidPayload):
    pass


class InvalidFeedbackFormat(InvalidPayload):
    pass


class ProblemGenerationFailed(EngineError):
    status_code = 502

    def __init__(self, cause: EngineError):
        super().__init__(f"{cause.kind}: {cause}")
        self.cause = cause

    @property
    def reason(self) -> str:
        return self.cause.kind


# --- Sessions / submissions ---------------------------------------------------


class SessionNotFound(EngineError):
    status_code = 404

    def __init__(self, session_id: str):
        super().__init__(f"session {session_id!r} not found")
        self.session_id = session_id


class DuplicateSubmission(EngineError):
    status_code = 409

    def __init__(self, session_id: str):
        super().__init__(f"session {session_id!r} already has a submission")
        self.session_id = session_id


class AlreadySubmitted(EngineError):
    status_code = 409

    def __init__(self, session_id: str):
        super().__init__(f"an answer was already submitted for session {session_id!r}")
        self.session_id = session_id


class PersistenceFailure(EngineError):
    status_code = 500


# --- Caller input -------------------------------------------------------------


class InvalidRequest(EngineError):
    status_code = 400


class InvalidAnswer(InvalidRequest):
    pass
