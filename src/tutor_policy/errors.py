"""Exceptions raised by the policy and analysis layers."""


class PolicyError(Exception):
    """Base class for access-policy failures that reach the HTTP boundary."""


class ProfileNotFound(PolicyError):
    """A session has no profile where one is required."""

    def __init__(self, session_id: str):
        super().__init__(f"Profile not found for session {session_id}")
        self.session_id = session_id


class ProfileInvariantViolation(PolicyError):
    """A stored profile no longer matches what its tier grants."""

    def __init__(self, session_id: str, detail: str):
        super().__init__(f"Profile {session_id} is inconsistent: {detail}")
        self.session_id = session_id


class AnalysisDegraded(Exception):
    """A detection stage could not produce a judgment.

    Never leaves the error detection pipeline: it is logged there and the
    stage yields no findings.
    """
