"""Exceptions raised while solving an AWS WAF challenge."""

from typing import Optional


class AwsWafError(Exception):
    """Base class for every error raised by awswaf_solver."""


class ChallengeParseError(AwsWafError):
    """The challenge page did not contain the expected script or parameters."""


class SolverServiceError(AwsWafError):
    """The solving service reported an error for a task."""

    def __init__(self, description: str, error_id: int = 1, error_code: Optional[str] = None):
        self.description = description
        self.error_id = error_id
        self.error_code = error_code
        if error_code:
            super().__init__(f"{error_code}: {description}")
        else:
            super().__init__(description)

    @classmethod
    def from_response(cls, data: dict) -> "SolverServiceError":
        """Builds the error from a service response body."""
        return cls(
            data.get("errorDescription") or "unknown error",
            error_id=data.get("errorId", 1),
            error_code=data.get("errorCode"),
        )


class SolverTimeoutError(SolverServiceError):
    """The task was still processing when the poll policy ran out."""
