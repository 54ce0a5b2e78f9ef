"""
Harness Errors
==============
Error taxonomy for the fuzz harness pipeline.

Fatal errors (abort the whole run):
- ArtifactIOError / ArtifactNotFoundError: harness or contract file access failed
- ServiceError: the generative service call failed
- ToolExecutionError: the validator could not be run

Recoverable:
- RepairLimitExceeded: a unit ran out of repair attempts; the run moves on
"""

from typing import Optional


class HarnessError(Exception):
    """Base class for fuzz harness errors."""


class ArtifactIOError(HarnessError):
    """Raised when a harness or contract file cannot be created, read or written."""


class ArtifactNotFoundError(ArtifactIOError):
    pass


class ServiceError(HarnessError):
    """Raised when the generative service fails to return content."""


class ToolExecutionError(HarnessError):
    """Raised when the validator process could not be spawned or completed."""


class RepairLimitExceeded(HarnessError):
    """Raised when a harness still fails validation after the repair budget."""

    def __init__(self, unit_name: str, attempts: int, diagnostic: Optional[str] = None):
        self.unit_name = unit_name
        self.attempts = attempts
        self.diagnostic = diagnostic
        super().__init__(
            f"{unit_name}: harness still invalid after {attempts} repair attempt(s)"
        )
