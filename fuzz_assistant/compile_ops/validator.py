"""
Compile Validator
=================
Checks generated fuzz harnesses with crytic-compile before they are kept.

The validator runs:

    crytic-compile <harness_path> --ignore-compile

and maps the process result to a ValidationOutcome:
- exit code 0        → ok
- positive exit code → not ok, with the tool's error output as diagnostic
- spawn failure, timeout or signal termination → ToolExecutionError

Usage:
    validator = CompileValidator()
    outcome = validator.run("contracts/Vault_fuzz.sol")

    if not outcome.ok:
        print(outcome.diagnostic)
"""

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Sequence, Union

from fuzz_assistant.errors import ToolExecutionError


DEFAULT_COMMAND = "crytic-compile"
DEFAULT_ARGS = ("--ignore-compile",)
DEFAULT_TIMEOUT = 120


@dataclass
class ValidationOutcome:
    """Result of validating one harness file."""
    ok: bool
    diagnostic: str = ""
    exit_code: int = 0
    command_used: str = ""


class Validator(Protocol):
    """Anything that can check a harness file and report a diagnostic."""

    def run(self, path: Union[str, Path]) -> ValidationOutcome:
        ...


class CompileValidator:
    """
    Runs an external compile check against a harness file.

    The command is executed directly (no shell) so harness paths with
    spaces are passed through intact.
    """

    def __init__(
        self,
        command: str = DEFAULT_COMMAND,
        extra_args: Sequence[str] = DEFAULT_ARGS,
        timeout: int = DEFAULT_TIMEOUT,
        cwd: Union[str, Path, None] = None
    ):
        """
        Initialize the validator.

        Args:
            command: Executable to run (default: crytic-compile)
            extra_args: Arguments placed after the harness path
            timeout: Timeout for one validation run in seconds
            cwd: Working directory for the tool (default: current directory)
        """
        self.command = command
        self.extra_args = tuple(extra_args)
        self.timeout = timeout
        self.cwd = cwd

    def build_command(self, path: Union[str, Path]) -> list[str]:
        return [self.command, str(path), *self.extra_args]

    def run(self, path: Union[str, Path]) -> ValidationOutcome:
        """
        Validate a harness file.

        Args:
            path: Path to the harness file

        Returns:
            ValidationOutcome with ok flag and diagnostic text

        Raises:
            ToolExecutionError: If the tool could not be run to completion
        """
        cmd = self.build_command(path)
        cmd_str = " ".join(cmd)
        print(f"[Validator] Executing: {cmd_str}")

        try:
            result = subprocess.run(
                cmd,
                cwd=self.cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout
            )
        except subprocess.TimeoutExpired as e:
            raise ToolExecutionError(
                f"Validation timed out after {self.timeout}s: {cmd_str}"
            ) from e
        except OSError as e:
            raise ToolExecutionError(f"Could not run {self.command}: {e}") from e

        if result.returncode < 0:
            raise ToolExecutionError(
                f"{self.command} was terminated by signal {-result.returncode}"
            )

        if result.returncode == 0:
            print("[Validator] Harness compiles")
            return ValidationOutcome(ok=True, exit_code=0, command_used=cmd_str)

        print(f"[Validator] Harness FAILED (exit code: {result.returncode})")
        return ValidationOutcome(
            ok=False,
            diagnostic=(result.stderr or result.stdout).strip(),
            exit_code=result.returncode,
            command_used=cmd_str
        )
