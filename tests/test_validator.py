"""
Tests for fuzz_assistant/compile_ops/validator.py
Maps crytic-compile process results to validation outcomes.
"""

import subprocess
from unittest.mock import patch

import pytest

from fuzz_assistant.compile_ops.validator import CompileValidator
from fuzz_assistant.errors import ToolExecutionError


def _completed(returncode, stdout="", stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class TestCompileValidatorCommand:

    def test_default_command(self):
        validator = CompileValidator()

        assert validator.build_command("c/Vault_fuzz.sol") == [
            "crytic-compile", "c/Vault_fuzz.sol", "--ignore-compile"
        ]

    def test_custom_command(self):
        validator = CompileValidator(command="/opt/bin/crytic-compile", extra_args=())

        assert validator.build_command("Vault_fuzz.sol") == ["/opt/bin/crytic-compile", "Vault_fuzz.sol"]

    def test_passes_timeout_and_cwd(self, tmp_path):
        validator = CompileValidator(timeout=30, cwd=tmp_path)

        with patch("subprocess.run", return_value=_completed(0)) as run:
            validator.run("Vault_fuzz.sol")

        kwargs = run.call_args.kwargs
        assert kwargs["timeout"] == 30
        assert kwargs["cwd"] == tmp_path
        assert kwargs["capture_output"] is True


class TestCompileValidatorOutcome:
    """Exit status handling."""

    def test_zero_exit_is_ok(self):
        with patch("subprocess.run", return_value=_completed(0, stdout="Compilation ok")):
            outcome = CompileValidator().run("Vault_fuzz.sol")

        assert outcome.ok is True
        assert outcome.diagnostic == ""
        assert "crytic-compile Vault_fuzz.sol" in outcome.command_used

    def test_nonzero_exit_returns_stderr_diagnostic(self):
        stderr = "Error: Identifier not found or not unique.\n --> Vault_fuzz.sol:12:5\n"
        with patch("subprocess.run", return_value=_completed(1, stderr=stderr)):
            outcome = CompileValidator().run("Vault_fuzz.sol")

        assert outcome.ok is False
        assert outcome.exit_code == 1
        assert "Identifier not found" in outcome.diagnostic

    def test_falls_back_to_stdout_when_stderr_empty(self):
        with patch("subprocess.run", return_value=_completed(2, stdout="ParserError: Expected ';'")):
            outcome = CompileValidator().run("Vault_fuzz.sol")

        assert outcome.ok is False
        assert outcome.diagnostic == "ParserError: Expected ';'"

    def test_missing_executable_raises(self):
        with patch("subprocess.run", side_effect=FileNotFoundError("crytic-compile")):
            with pytest.raises(ToolExecutionError):
                CompileValidator().run("Vault_fuzz.sol")

    def test_timeout_raises(self):
        error = subprocess.TimeoutExpired(cmd="crytic-compile", timeout=120)
        with patch("subprocess.run", side_effect=error):
            with pytest.raises(ToolExecutionError, match="timed out"):
                CompileValidator().run("Vault_fuzz.sol")

    def test_signal_termination_raises(self):
        with patch("subprocess.run", return_value=_completed(-9)):
            with pytest.raises(ToolExecutionError, match="signal 9"):
                CompileValidator().run("Vault_fuzz.sol")
