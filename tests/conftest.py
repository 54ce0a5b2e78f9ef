"""
Pytest configuration for the fuzz harness test suite.

Provides:
- Langfuse tracing disabled for all tests
- Stub generative client and validator
- A contract file on disk
"""
import os

# Must be set before langfuse creates its client
os.environ.setdefault("LANGFUSE_TRACING_ENABLED", "false")

import pytest

from fuzz_assistant.compile_ops.validator import ValidationOutcome
from fuzz_assistant.errors import ServiceError


VAULT_SOURCE = """// SPDX-License-Identifier: MIT
pragma solidity ^0.8.0;

contract Vault {
    mapping(address => uint256) public balances;
    uint256 public totalDeposited;

    function deposit() public payable {
        balances[msg.sender] += msg.value;
        totalDeposited += msg.value;
    }
}
"""


class StubGenerator:
    """Returns canned responses and records every history it was sent."""

    def __init__(self, responses=None, fail_on_call=None):
        self.responses = list(responses or [])
        self.fail_on_call = fail_on_call
        self.calls = []

    def request(self, messages):
        self.calls.append(tuple(messages))
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise ServiceError("quota exceeded")
        if self.responses:
            return self.responses.pop(0)
        return f"// harness revision {len(self.calls)}\n"


class StubValidator:
    """Fails a fixed number of times, then reports success."""

    def __init__(self, failures=0, diagnostic="Error: undeclared identifier"):
        self.failures = failures
        self.diagnostic = diagnostic
        self.calls = []

    def run(self, path):
        self.calls.append(path)
        if len(self.calls) <= self.failures:
            return ValidationOutcome(ok=False, diagnostic=self.diagnostic, exit_code=1)
        return ValidationOutcome(ok=True)


@pytest.fixture
def vault_source(tmp_path):
    """A Vault.sol contract inside a temporary project."""
    path = tmp_path / "contracts" / "Vault.sol"
    path.parent.mkdir()
    path.write_text(VAULT_SOURCE)
    return path


@pytest.fixture
def make_contract(tmp_path):
    """Factory writing additional contract files."""
    def _make(name, body=None):
        path = tmp_path / f"{name}.sol"
        path.write_text(body or f"contract {name} {{}}\n")
        return path
    return _make
