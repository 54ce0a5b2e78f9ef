"""
Tests for fuzz_assistant/compile_ops/artifact_store.py
Harness path naming and harness file access.
"""

from pathlib import Path

import pytest

from fuzz_assistant.compile_ops.artifact_store import (
    ArtifactStore,
    derive_test_contract_name,
    derive_test_file_path,
)
from fuzz_assistant.errors import ArtifactIOError, ArtifactNotFoundError


class TestDeriveTestFilePath:
    """Harness file naming."""

    def test_inserts_suffix_before_extension(self):
        assert derive_test_file_path("contracts/Vault.sol") == Path("contracts/Vault_fuzz.sol")

    def test_keeps_directory_and_extension(self):
        source = Path("/work/project/src/Token.sol")
        derived = derive_test_file_path(source)

        assert derived.parent == source.parent
        assert derived.suffix == source.suffix
        assert derived.name == "Token_fuzz.sol"

    def test_repeated_calls_agree(self):
        """Deriving twice from the same path gives the same harness path."""
        assert derive_test_file_path("a/b/Pool.sol") == derive_test_file_path("a/b/Pool.sol")

    def test_only_last_extension_is_kept(self):
        assert derive_test_file_path("lib/Math.t.sol") == Path("lib/Math.t_fuzz.sol")

    def test_file_without_extension(self):
        assert derive_test_file_path("src/Vault") == Path("src/Vault_fuzz")

    def test_accepts_str_and_path(self):
        assert derive_test_file_path("x/Vault.sol") == derive_test_file_path(Path("x/Vault.sol"))


class TestDeriveTestContractName:

    def test_appends_test(self):
        assert derive_test_contract_name("Vault") == "VaultTest"


class TestEnsureExists:
    """Creating harness files."""

    def test_creates_empty_file(self, tmp_path):
        path = tmp_path / "Vault_fuzz.sol"

        created = ArtifactStore().ensure_exists(path)

        assert created is True
        assert path.read_text() == ""

    def test_existing_content_is_untouched(self, tmp_path):
        path = tmp_path / "Vault_fuzz.sol"
        path.write_text("contract VaultTest {}\n")

        created = ArtifactStore().ensure_exists(path)

        assert created is False
        assert path.read_text() == "contract VaultTest {}\n"

    def test_missing_directory_raises_io_error(self, tmp_path):
        with pytest.raises(ArtifactIOError):
            ArtifactStore().ensure_exists(tmp_path / "missing" / "Vault_fuzz.sol")


class TestReadWrite:
    """Reading and overwriting harness files."""

    def test_write_replaces_previous_content(self, tmp_path):
        store = ArtifactStore()
        path = tmp_path / "Vault_fuzz.sol"
        path.write_text("old content that is much longer than the new one\n" * 10)

        store.write(path, "new")

        assert store.read(path) == "new"

    def test_line_endings_are_preserved(self, tmp_path):
        store = ArtifactStore()
        path = tmp_path / "Vault_fuzz.sol"
        content = "pragma solidity ^0.8.0;\r\ncontract VaultTest {}\r\n"

        store.write(path, content)

        assert store.read(path) == content

    def test_read_missing_file_raises_not_found(self, tmp_path):
        with pytest.raises(ArtifactNotFoundError):
            ArtifactStore().read(tmp_path / "nope.sol")

    def test_not_found_is_an_io_error(self):
        assert issubclass(ArtifactNotFoundError, ArtifactIOError)

    def test_write_into_missing_directory_raises(self, tmp_path):
        with pytest.raises(ArtifactIOError):
            ArtifactStore().write(tmp_path / "missing" / "Vault_fuzz.sol", "x")
