"""
Artifact Store
==============
Filesystem access for fuzz harness files.

Each contract gets one harness file next to it, named with the `_fuzz`
suffix:

    contracts/Vault.sol  →  contracts/Vault_fuzz.sol

Usage:
    store = ArtifactStore()
    test_path = derive_test_file_path("contracts/Vault.sol")

    store.ensure_exists(test_path)
    store.write(test_path, harness_code)
    print(store.read(test_path))
"""

from pathlib import Path
from typing import Union

from fuzz_assistant.errors import ArtifactIOError, ArtifactNotFoundError


TEST_FILE_SUFFIX = "_fuzz"
TEST_CONTRACT_SUFFIX = "Test"

PathLike = Union[str, Path]


# =============================================================================
# NAMING
# =============================================================================

def derive_test_file_path(source_path: PathLike) -> Path:
    """
    Derive the harness file path for a contract source file.

    Keeps the directory and extension, and inserts the `_fuzz` suffix
    before the extension.

    Args:
        source_path: Path to the contract source file

    Returns:
        Path of the companion harness file
    """
    path = Path(source_path)
    return path.with_name(f"{path.stem}{TEST_FILE_SUFFIX}{path.suffix}")


def derive_test_contract_name(contract_name: str) -> str:
    """Name of the test contract that holds the fuzz tests for `contract_name`."""
    return f"{contract_name}{TEST_CONTRACT_SUFFIX}"


# =============================================================================
# STORE
# =============================================================================

class ArtifactStore:
    """
    Creates, reads and overwrites harness files.

    Writes always replace the whole file. Reads and writes keep line
    endings exactly as given.
    """

    encoding = "utf-8"

    def ensure_exists(self, path: PathLike) -> bool:
        """
        Create an empty file at `path` if nothing is there yet.

        An existing file is left untouched.

        Returns:
            True if the file was created, False if it already existed
        """
        try:
            with open(path, "x", encoding=self.encoding):
                pass
        except FileExistsError:
            return False
        except OSError as e:
            raise ArtifactIOError(f"Could not create {path}: {e}") from e

        print(f"[ArtifactStore] Created {path}")
        return True

    def read(self, path: PathLike) -> str:
        """Return the full text content of `path`."""
        try:
            with open(path, "r", encoding=self.encoding, newline="") as f:
                return f.read()
        except FileNotFoundError as e:
            raise ArtifactNotFoundError(f"File not found: {path}") from e
        except (OSError, UnicodeDecodeError) as e:
            raise ArtifactIOError(f"Could not read {path}: {e}") from e

    def write(self, path: PathLike, content: str) -> None:
        """Replace the full content of `path` with `content`."""
        try:
            with open(path, "w", encoding=self.encoding, newline="") as f:
                f.write(content)
        except OSError as e:
            raise ArtifactIOError(f"Could not write {path}: {e}") from e
