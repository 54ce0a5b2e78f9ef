"""
Compile Operations Package
==========================
Harness file storage and compile validation.

Modules:
- artifact_store: harness path naming and file create/read/write
- validator: runs crytic-compile against a harness file
"""

from .artifact_store import ArtifactStore, derive_test_contract_name, derive_test_file_path
from .validator import CompileValidator, ValidationOutcome, Validator

__all__ = [
    "ArtifactStore",
    "derive_test_contract_name",
    "derive_test_file_path",
    "CompileValidator",
    "ValidationOutcome",
    "Validator",
]
