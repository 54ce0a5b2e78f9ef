"""
Fuzz Harness Pipeline
=====================
Orchestrates the generate → validate → repair loop for each contract.

Flow per contract:
1. Ensure the harness file exists (created empty if missing)
2. Ask the AI for a new invariant test, given the contract and current harness
3. Write the response to the harness file
4. Validate the harness with crytic-compile
5. If valid → Done
6. If invalid → send the compile error back, write the fix, validate again
   (up to the repair budget)

All requests share one conversation history, so each contract's exchange
stays in context for the next.

Usage:
    # From command line:
    python -m fuzz_assistant.pipeline Vault=contracts/Vault.sol Token=contracts/Token.sol

    # From code:
    from fuzz_assistant.pipeline import FuzzHarnessPipeline, SourceUnit

    pipeline = FuzzHarnessPipeline(
        generator=HarnessGenerator(),
        validator=CompileValidator()
    )
    result = pipeline.run([SourceUnit("Vault", Path("contracts/Vault.sol"))])

    print(result.summary())
"""

import os
import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional

from dotenv import load_dotenv
from langfuse import observe, get_client

# Our modules
from fuzz_assistant.compile_ops.artifact_store import (
    ArtifactStore,
    derive_test_contract_name,
    derive_test_file_path,
)
from fuzz_assistant.compile_ops.validator import (
    DEFAULT_COMMAND,
    DEFAULT_TIMEOUT,
    CompileValidator,
    Validator,
)
from fuzz_assistant.errors import HarnessError, RepairLimitExceeded
from fuzz_assistant.harness_generator.conversation import ConversationHistory, Message, Role
from fuzz_assistant.harness_generator.generator import (
    GenerativeClient,
    GeneratorConfig,
    HarnessGenerator,
)
from fuzz_assistant.harness_generator.prompts import (
    HarnessRequest,
    build_generation_prompt,
    build_repair_prompt,
)

load_dotenv()


# =============================================================================
# CONFIGURATION
# =============================================================================

DEFAULT_MAX_REPAIRS = 5


def repair_limit(value: int) -> Optional[int]:
    """Negative values mean no limit."""
    return None if value < 0 else value


@dataclass
class HarnessConfig:
    """Configuration for the harness pipeline."""
    max_repair_attempts: Optional[int] = DEFAULT_MAX_REPAIRS  # None = retry until valid
    validator_command: str = DEFAULT_COMMAND
    validator_timeout: int = DEFAULT_TIMEOUT
    share_history: bool = True

    @classmethod
    def from_env(cls) -> "HarnessConfig":
        """Create config from environment variables."""
        share = os.getenv("HARNESS_SHARE_HISTORY", "true").strip().lower()
        return cls(
            max_repair_attempts=repair_limit(
                int(os.getenv("HARNESS_MAX_REPAIRS", str(DEFAULT_MAX_REPAIRS)))
            ),
            validator_command=os.getenv("HARNESS_VALIDATOR", DEFAULT_COMMAND),
            validator_timeout=int(os.getenv("HARNESS_VALIDATOR_TIMEOUT", str(DEFAULT_TIMEOUT))),
            share_history=share not in ("0", "false", "no")
        )


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass
class SourceUnit:
    """A contract to generate a fuzz harness for."""
    name: str
    source_path: Path

    @classmethod
    def parse(cls, value: str) -> "SourceUnit":
        """Parse a `Name=path/to/Contract.sol` argument."""
        name, sep, path = value.partition("=")
        if not sep or not name.strip() or not path.strip():
            raise ValueError(f"Expected NAME=PATH, got: {value!r}")
        return cls(name=name.strip(), source_path=Path(path.strip()))


class UnitStatus(str, Enum):
    PENDING = "pending"
    DONE = "done"
    FAILED = "failed"


@dataclass
class UnitResult:
    """Outcome for one contract."""
    name: str
    source_path: Path
    test_file_path: Path
    status: UnitStatus = UnitStatus.PENDING
    repair_attempts: int = 0
    validator_calls: int = 0
    final_diagnostic: Optional[str] = None


@dataclass
class HarnessResult:
    """Complete result from a pipeline run."""
    units: list[UnitResult] = field(default_factory=list)
    history_length: int = 0

    @property
    def success(self) -> bool:
        """True when every contract ended with a valid harness."""
        return all(u.status == UnitStatus.DONE for u in self.units)

    @property
    def failed_units(self) -> list[UnitResult]:
        return [u for u in self.units if u.status == UnitStatus.FAILED]

    def summary(self) -> str:
        """Generate human-readable summary."""
        lines = ["=" * 60, "Fuzz Harness Summary", "=" * 60]

        for unit in self.units:
            mark = "✅" if unit.status == UnitStatus.DONE else "❌"
            lines.append(
                f"{mark} {unit.name}: {unit.test_file_path} "
                f"({unit.repair_attempts} repair(s), {unit.validator_calls} validation(s))"
            )
            if unit.status == UnitStatus.FAILED and unit.final_diagnostic:
                lines.append(f"   Last error: {unit.final_diagnostic[:200]}")

        lines.append(f"Status: {'SUCCESS' if self.success else 'INCOMPLETE'}")
        lines.append(f"Conversation messages: {self.history_length}")
        lines.append("=" * 60)
        return "\n".join(lines)


# =============================================================================
# PIPELINE
# =============================================================================

class FuzzHarnessPipeline:
    """
    Drives harness generation, validation and repair for a list of contracts.

    Contracts are processed one at a time, in order. A unit that runs out of
    repair attempts is marked FAILED and the run continues. Any other
    HarnessError (file access, generative service, validator execution)
    stops the run and propagates to the caller.
    """

    def __init__(
        self,
        generator: GenerativeClient,
        validator: Validator,
        store: Optional[ArtifactStore] = None,
        config: Optional[HarnessConfig] = None,
        history: Optional[ConversationHistory] = None
    ):
        """
        Initialize the pipeline.

        Args:
            generator: Generative client that answers prompts
            validator: Validator that checks harness files
            store: Harness file store (default: ArtifactStore())
            config: Pipeline configuration (default: HarnessConfig())
            history: Conversation history (default: seeded with training prompts)
        """
        self.generator = generator
        self.validator = validator
        self.store = store or ArtifactStore()
        self.config = config or HarnessConfig()
        self.history = history if history is not None else ConversationHistory.seeded()
        self._seed = self.history.snapshot()

        print("[Pipeline] Initialized")

    @observe(name="fuzz_harness_pipeline")
    def run(self, units: Iterable[SourceUnit]) -> HarnessResult:
        """
        Generate and validate a harness for each contract.

        Args:
            units: Contracts to process, in order

        Returns:
            HarnessResult with one UnitResult per processed contract
        """
        result = HarnessResult()
        print("[Pipeline] Generating fuzzing harness...")

        isolated_messages = 0
        for unit in units:
            if self.config.share_history:
                history = self.history
            else:
                history = ConversationHistory(self._seed)
            result.units.append(self.process_unit(unit, history))
            if not self.config.share_history:
                isolated_messages += len(history)

        # Isolated runs report the total across every per-contract history
        if self.config.share_history:
            result.history_length = len(self.history)
        else:
            result.history_length = isolated_messages

        try:
            get_client().update_current_span(
                output={
                    "success": result.success,
                    "units": len(result.units),
                    "failed_units": [u.name for u in result.failed_units]
                },
                metadata={"history_length": result.history_length}
            )
        except Exception:
            pass  # Langfuse logging is best-effort

        return result

    def process_unit(
        self,
        unit: SourceUnit,
        history: Optional[ConversationHistory] = None
    ) -> UnitResult:
        """
        Run the full loop for one contract.

        Args:
            unit: Contract to process
            history: History to use (default: the pipeline's shared history)

        Returns:
            UnitResult with status DONE or FAILED
        """
        history = history if history is not None else self.history
        test_path = derive_test_file_path(unit.source_path)
        unit_result = UnitResult(
            name=unit.name,
            source_path=unit.source_path,
            test_file_path=test_path
        )

        print(f"\n{'=' * 60}")
        print(f"Generating fuzzing harness for {unit.name}")
        print(f"{'=' * 60}")

        # Step 1: Make sure the harness file exists
        self.store.ensure_exists(test_path)

        # Step 2: Ask for a new invariant test
        request = HarnessRequest(
            source_path=str(unit.source_path),
            test_file_path=str(test_path),
            source_code=self.store.read(unit.source_path),
            test_code=self.store.read(test_path),
            contract_name=unit.name,
            test_contract_name=derive_test_contract_name(unit.name)
        )
        response = self._exchange(history, build_generation_prompt(request))
        print(f"[Pipeline] Generated fuzzing harness for {unit.name}")

        # Steps 3-4: Write, validate, repair
        try:
            self._validate_and_repair(unit, test_path, response, history, unit_result)
        except RepairLimitExceeded as e:
            unit_result.status = UnitStatus.FAILED
            unit_result.final_diagnostic = e.diagnostic
            print(f"[Pipeline] ❌ {e}")
            return unit_result

        unit_result.status = UnitStatus.DONE
        print(f"[Pipeline] ✅ {unit.name} harness is valid")
        return unit_result

    def _validate_and_repair(
        self,
        unit: SourceUnit,
        test_path: Path,
        response: str,
        history: ConversationHistory,
        unit_result: UnitResult
    ) -> None:
        """
        Write the response and validate it, repairing until it compiles.

        Raises:
            RepairLimitExceeded: If the repair budget runs out
        """
        limit = self.config.max_repair_attempts

        while True:
            self.store.write(test_path, response)

            outcome = self.validator.run(test_path)
            unit_result.validator_calls += 1
            if outcome.ok:
                unit_result.final_diagnostic = None
                return

            unit_result.final_diagnostic = outcome.diagnostic
            if limit is not None and unit_result.repair_attempts >= limit:
                raise RepairLimitExceeded(
                    unit.name, unit_result.repair_attempts, outcome.diagnostic
                )

            unit_result.repair_attempts += 1
            print(f"[Pipeline] Regenerating harness due to error "
                  f"(repair {unit_result.repair_attempts}"
                  f"{'/' + str(limit) if limit is not None else ''}):")
            print(f"  {outcome.diagnostic[:500]}")

            response = self._exchange(history, build_repair_prompt(outcome.diagnostic))

    def _exchange(self, history: ConversationHistory, prompt: str) -> str:
        """Record the prompt, ask the generator, record and return its response."""
        history.append(Message(Role.USER, prompt))
        response = self.generator.request(history.snapshot())
        history.append(Message(Role.SYSTEM, response))
        return response


# =============================================================================
# Standalone Function
# =============================================================================

def generate_fuzz_harnesses(
    units: Iterable[SourceUnit],
    generator_config: Optional[GeneratorConfig] = None,
    harness_config: Optional[HarnessConfig] = None
) -> HarnessResult:
    """
    Convenience function to build the default pipeline and run it.

    Args:
        units: Contracts to process
        generator_config: Optional Gemini configuration
        harness_config: Optional pipeline configuration

    Returns:
        HarnessResult with final status

    Raises:
        HarnessError: On any fatal error
    """
    config = harness_config or HarnessConfig.from_env()
    pipeline = FuzzHarnessPipeline(
        generator=HarnessGenerator(config=generator_config),
        validator=CompileValidator(
            command=config.validator_command,
            timeout=config.validator_timeout
        ),
        config=config
    )
    return pipeline.run(units)


# =============================================================================
# CLI RUNNER
# =============================================================================

def main(argv: Optional[list[str]] = None) -> int:
    """Run the pipeline from command line."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Generate medusa fuzz harnesses for Solidity contracts"
    )
    parser.add_argument(
        "contracts",
        nargs="+",
        metavar="NAME=PATH",
        help="Contract name and source file, e.g. Vault=contracts/Vault.sol"
    )
    parser.add_argument("--model", default=None, help="Gemini model to use (default: from GEMINI_MODEL env var)")
    parser.add_argument(
        "--max-repairs",
        type=int,
        default=None,
        help="Repair attempts per contract; negative for no limit (default: HARNESS_MAX_REPAIRS or 5)"
    )
    parser.add_argument("--validator", default=None, help="Validator executable (default: crytic-compile)")
    parser.add_argument(
        "--isolate-history",
        action="store_true",
        help="Give each contract its own conversation history"
    )

    args = parser.parse_args(argv)

    try:
        units = [SourceUnit.parse(value) for value in args.contracts]
    except ValueError as e:
        parser.error(str(e))

    harness_config = HarnessConfig.from_env()
    if args.max_repairs is not None:
        harness_config.max_repair_attempts = repair_limit(args.max_repairs)
    if args.validator:
        harness_config.validator_command = args.validator
    if args.isolate_history:
        harness_config.share_history = False

    # Configure generator (uses GEMINI_MODEL env var if --model not specified)
    generator_config = GeneratorConfig(model=args.model) if args.model else GeneratorConfig.from_env()

    try:
        result = generate_fuzz_harnesses(
            units,
            generator_config=generator_config,
            harness_config=harness_config
        )
    except HarnessError as e:
        print(f"\n[Pipeline] FATAL: {e}")
        return 1

    print("\n" + result.summary())
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
