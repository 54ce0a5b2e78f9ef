"""
Prompt Templates for Fuzz Harness Generation
============================================
Prompts sent to Gemini to write and repair medusa fuzz harnesses.

Components:
- TRAINING_PROMPTS: system messages that seed every conversation
- GENERATION_PROMPT_TEMPLATE: asks for one new invariant test for a contract
- REPAIR_PROMPT_TEMPLATE: feeds a compile error back for a corrected harness
- HarnessRequest: the fields a generation prompt is built from

Every response is written straight to a .sol file, so each prompt ends by
asking for the bare file content with no markdown and no commentary.
"""

from dataclasses import dataclass

from .conversation import Message, Role


# =============================================================================
# TRAINING PROMPTS
# =============================================================================

FUZZER_PRIMER = """# Fuzzing smart contracts with medusa

`medusa` is a go-ethereum based smart contract fuzzer inspired by Echidna. It runs random sequences of transactions against a test contract and checks that the contract's invariants hold.

A smart contract cannot "crash" the way a binary can: a reverted transaction is normal behaviour. Fuzzing smart contracts therefore means validating **invariants**, properties that must stay true no matter which operations are applied.

Examples of invariants:
1. Mathematical: `a + b == b + a` for any math library.
2. ERC20 tokens: the sum of all balances never exceeds the total supply.
3. Constant-product AMMs: `x * y == k` holds across swaps.

## Function-level invariants

A property that follows from executing one function. For a `deposit()` that credits `msg.value` to `balances[msg.sender]` and adds it to `totalDeposited`:
- the ETH balance of `address(this)` increases by `amount`
- `balances[msg.sender]` increases by `amount`
- `totalDeposited` increases by `amount`

Identify them by asking what must be true before the call and what must be true after it.

## System-level invariants

A property that holds across the entire execution of the system, whatever functions other actors call. For the deposit contract above: `totalDeposited` is always less than or equal to `MAX_DEPOSIT_AMOUNT`. Because `withdraw` or `stake` can also change `totalDeposited`, this is tested at the system level.

## Writing fuzz tests

Unit tests fix their inputs. Fuzz tests take their inputs as arguments so medusa can explore the input space, and clamp those inputs to a meaningful range before acting:

```solidity
function testDeposit(uint256 _amount) public {
    uint256 amount = clampLte(_amount, address(this).balance);
    uint256 preBalance = depositContract.balances(address(this));
    depositContract.deposit{value: amount}();
    assert(depositContract.balances(address(this)) == preBalance + amount);
}
```

## Testing modes

- Assertion testing: any public function of the test contract is called with random arguments; a failing `assert` is a finding.
- Property testing: functions prefixed with `fuzz_` take no arguments and return `bool`; returning `false` is a finding.
- Use pre-conditions and post-conditions to check state before and after each call. Test edge cases and extreme values.
"""

CHEATCODE_NOTES = """## medusa cheatcodes

Cheatcodes are exposed by a contract deployed at `0x7109709ECfa91a80626fF3989D68f67F5b1DD12D`. Declare the interface in the harness (or import it) and call it through that address:

```solidity
interface IStdCheats {
    function warp(uint256) external;
    function roll(uint256) external;
    function fee(uint256) external;
    function difficulty(uint256) external;
    function chainId(uint256) external;
    function coinbase(address) external;
    function store(address account, bytes32 slot, bytes32 value) external;
    function load(address account, bytes32 slot) external returns (bytes32);
    function prank(address) external;
    function prankHere(address) external;
    function deal(address who, uint256 newBalance) external;
    function etch(address who, bytes calldata code) external;
    function sign(uint256 privateKey, bytes32 digest) external returns (uint8 v, bytes32 r, bytes32 s);
    function addr(uint256 privateKey) external returns (address);
    function getNonce(address account) external returns (uint64);
    function setNonce(address account, uint64 nonce) external;
    function snapshot() external returns (uint256);
    function revertTo(uint256) external returns (bool);
}

contract MyTest {
    IStdCheats cheats = IStdCheats(0x7109709ECfa91a80626fF3989D68f67F5b1DD12D);

    function testNonce(uint256 x) public {
        require(x > cheats.getNonce(msg.sender));
        cheats.setNonce(msg.sender, uint64(x));
        assert(cheats.getNonce(msg.sender) == x);
    }
}
```

- `warp` / `roll` set `block.timestamp` / `block.number`.
- `prank` sets `msg.sender` for the next call only; `prankHere` keeps it until the current call exits.
- `deal` sets an address' ETH balance; `etch` replaces an address' code.
- `snapshot` / `revertTo` save and restore EVM state.
- `setNonce` only accepts a nonce higher than the current one.
"""

TRAINING_PROMPTS: tuple[Message, ...] = (
    Message(Role.SYSTEM, FUZZER_PRIMER),
    Message(Role.SYSTEM, CHEATCODE_NOTES),
    Message(
        Role.SYSTEM,
        "You are a smart contract auditing assistant. You generate fuzz tests to be run by `medusa`. "
        "Do not generate tests for `Foundry`; only generate tests to be run by `medusa`. "
        "Use medusa's cheatcodes where necessary."
    ),
    Message(
        Role.SYSTEM,
        "You will be given main contracts. Examine them carefully to find possible "
        "vulnerabilities and invariants that should be tested."
    ),
    Message(
        Role.SYSTEM,
        "Instructions preceded by 'Note:' are of the utmost importance."
    ),
)


# =============================================================================
# GENERATION PROMPT
# =============================================================================

GENERATION_PROMPT_TEMPLATE = """The following text in triple quotes is my Solidity file at {source_path}, containing my main contracts: '''{source_code}'''

I want to fuzz test the contracts in this file. The following text in triple quotes is the fuzz harness at {test_file_path}: '''{test_code}'''

Step 1 - If a contract named '{test_contract_name}' does not exist in the harness, create it. This contract holds the tests for '{contract_name}'.
Step 2 - Look at the tests already present in '{test_contract_name}'. If there are none, create one test case for '{contract_name}'. If there are tests, add exactly one more test case for '{contract_name}' to '{test_contract_name}'.
Note: The new test case must express a system invariant of '{contract_name}' and follow this form in triple quotes: '''function testDeposit(uint256 _amount) public {{
    // Bound the input to at most the ETH balance of this contract
    uint256 amount = clampLte(_amount, address(this).balance);

    // Retrieve the balance of the user before the deposit
    uint256 preBalance = depositContract.balances(address(this));

    // Call the deposit contract with a variable amount
    depositContract.deposit{{value: amount}}();

    // Assert post-conditions
    assert(depositContract.balances(address(this)) == preBalance + amount);
}}'''
Note: Return only the full contents of the harness file after the test case has been added to '{test_contract_name}'. If the harness has no SPDX license identifier or pragma, add them based on the license and version of the main contract file.
Note: Document the code properly.
Note: Import the main contract in the harness, using a path relative to the harness file.
Note: Do not include any text other than the harness file, and do not use markdown, because the response is written directly to a Solidity file.
"""


@dataclass
class HarnessRequest:
    """Everything a generation prompt needs about one contract."""
    source_path: str
    test_file_path: str
    source_code: str
    test_code: str
    contract_name: str
    test_contract_name: str


def build_generation_prompt(request: HarnessRequest) -> str:
    """
    Build the prompt asking for a new invariant test.

    Args:
        request: Contract and harness paths, contents and names

    Returns:
        Complete generation prompt
    """
    return GENERATION_PROMPT_TEMPLATE.format(
        source_path=request.source_path,
        source_code=request.source_code,
        test_file_path=request.test_file_path,
        test_code=request.test_code,
        contract_name=request.contract_name,
        test_contract_name=request.test_contract_name
    )


# =============================================================================
# REPAIR PROMPT
# =============================================================================

REPAIR_PROMPT_TEMPLATE = """There is an error in the generated fuzz harness. Here is the error in triple quotes: '''{diagnostic}'''
Fix the error and regenerate the harness file.
Note: Do not add any new invariants to the harness and do not remove any invariants from it.
Note: Return only the full contents of the regenerated harness file.
Note: Document the code properly, but do not add comments about the changes you made to fix the error.
Note: Do not include any text other than the harness file, and do not use markdown, because the response is written directly to a Solidity file.
"""


def build_repair_prompt(diagnostic: str) -> str:
    """Build the prompt asking for a corrected harness after a compile error."""
    return REPAIR_PROMPT_TEMPLATE.format(diagnostic=diagnostic)
