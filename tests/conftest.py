"""
Test fixtures and helpers for the VM translator.

The key abstractions are:

- HackMachine: executes symbolic Hack assembly directly (no binary
  assembly step), so generated code can be checked by running it
- Assertion helpers: fluent API for translating VM source, running it on a
  HackMachine and checking the resulting machine state
"""

import pytest
import re
import sys
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from vmtrans.compiler import VMTranslator
from vmtrans.codegen import BOOTSTRAP_CONTEXT


RAM_SIZE = 32768
WORD_MASK = 0xFFFF

PREDEFINED_SYMBOLS = {
    'SP': 0, 'LCL': 1, 'ARG': 2, 'THIS': 3, 'THAT': 4,
    'SCREEN': 16384, 'KBD': 24576,
}
PREDEFINED_SYMBOLS.update({f'R{i}': i for i in range(16)})

SYMBOL_RE = re.compile(r'^[A-Za-z_.$:][A-Za-z0-9_.$:]*$')


class AssemblyError(Exception):
    """Malformed or inconsistent Hack assembly."""
    pass


def to_signed(value: int) -> int:
    """Interpret a 16-bit word as two's complement."""
    value &= WORD_MASK
    return value - 0x10000 if value & 0x8000 else value


def _compute(comp: str, a: int, d: int, m: int) -> int:
    """Evaluate a Hack comp field."""
    operand = {'A': a, 'D': d, 'M': m, '0': 0, '1': 1}

    if comp in operand:
        return operand[comp]
    if comp == '-1':
        return -1
    if len(comp) == 2 and comp[0] in '!-' and comp[1] in operand:
        x = operand[comp[1]]
        return ~x if comp[0] == '!' else -x
    if len(comp) == 3 and comp[1] in '+-&|' and comp[0] in operand and comp[2] in operand:
        x, op, y = operand[comp[0]], comp[1], operand[comp[2]]
        if op == '+':
            return x + y
        if op == '-':
            return x - y
        if op == '&':
            return x & y
        return x | y
    raise AssemblyError(f"invalid comp: {comp}")


JUMPS = {
    'JGT': lambda v: v > 0,
    'JEQ': lambda v: v == 0,
    'JGE': lambda v: v >= 0,
    'JLT': lambda v: v < 0,
    'JNE': lambda v: v != 0,
    'JLE': lambda v: v <= 0,
    'JMP': lambda v: True,
}


@dataclass
class Instruction:
    """One A- or C-instruction, with the source text kept for diagnostics."""
    text: str
    address: Optional[str] = None   # A-instruction operand
    dest: str = ''
    comp: str = ''
    jump: str = ''


class HackMachine:
    """
    Hack CPU model executing symbolic assembly.

    Labels are resolved in a first pass; other symbols become variables
    allocated from RAM[16] upwards, in order of first use.
    """

    def __init__(self, assembly: str):
        self.program: List[Instruction] = []
        self.labels: Dict[str, int] = {}
        self.variables: Dict[str, int] = {}
        self.ram = [0] * RAM_SIZE
        self.a = 0
        self.d = 0
        self.pc = 0
        self.steps = 0
        self._load(assembly)

    def _load(self, assembly: str):
        for raw in assembly.splitlines():
            line = raw.split('//')[0].strip()
            if not line:
                continue
            if line.startswith('(') and line.endswith(')'):
                label = line[1:-1]
                if not SYMBOL_RE.match(label):
                    raise AssemblyError(f"invalid label: {label}")
                if label in self.labels or label in PREDEFINED_SYMBOLS:
                    raise AssemblyError(f"duplicate label: {label}")
                self.labels[label] = len(self.program)
            elif line.startswith('@'):
                self.program.append(Instruction(line, address=line[1:]))
            else:
                dest, _, rest = line.rpartition('=')
                comp, _, jump = rest.partition(';')
                if jump and jump not in JUMPS:
                    raise AssemblyError(f"invalid jump: {line}")
                if any(r not in 'ADM' for r in dest):
                    raise AssemblyError(f"invalid dest: {line}")
                self.program.append(Instruction(line, dest=dest, comp=comp, jump=jump))

        # Validate every comp once up front
        for instruction in self.program:
            if instruction.address is None:
                _compute(instruction.comp, 0, 0, 0)

    def resolve(self, symbol: str) -> int:
        """Value of an A-instruction operand."""
        if symbol.isdigit():
            value = int(symbol)
            if value > 0x7FFF:
                raise AssemblyError(f"constant too large: {symbol}")
            return value
        if symbol in PREDEFINED_SYMBOLS:
            return PREDEFINED_SYMBOLS[symbol]
        if symbol in self.labels:
            return self.labels[symbol]
        if not SYMBOL_RE.match(symbol):
            raise AssemblyError(f"invalid symbol: {symbol}")
        if symbol not in self.variables:
            self.variables[symbol] = 16 + len(self.variables)
        return self.variables[symbol]

    def step(self):
        """Execute the instruction at PC."""
        instruction = self.program[self.pc]
        self.steps += 1

        if instruction.address is not None:
            self.a = self.resolve(instruction.address)
            self.pc += 1
            return

        address = self.a
        m = self.ram[address] if address < RAM_SIZE else 0
        value = _compute(instruction.comp, self.a, self.d, m) & WORD_MASK

        if 'M' in instruction.dest:
            self.ram[address] = value
        if 'A' in instruction.dest:
            self.a = value
        if 'D' in instruction.dest:
            self.d = value

        if instruction.jump and JUMPS[instruction.jump](to_signed(value)):
            self.pc = address
        else:
            self.pc += 1

    def run(self, until: Optional[str] = None, max_steps: int = 1000000) -> 'HackMachine':
        """
        Run until PC reaches the `until` label, or falls off the program end.
        """
        stop = self.labels[until] if until is not None else None
        while self.pc < len(self.program):
            if self.pc == stop:
                return self
            if self.steps >= max_steps:
                raise AssemblyError(f"did not halt within {max_steps} steps (pc={self.pc})")
            self.step()
        if stop is not None and stop != len(self.program):
            raise AssemblyError(f"ran off the program end before reaching {until}")
        return self

    def peek(self, address: int) -> int:
        """Signed value at RAM[address]."""
        return to_signed(self.ram[address])

    def stack(self, base: int = 256) -> List[int]:
        """Signed values from `base` up to (not including) SP."""
        return [self.peek(i) for i in range(base, self.ram[0])]

    def static(self, symbol: str) -> int:
        """Signed value of a static variable symbol such as Main.3."""
        return self.peek(self.variables[symbol])


@dataclass
class RunResult:
    """Result of translating and executing VM source."""
    assembly: str
    machine: HackMachine
    warnings: List[str] = field(default_factory=list)


class VMAssertion:
    """
    Fluent assertion helper for VM programs.

    Usage:
        AssertVM("push constant 7", "push constant 8", "add").leaves_stack(15)
        AssertVM("pop temp 8").does_not_translate("temp index")
        AssertUnits(("Main", src)).with_entry("Main.main").leaves_stack(15)
    """

    def __init__(self, *units):
        self.units = list(units)
        self.ram: Dict[int, int] = {0: 256, 1: 300, 2: 400, 3: 3000, 4: 3010}
        self.bootstrap = False
        self.entry = "Sys.init"
        self.static_scope = "unit"
        self.assembly = ""

    def with_ram(self, **cells: int) -> 'VMAssertion':
        """Set initial RAM cells by predefined symbol name, e.g. LCL=300."""
        for name, value in cells.items():
            self.ram[PREDEFINED_SYMBOLS[name]] = value
        return self

    def with_entry(self, entry: str) -> 'VMAssertion':
        """Bootstrap into `entry` and run until it returns."""
        self.bootstrap = True
        self.entry = entry
        return self

    def with_static_scope(self, scope: str) -> 'VMAssertion':
        self.static_scope = scope
        return self

    def translate(self) -> VMTranslator:
        translator = VMTranslator(entry=self.entry, static_scope=self.static_scope)
        self.assembly = translator.translate_units(self.units, bootstrap=self.bootstrap)
        return translator

    def run(self) -> RunResult:
        translator = self.translate()
        machine = HackMachine(self.assembly)
        for address, value in self.ram.items():
            machine.ram[address] = value & WORD_MASK
        until = f"{BOOTSTRAP_CONTEXT}$ret.0" if self.bootstrap else None
        machine.run(until=until)
        return RunResult(self.assembly, machine, translator.get_warnings())

    def leaves_stack(self, *values: int) -> RunResult:
        """Assert the stack holds exactly `values` (bottom first) after running."""
        result = self.run()
        actual = result.machine.stack()
        assert actual == list(values), \
            f"Expected stack {list(values)}, got {actual}\nCode:\n{result.assembly}"
        return result

    def leaves_ram(self, **cells: int) -> RunResult:
        """Assert predefined cells (SP, LCL, R5, ...) hold the given values."""
        result = self.run()
        for name, expected in cells.items():
            actual = result.machine.peek(PREDEFINED_SYMBOLS[name])
            assert actual == expected, f"Expected {name}={expected}, got {actual}"
        return result

    def does_not_translate(self, message: str, error: type = Exception) -> None:
        """Assert translation fails with an error mentioning `message`."""
        with pytest.raises(error) as info:
            self.translate()
        assert message in str(info.value), f"Expected '{message}' in '{info.value}'"


def AssertVM(*lines: str) -> VMAssertion:
    """Assertion over a single unit named Main built from source lines."""
    return VMAssertion(("Main", "\n".join(lines)))


def AssertUnits(*units) -> VMAssertion:
    """Assertion over several (unit_name, source) units."""
    return VMAssertion(*units)


# Pytest fixtures
@pytest.fixture
def translator():
    """Fixture for a translator with default settings."""
    return VMTranslator()


@pytest.fixture
def quiet_translator():
    """Fixture for a translator that emits no comment lines."""
    return VMTranslator(comments=False)
