"""
Cycle Resolver
==============

This module assigns a cycle cost to every expanded instruction line.

Resolution Order
----------------
The first rule that matches wins:

1. Inline override in the comment: "; (20)"
2. External override table, literal instruction key ("adda.l (a2)+,a0")
3. External override table, shape key ("adda.l (an)+,an")
4. Dynamic rules:
   - REGISTER_LIST: movem, base + per-register x registers in the list
   - SHIFT_COUNT: register shift/rotate by an immediate, 6/8 + 2 x count
   - FILL: dcb.w n,$4e71, n x nop
5. Static Cost Table lookup by shape

If nothing matches, UnknownInstructionCostError is raised. The resolver
never guesses.

The description attached to each cost comes from the matched shape, not
from the source spelling, so "move.l (a0)+,8(a1)" and
"move.l (a2)+,SCREEN_WIDTH(a3)" annotate identically. An override on an
instruction whose shape is unknown is described as "(override)".
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Mapping, Optional

from cyclespitter.cpu import (
    AddressingMode,
    InstructionShape,
    MOVEM_PER_REGISTER,
    MOVEM_TO_MEMORY_BASE,
    MOVEM_TO_REGISTERS_BASE,
    NOP_CYCLES,
    NOP_OPCODE,
    SHIFT_INSTRUCTIONS,
    SHIFT_MAX_IMMEDIATE,
    SHIFT_PER_BIT,
    SHIFT_REGISTER_BASE,
    count_registers,
    get_static_cost,
    instruction_shape,
    is_data_dependent,
    split_operands,
)
from cyclespitter.errors import SourceError, UnknownInstructionCostError
from cyclespitter.pipeline.expressions import ExpressionEvaluator
from cyclespitter.pipeline.macros import ExpandedLine

logger = logging.getLogger(__name__)

OVERRIDE_DESCRIPTION = "(override)"


# =============================================================================
# Data Classes
# =============================================================================

class CostRule(Enum):
    """The closed set of ways a cost can be resolved, in priority order."""
    OVERRIDE = "override"
    EXTERNAL = "external"
    REGISTER_LIST = "register-list"
    SHIFT_COUNT = "shift-count"
    FILL = "fill"
    TABLE = "table"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class CostResolution:
    """
    The outcome of resolving one instruction.

    Attributes:
        cycles: Resolved cost
        rule: Which rule produced it
        description: Shape text for the annotation, e.g. "movem.l reglist,-(an)"
        detail: Breakdown of a computed cost, e.g. "8 + 11x8"
    """
    cycles: int
    rule: CostRule
    description: str
    detail: Optional[str] = None


@dataclass(frozen=True)
class CostedLine:
    """
    An expanded line with its resolved cost.

    Non-instruction lines (comments, labels, blanks, EQU) cost 0 and carry
    no resolution.
    """
    line: ExpandedLine
    resolution: Optional[CostResolution] = None

    @property
    def cycles(self) -> int:
        return self.resolution.cycles if self.resolution else 0

    @property
    def description(self) -> str:
        return self.resolution.description if self.resolution else ""

    @property
    def rule(self) -> Optional[CostRule]:
        return self.resolution.rule if self.resolution else None

    @property
    def is_instruction(self) -> bool:
        return self.resolution is not None

    @property
    def origin(self) -> Optional[str]:
        return self.line.origin


# =============================================================================
# Override Keys
# =============================================================================

_WHITESPACE_RE = re.compile(r"\s+")


def override_key(text: str) -> str:
    """
    Normalise an instruction or shape to an override-table key.

    Lowercases, keeps one space after the mnemonic, and drops whitespace
    inside the operand field.

        >>> override_key("ADDA.L  (A2)+, A0")
        'adda.l (a2)+,a0'
    """
    fields = text.strip().split(None, 1)
    if not fields:
        return ""
    mnemonic = fields[0].lower()
    if len(fields) == 1:
        return mnemonic
    return f"{mnemonic} {_WHITESPACE_RE.sub('', fields[1]).lower()}"


def constant_value(text: str) -> Optional[int]:
    """Value of a constant expression, or None if it needs symbols or is malformed."""
    try:
        return ExpressionEvaluator().evaluate(text)
    except SourceError:
        return None


def nop_fill_count(operands: str) -> Optional[int]:
    """
    Number of NOPs in a "dcb.w n,$4e71" operand field, or None.

        >>> nop_fill_count("5,$4e71")
        5
    """
    parts = split_operands(operands)
    if len(parts) != 2 or constant_value(parts[1]) != NOP_OPCODE:
        return None
    count = constant_value(parts[0])
    if count is None or count < 0:
        return None
    return count


# =============================================================================
# Cycle Resolver
# =============================================================================

class CycleResolver:
    """
    Resolves instruction costs.

    Usage:
        resolver = CycleResolver({"adda.l (an)+,an": 16})
        costed = resolver.resolve_all(expanded_lines)

    Attributes:
        cost_overrides: External override table, keys normalised with
                        override_key()
    """

    def __init__(self, cost_overrides: Optional[Mapping[str, int]] = None):
        self.cost_overrides = {override_key(k): v for k, v in (cost_overrides or {}).items()}
        self._cache: dict[tuple[str, str, Optional[int]], CostResolution] = {}
        self._warned: set[tuple[str, int]] = set()

    # =========================================================================
    # Main Interface
    # =========================================================================

    def resolve_all(self, lines: Iterable[ExpandedLine]) -> list[CostedLine]:
        """
        Cost every line of an expanded stream.

        Raises:
            UnknownInstructionCostError: For the first instruction with no cost
        """
        costed = [self.cost_line(line) for line in lines]
        total = sum(c.cycles for c in costed)
        logger.debug(f"resolved {len(costed)} lines, {total} cycles in total")
        return costed

    def cost_line(self, line: ExpandedLine) -> CostedLine:
        """Wrap one line with its resolution (None for non-instructions)."""
        if not line.is_instruction:
            return CostedLine(line)
        return CostedLine(line, self.resolve(line))

    def resolve(self, line: ExpandedLine) -> CostResolution:
        """
        Resolve the cost of one instruction line.

        Args:
            line: An instruction line (is_instruction must be True)

        Returns:
            The CostResolution

        Raises:
            UnknownInstructionCostError: If no rule matches
        """
        key = (line.mnemonic, line.operands, line.override)
        resolution = self._cache.get(key)
        if resolution is None:
            resolution = self._resolve_uncached(line)
            self._cache[key] = resolution
            logger.debug(
                f"{line.location}: {line.instruction} -> {resolution.cycles} "
                f"({resolution.rule}: {resolution.description})"
            )
        if line.override is not None:
            self._check_override(line, resolution)
        return resolution

    def resolve_instruction(self, mnemonic: str, operands: str = "", override: Optional[int] = None) -> CostResolution:
        """Resolve a bare instruction, outside of any source line."""
        shape = instruction_shape(mnemonic, operands)
        resolution = self._resolve_shape(mnemonic, operands, shape, override)
        if resolution is None:
            raise UnknownInstructionCostError(
                f"{mnemonic} {operands}".strip(),
                shape=str(shape),
                reason=self._unknown_reason(shape),
            )
        return resolution

    # =========================================================================
    # Resolution Steps
    # =========================================================================

    def _resolve_uncached(self, line: ExpandedLine) -> CostResolution:
        shape = instruction_shape(line.mnemonic, line.operands)
        resolution = self._resolve_shape(line.mnemonic, line.operands, shape, line.override)
        if resolution is None:
            raise UnknownInstructionCostError(
                line.instruction,
                shape=str(shape),
                location=line.location,
                source_line=line.source.text,
                reason=self._unknown_reason(shape),
                rept_path=line.rept_path,
            )
        return resolution

    def _resolve_shape(
        self,
        mnemonic: str,
        operands: str,
        shape: InstructionShape,
        override: Optional[int],
    ) -> Optional[CostResolution]:
        computed = self._lookup(mnemonic, operands, shape)

        if override is not None:
            description = computed.description if computed else OVERRIDE_DESCRIPTION
            return CostResolution(override, CostRule.OVERRIDE, description)

        literal = override_key(f"{mnemonic} {operands}")
        if literal in self.cost_overrides:
            description = computed.description if computed else OVERRIDE_DESCRIPTION
            return CostResolution(self.cost_overrides[literal], CostRule.EXTERNAL, description)
        shape_key = override_key(str(shape))
        if shape_key in self.cost_overrides:
            return CostResolution(self.cost_overrides[shape_key], CostRule.EXTERNAL, str(shape))

        return computed

    def _lookup(self, mnemonic: str, operands: str, shape: InstructionShape) -> Optional[CostResolution]:
        """Dynamic rules first, then the static Cost Table."""
        for rule in (self._register_list_rule, self._shift_count_rule, self._fill_rule):
            resolution = rule(mnemonic, operands, shape)
            if resolution is not None:
                return resolution

        cycles = get_static_cost(shape)
        if cycles is None:
            return None
        return CostResolution(cycles, CostRule.TABLE, str(shape))

    # =========================================================================
    # Dynamic Rules
    # =========================================================================

    @staticmethod
    def _register_list_rule(mnemonic: str, operands: str, shape: InstructionShape) -> Optional[CostResolution]:
        if shape.base != "movem" or shape.size not in MOVEM_PER_REGISTER or len(shape.modes) != 2:
            return None

        source, destination = shape.modes
        parts = split_operands(operands)
        if source is AddressingMode.REGISTER_LIST and destination in MOVEM_TO_MEMORY_BASE:
            base, register_list = MOVEM_TO_MEMORY_BASE[destination], parts[0]
        elif destination is AddressingMode.REGISTER_LIST and source in MOVEM_TO_REGISTERS_BASE:
            base, register_list = MOVEM_TO_REGISTERS_BASE[source], parts[1]
        else:
            return None

        count = count_registers(register_list)
        if count is None:
            return None
        per_register = MOVEM_PER_REGISTER[shape.size]
        return CostResolution(
            base + per_register * count,
            CostRule.REGISTER_LIST,
            str(shape),
            detail=f"{base} + {count}x{per_register}",
        )

    @staticmethod
    def _shift_count_rule(mnemonic: str, operands: str, shape: InstructionShape) -> Optional[CostResolution]:
        if shape.base not in SHIFT_INSTRUCTIONS or shape.size not in SHIFT_REGISTER_BASE:
            return None

        if shape.modes == (AddressingMode.DATA_REG,):
            count = 1
        elif shape.modes == (AddressingMode.IMMEDIATE, AddressingMode.DATA_REG):
            count = constant_value(split_operands(operands)[0].lstrip()[1:])
            if count is None or not 1 <= count <= SHIFT_MAX_IMMEDIATE:
                return None
        else:
            return None

        base = SHIFT_REGISTER_BASE[shape.size]
        return CostResolution(
            base + SHIFT_PER_BIT * count,
            CostRule.SHIFT_COUNT,
            str(shape),
            detail=f"{base} + {count}x{SHIFT_PER_BIT}",
        )

    @staticmethod
    def _fill_rule(mnemonic: str, operands: str, shape: InstructionShape) -> Optional[CostResolution]:
        if shape.mnemonic != "dcb.w":
            return None
        count = nop_fill_count(operands)
        if count is None:
            return None
        return CostResolution(
            count * NOP_CYCLES,
            CostRule.FILL,
            "dcb.w n,nop",
            detail=f"{count}x{NOP_CYCLES}",
        )

    # =========================================================================
    # Diagnostics
    # =========================================================================

    @staticmethod
    def _unknown_reason(shape: InstructionShape) -> Optional[str]:
        if is_data_dependent(shape):
            return (
                f"'{shape.base}' takes a data-dependent number of cycles; "
                f"state the one you rely on in the comment, e.g. '; (12)'"
            )
        if shape.base in SHIFT_INSTRUCTIONS and AddressingMode.DATA_REG in shape.modes[:1]:
            return (
                "a shift by a register count depends on the register value; "
                "state the cost in the comment, e.g. '; (14)'"
            )
        return None

    def _check_override(self, line: ExpandedLine, override: CostResolution) -> None:
        """Warn once per source line when an override undercuts the real cost."""
        where = (line.location.filename, line.line_number)
        if where in self._warned:
            return
        self._warned.add(where)
        computed = self._lookup(line.mnemonic, line.operands, instruction_shape(line.mnemonic, line.operands))
        if computed is None or override.cycles >= computed.cycles:
            return
        logger.warning(
            f"{line.location}: override of {override.cycles} cycles is below the "
            f"{computed.cycles} cycles of '{computed.description}'"
        )


# =============================================================================
# Convenience Functions
# =============================================================================

def resolve_costs(lines: Iterable[ExpandedLine], cost_overrides: Optional[Mapping[str, int]] = None) -> list[CostedLine]:
    """Convenience wrapper around CycleResolver.resolve_all."""
    return CycleResolver(cost_overrides).resolve_all(lines)
