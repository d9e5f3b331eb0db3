"""
Scanline Scheduler
==================

This module packs costed lines into scanlines of an exact cycle width.

Scanline Layout
---------------
```
 offset 0                                                    target width
 | left border | stabilizer | scheduled code ... | right border | NOP pad |
 |<------- opening ------->|<----- budget ----->|<- closing -->|
```

- budget = target width - opening - closing, and must be positive
- lines are placed strictly in source order, each exactly once
- a line that does not fit closes the current scanline and opens the
  next one, where it becomes the first scheduled entry
- the gap left after the right border is filled with whole NOPs; a gap
  that is not a multiple of the NOP cost is an error
- there is always at least one scanline, even for empty input

Lines without a cost (comments, labels, EQU) never trigger a break and
stay in the scanline that is open when they are reached.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from cyclespitter.config import DEFAULT_TARGET_WIDTH
from cyclespitter.cpu import NOP_CYCLES
from cyclespitter.errors import (
    InstructionExceedsBudgetError,
    TemplateExceedsBudgetError,
    UnfillableGapError,
)
from cyclespitter.pipeline.cycles import CostedLine
from cyclespitter.pipeline.template import SegmentKind, Template, TemplateSegment

logger = logging.getLogger(__name__)


# =============================================================================
# Data Classes
# =============================================================================

class LineKind(Enum):
    """Where an emitted line comes from."""
    LEFT_BORDER = "left border"
    STABILIZER = "stabilizer"
    CODE = "code"
    RIGHT_BORDER = "right border"
    PADDING = "padding"

    def __str__(self) -> str:
        return self.value


_SEGMENT_LINE_KINDS = {
    SegmentKind.LEFT_BORDER: LineKind.LEFT_BORDER,
    SegmentKind.STABILIZER: LineKind.STABILIZER,
    SegmentKind.RIGHT_BORDER: LineKind.RIGHT_BORDER,
}


@dataclass(frozen=True)
class ScheduledLine:
    """
    One emitted line with its position in the scanline.

    Attributes:
        kind: Template segment, scheduled code or padding
        offset: Cycles consumed in this scanline before the line
        cycles: Cost of the line
        costed: The costed source line (None for padding)
        nop_count: Number of NOPs (padding only)
    """
    kind: LineKind
    offset: int
    cycles: int
    costed: Optional[CostedLine] = None
    nop_count: int = 0


@dataclass(frozen=True)
class Scanline:
    """
    A closed scanline.

    Attributes:
        index: 1-indexed ordinal
        lines: Emitted lines in order
        total_cycles: Realised cost, always the target width
    """
    index: int
    lines: tuple[ScheduledLine, ...]
    total_cycles: int

    @property
    def code_lines(self) -> tuple[ScheduledLine, ...]:
        return tuple(l for l in self.lines if l.kind is LineKind.CODE)

    @property
    def padding_cycles(self) -> int:
        return sum(l.cycles for l in self.lines if l.kind is LineKind.PADDING)

    @property
    def scheduled_cycles(self) -> int:
        """Cycles used by scheduled code, without template or padding."""
        return sum(l.cycles for l in self.code_lines)


@dataclass(frozen=True)
class Schedule:
    """
    The complete scheduling result.

    Attributes:
        scanlines: Closed scanlines in order
        target_width: Cycle width of every scanline
        template: Template injected at each boundary
    """
    scanlines: tuple[Scanline, ...]
    target_width: int
    template: Template

    @property
    def scanline_count(self) -> int:
        return len(self.scanlines)

    @property
    def total_cycles(self) -> int:
        return sum(s.total_cycles for s in self.scanlines)


# =============================================================================
# Scheduler
# =============================================================================

class ScanlineScheduler:
    """
    Partitions a costed line stream into exact-width scanlines.

    The scheduler holds no state between runs, so scheduling the same
    stream twice gives the same partition.

    Usage:
        scheduler = ScanlineScheduler(template, target_width=512)
        schedule = scheduler.schedule(costed_lines)

    Attributes:
        template: Border and stabilizer segments
        target_width: Cycles per scanline
        nop_cycles: Cost of one padding NOP
    """

    def __init__(self, template: Template, target_width: int = DEFAULT_TARGET_WIDTH, nop_cycles: int = NOP_CYCLES):
        """
        Raises:
            TemplateExceedsBudgetError: If the template leaves no budget
        """
        self.template = template
        self.target_width = target_width
        self.nop_cycles = nop_cycles
        if self.budget <= 0:
            raise TemplateExceedsBudgetError(template.reserved_cycles, target_width)

    @property
    def budget(self) -> int:
        """Cycles available for scheduled code in each scanline."""
        return self.target_width - self.template.reserved_cycles

    @property
    def limit(self) -> int:
        """Offset that scheduled code must not pass, where the right border starts."""
        return self.target_width - self.template.closing_cycles

    def schedule(self, lines: Sequence[CostedLine]) -> Schedule:
        """
        Schedule a whole costed stream.

        Args:
            lines: Costed lines in source order

        Returns:
            The Schedule

        Raises:
            InstructionExceedsBudgetError: If a single line costs more than the budget
            UnfillableGapError: If a scanline gap cannot be filled with whole NOPs
        """
        scanlines: list[Scanline] = []
        current: list[ScheduledLine] = []
        running = self._open(current)

        for costed in lines:
            cycles = costed.cycles
            if cycles > self.budget:
                line = costed.line
                raise InstructionExceedsBudgetError(line.instruction, cycles, self.budget, line.location)

            if running + cycles > self.limit:
                scanlines.append(self._close(len(scanlines) + 1, current, running))
                current = []
                running = self._open(current)

            current.append(ScheduledLine(LineKind.CODE, running, cycles, costed))
            running += cycles

        scanlines.append(self._close(len(scanlines) + 1, current, running))

        logger.debug(
            f"scheduled {len(lines)} lines into {len(scanlines)} scanline(s) "
            f"of {self.target_width} cycles ({self.budget} available each)"
        )
        return Schedule(tuple(scanlines), self.target_width, self.template)

    # =========================================================================
    # Scanline Boundaries
    # =========================================================================

    def _emit_segment(self, segment: TemplateSegment, into: list[ScheduledLine], running: int) -> int:
        kind = _SEGMENT_LINE_KINDS[segment.kind]
        for costed in segment.lines:
            into.append(ScheduledLine(kind, running, costed.cycles, costed))
            running += costed.cycles
        return running

    def _open(self, into: list[ScheduledLine]) -> int:
        running = self._emit_segment(self.template.left_border, into, 0)
        return self._emit_segment(self.template.stabilizer, into, running)

    def _close(self, index: int, lines: list[ScheduledLine], running: int) -> Scanline:
        running = self._emit_segment(self.template.right_border, lines, running)

        gap = self.target_width - running
        nop_count, remainder = divmod(gap, self.nop_cycles)
        if remainder:
            raise UnfillableGapError(index, gap, nop_count, remainder, self.nop_cycles)
        if gap:
            lines.append(ScheduledLine(LineKind.PADDING, running, gap, nop_count=nop_count))

        scanline = Scanline(index, tuple(lines), running + gap)
        logger.debug(
            f"scanline {index}: {len(scanline.code_lines)} scheduled lines, "
            f"{scanline.scheduled_cycles} cycles, {nop_count} NOPs of padding"
        )
        return scanline


# =============================================================================
# Convenience Functions
# =============================================================================

def schedule_scanlines(
    lines: Sequence[CostedLine],
    template: Template,
    target_width: int = DEFAULT_TARGET_WIDTH,
) -> Schedule:
    """Convenience wrapper around ScanlineScheduler.schedule."""
    return ScanlineScheduler(template, target_width).schedule(lines)
