"""
Cycle Spitter - Scanline Scheduler for Atari ST Fullscreen Code
================================================================

This package turns annotated Motorola 68000 source into code that is split
into scanlines of an exact cycle width, with the border-removal and
stabilizer code injected at every scanline boundary.

Fullscreen effects on the Atari ST remove the left and right borders by
switching video registers at precise cycle offsets on every raster line.
Any work done in between has to be counted cycle by cycle, so writing it
by hand is tedious and error prone. The spitter takes a linear program,
unrolls its REPT blocks, costs every instruction, and packs the result
into scanlines, padding each one with NOPs up to the target width.

Main Components
---------------
- **cpu**: 68000 addressing modes, instruction shapes and the Cost Table
- **pipeline**: Parser, macro expander, cycle resolver, template loader,
  scheduler and listing formatter
- **config**: Run configuration and the external cost table loader
- **cli**: The `cyclespit` command

Quick Start
-----------
Schedule a source file:
    >>> from cyclespitter import CycleSpitter
    >>> result = CycleSpitter().spit_file("effect.s")
    >>> print(result.scanline_count)
    >>> Path("effect_gen.s").write_text(result.listing)

With a custom template and width:
    >>> from cyclespitter import SpitterConfig
    >>> config = SpitterConfig(target_width=508, template_path=Path("ovscan.s"))
    >>> result = CycleSpitter(config).spit(source_text)

Or use the command-line tool:
    $ cyclespit effect.s SCANLINES_CONSUMED -o effect_gen.s

Reference Documentation
-----------------------
- M68000 8-/16-/32-Bit Microprocessors User's Manual, section 8
  (instruction execution times)

Version History
---------------
1.0.0 - Initial release
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================
# The main classes users of the library need, importable directly from
# cyclespitter.
# =============================================================================

from cyclespitter.config import SpitterConfig, load_cost_table
from cyclespitter.errors import (
    CycleSpitterError,
    ConfigurationError,
    SourceError,
    SourceLocation,
    ReptContext,
    MalformedLineError,
    ExpressionError,
    UnbalancedReptError,
    UndefinedVariableError,
    UnknownInstructionCostError,
    TemplateFormatError,
    SchedulingError,
    TemplateExceedsBudgetError,
    UnfillableGapError,
    InstructionExceedsBudgetError,
)

from cyclespitter.cpu import (
    AddressingMode,
    InstructionShape,
    instruction_shape,
    get_static_cost,
)

from cyclespitter.pipeline import (
    CycleSpitter,
    SpitResult,
    spit,
    CycleResolver,
    CostedLine,
    MacroExpander,
    ScanlineScheduler,
    Schedule,
    ListingFormatter,
    Template,
    load_template,
    parse_source,
)

__all__ = [
    # Version info
    "__version__",
    # Configuration
    "SpitterConfig",
    "load_cost_table",
    # Exception hierarchy
    "CycleSpitterError",
    "ConfigurationError",
    "SourceError",
    "SourceLocation",
    "ReptContext",
    "MalformedLineError",
    "ExpressionError",
    "UnbalancedReptError",
    "UndefinedVariableError",
    "UnknownInstructionCostError",
    "TemplateFormatError",
    "SchedulingError",
    "TemplateExceedsBudgetError",
    "UnfillableGapError",
    "InstructionExceedsBudgetError",
    # CPU timing
    "AddressingMode",
    "InstructionShape",
    "instruction_shape",
    "get_static_cost",
    # Pipeline
    "CycleSpitter",
    "SpitResult",
    "spit",
    "CycleResolver",
    "CostedLine",
    "MacroExpander",
    "ScanlineScheduler",
    "Schedule",
    "ListingFormatter",
    "Template",
    "load_template",
    "parse_source",
]
