"""
Cycle Spitter Pipeline Package
==============================

The stages that turn annotated 68000 source into an exact-width scanline
listing. Each stage consumes the complete output of the previous one.

Modules:
    lexer: Tokenizer for expressions and operand fields
    expressions: Integer expression evaluator for REPT counts and SET values
    parser: Line parser (labels, directives, mnemonics, overrides, sections)
    macros: REPT/ENDR expansion with scoped SET variables
    cycles: Cycle resolver (overrides, dynamic rules, Cost Table)
    template: Border and stabilizer template loader
    scheduler: Scanline scheduler with NOP padding
    listing: Annotated listing formatter
    spitter: Orchestrator running the whole pipeline

Usage:
    from cyclespitter.pipeline import CycleSpitter

    result = CycleSpitter().spit(source_text, "effect.s")
"""

# =============================================================================
# Public API Exports
# =============================================================================

from cyclespitter.pipeline.lexer import Lexer, Token, TokenType, tokenize
from cyclespitter.pipeline.expressions import ExpressionEvaluator, evaluate_expression
from cyclespitter.pipeline.parser import (
    Directive,
    DirectiveKind,
    LineParser,
    SourceLine,
    parse_source,
)
from cyclespitter.pipeline.macros import (
    ExpandedLine,
    MacroExpander,
    expand,
    match_rept_blocks,
    substitute_variables,
)
from cyclespitter.pipeline.cycles import (
    CostedLine,
    CostResolution,
    CostRule,
    CycleResolver,
    resolve_costs,
)
from cyclespitter.pipeline.template import (
    DEFAULT_TEMPLATE,
    SegmentKind,
    Template,
    TemplateSegment,
    load_template,
    parse_template,
)
from cyclespitter.pipeline.scheduler import (
    LineKind,
    Scanline,
    ScanlineScheduler,
    Schedule,
    ScheduledLine,
    schedule_scanlines,
)
from cyclespitter.pipeline.listing import ListingFormatter, format_listing
from cyclespitter.pipeline.spitter import CycleSpitter, SpitResult, spit

__all__ = [
    # Lexing and expressions
    "Lexer",
    "Token",
    "TokenType",
    "tokenize",
    "ExpressionEvaluator",
    "evaluate_expression",
    # Parsing
    "Directive",
    "DirectiveKind",
    "LineParser",
    "SourceLine",
    "parse_source",
    # Expansion
    "ExpandedLine",
    "MacroExpander",
    "expand",
    "match_rept_blocks",
    "substitute_variables",
    # Costing
    "CostedLine",
    "CostResolution",
    "CostRule",
    "CycleResolver",
    "resolve_costs",
    # Templates
    "DEFAULT_TEMPLATE",
    "SegmentKind",
    "Template",
    "TemplateSegment",
    "load_template",
    "parse_template",
    # Scheduling
    "LineKind",
    "Scanline",
    "ScanlineScheduler",
    "Schedule",
    "ScheduledLine",
    "schedule_scanlines",
    # Output
    "ListingFormatter",
    "format_listing",
    # Orchestration
    "CycleSpitter",
    "SpitResult",
    "spit",
]
