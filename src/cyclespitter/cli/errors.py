"""
Unified CLI Error Handling
==========================

Provides consistent error reporting and exit codes for the CLI.

Each fatal error kind has its own exit code, so build scripts can tell a
missing cycle count from an overfull template without parsing stderr.
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click

from cyclespitter.errors import (
    ConfigurationError,
    CycleSpitterError,
    InstructionExceedsBudgetError,
    MalformedLineError,
    SourceError,
    TemplateExceedsBudgetError,
    TemplateFormatError,
    UnbalancedReptError,
    UndefinedVariableError,
    UnfillableGapError,
    UnknownInstructionCostError,
)


class ExitCode(IntEnum):
    """Exit codes for the cyclespit tool."""
    SUCCESS = 0
    INVALID_ARGS = 2                  # Invalid arguments, missing files, bad config
    INTERNAL_ERROR = 3                # Unexpected internal error
    MALFORMED_LINE = 10
    UNBALANCED_REPT = 11
    UNDEFINED_VARIABLE = 12
    UNKNOWN_INSTRUCTION_COST = 13
    TEMPLATE_EXCEEDS_BUDGET = 14
    UNFILLABLE_GAP = 15
    TEMPLATE_FORMAT = 16
    INSTRUCTION_EXCEEDS_BUDGET = 17


# Most specific first: ExpressionError is a MalformedLineError
_ERROR_EXIT_CODES: tuple[tuple[type, ExitCode], ...] = (
    (TemplateFormatError, ExitCode.TEMPLATE_FORMAT),
    (UnknownInstructionCostError, ExitCode.UNKNOWN_INSTRUCTION_COST),
    (UndefinedVariableError, ExitCode.UNDEFINED_VARIABLE),
    (UnbalancedReptError, ExitCode.UNBALANCED_REPT),
    (MalformedLineError, ExitCode.MALFORMED_LINE),
    (TemplateExceedsBudgetError, ExitCode.TEMPLATE_EXCEEDS_BUDGET),
    (UnfillableGapError, ExitCode.UNFILLABLE_GAP),
    (InstructionExceedsBudgetError, ExitCode.INSTRUCTION_EXCEEDS_BUDGET),
    (ConfigurationError, ExitCode.INVALID_ARGS),
)


def exit_code_for(error: Exception) -> ExitCode:
    """Map an exception to the exit code the CLI reports for it."""
    for error_class, code in _ERROR_EXIT_CODES:
        if isinstance(error, error_class):
            return code
    if isinstance(error, (click.BadParameter, FileNotFoundError, PermissionError)):
        return ExitCode.INVALID_ARGS
    return ExitCode.INTERNAL_ERROR


def handle_cli_exception(error: Exception, verbose: bool = False) -> NoReturn:
    """
    Unified exception handler for the CLI.

    Formats the error message, optionally prints a traceback in verbose
    mode for internal errors, and exits with the matching exit code.

    Args:
        error: The exception that was raised
        verbose: If True, print full traceback for internal errors

    Raises:
        SystemExit: Always exits with an appropriate exit code
    """
    code = exit_code_for(error)

    if isinstance(error, SourceError):
        # Already formatted as "file:line:col: error: ..."
        click.echo(str(error), err=True)

    elif isinstance(error, CycleSpitterError):
        click.echo(f"Error: {error}", err=True)

    elif code is ExitCode.INVALID_ARGS:
        click.echo(f"Error: {error}", err=True)

    else:
        click.echo(f"Internal error: {error}", err=True)
        if verbose:
            traceback.print_exc()

    sys.exit(code)
