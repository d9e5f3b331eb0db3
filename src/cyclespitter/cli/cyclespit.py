"""
cyclespit - Scanline Scheduler Command-Line Interface
=====================================================

This module implements the command-line interface for the cycle spitter.
It reads an annotated 68000 source file, schedules it into exact-width
scanlines and writes the generated listing.

Usage Examples
--------------
Basic run, listing on stdout:
    $ cyclespit effect.s

Custom label for the scanline count, output file:
    $ cyclespit effect.s EFFECT_LINES -o effect_gen.s

Custom template and scanline width:
    $ cyclespit effect.s -t ovscan.s -w 508

With an external cost table:
    $ cyclespit effect.s -c cycles.json

Verbose mode:
    $ cyclespit -v effect.s
"""

import logging
from pathlib import Path
from typing import Optional

import click

from cyclespitter import __version__
from cyclespitter.cli.errors import handle_cli_exception
from cyclespitter.config import SpitterConfig
from cyclespitter.pipeline import CycleSpitter


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.argument("scanlines_label", required=False)
@click.option(
    "-t", "--template",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Border/stabilizer template file (default: built-in template)",
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file (default: stdout)",
)
@click.option(
    "-w", "--width",
    type=click.IntRange(min=1),
    help="Cycles per scanline (default: 512)",
)
@click.option(
    "-c", "--costs",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON cost table mapping instructions or shapes to cycles",
)
@click.option(
    "--no-annotate",
    is_flag=True,
    help="Do not append cost annotations to instructions",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="cyclespit")
def main(
    input_file: Path,
    scanlines_label: Optional[str],
    template: Optional[Path],
    output: Optional[Path],
    width: Optional[int],
    costs: Optional[Path],
    no_annotate: bool,
    verbose: bool,
) -> None:
    """
    Schedule 68000 source into exact-width scanlines.

    INPUT_FILE is the annotated source. SCANLINES_LABEL is the label bound
    to the number of scanlines produced (default: SCANLINES_CONSUMED).

    Every instruction is costed, REPT blocks are unrolled, and the result
    is packed into scanlines with the template's border and stabilizer code
    at each boundary. Nothing is written if any step fails.

    \b
    Examples:
        cyclespit effect.s                    # Listing on stdout
        cyclespit effect.s LINES -o gen.s     # Custom label, output file
        cyclespit effect.s -t ovscan.s        # Custom template
        cyclespit effect.s -c cycles.json     # External cost table
    """
    setup_logging(verbose)

    config = SpitterConfig.from_env().with_overrides(
        target_width=width,
        scanlines_label=scanlines_label,
        template_path=template,
        annotate=False if no_annotate else None,
    )

    try:
        if costs is not None:
            config = config.load_cost_overrides(costs)

        if verbose:
            click.echo(f"Scheduling {input_file} at {config.target_width} cycles per scanline...", err=True)

        result = CycleSpitter(config).spit_file(input_file)

        if output is not None:
            output.write_text(result.listing, encoding="utf-8")
            click.echo(f"Wrote {result.scanline_count} scanline(s) to {output}", err=True)
        else:
            click.echo(result.listing, nl=False)

    except Exception as e:
        handle_cli_exception(e, verbose=verbose)


if __name__ == "__main__":
    main()
