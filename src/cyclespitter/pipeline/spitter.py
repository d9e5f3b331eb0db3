"""
Cycle Spitter Pipeline
======================

Orchestrates the full transformation:

    source text
      -> LineParser      (SourceLine)
      -> MacroExpander   (ExpandedLine)
      -> CycleResolver   (CostedLine)
      -> ScanlineScheduler (Schedule)
      -> ListingFormatter  (text)

Every stage finishes over the whole input before the next starts, and the
listing text only exists once all of them succeeded. Any error aborts the
run with nothing produced.

Example:
    >>> spitter = CycleSpitter()
    >>> result = spitter.spit(source_text, "effect.s")
    >>> print(result.scanline_count)
    >>> Path("effect_gen.s").write_text(result.listing)
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from cyclespitter.config import SpitterConfig
from cyclespitter.pipeline.cycles import CostedLine, CycleResolver
from cyclespitter.pipeline.listing import ListingFormatter
from cyclespitter.pipeline.macros import MacroExpander
from cyclespitter.pipeline.parser import parse_source
from cyclespitter.pipeline.scheduler import ScanlineScheduler, Schedule
from cyclespitter.pipeline.template import Template, load_template

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpitResult:
    """
    Output of a successful run.

    Attributes:
        listing: Generated assembly text
        schedule: The scanline partition it was rendered from
        costed: The costed line stream that was scheduled
    """
    listing: str
    schedule: Schedule
    costed: tuple[CostedLine, ...]

    @property
    def scanline_count(self) -> int:
        return self.schedule.scanline_count


class CycleSpitter:
    """
    Runs the cycle spitter pipeline.

    Attributes:
        config: Run configuration
    """

    def __init__(self, config: Optional[SpitterConfig] = None, template: Optional[Template] = None):
        """
        Initialize the spitter.

        Args:
            config: Run configuration (defaults to SpitterConfig())
            template: Preloaded template; loaded from config when omitted
        """
        self.config = config or SpitterConfig()
        self._template = template

    @property
    def template(self) -> Template:
        """The border template, loaded on first use."""
        if self._template is None:
            self._template = load_template(self.config.template_path, self.config.cost_overrides)
        return self._template

    def spit(self, source: str, filename: str = "<input>") -> SpitResult:
        """
        Transform source text into a scheduled listing.

        Args:
            source: Annotated 68000 source text
            filename: Name used in error messages

        Returns:
            SpitResult with the listing text

        Raises:
            CycleSpitterError: The first failure of any stage
        """
        # Check the template fits before doing any work on the source
        scheduler = ScanlineScheduler(self.template, self.config.target_width, self.config.nop_cycles)

        lines = parse_source(source, filename)
        expanded = MacroExpander().expand(lines)
        costed = CycleResolver(self.config.cost_overrides).resolve_all(expanded)
        schedule = scheduler.schedule(costed)

        formatter = ListingFormatter(self.config.scanlines_label, annotate=self.config.annotate)
        listing = formatter.format(schedule)

        logger.info(
            f"{filename}: {len(lines)} lines, {len(expanded)} after expansion, "
            f"{schedule.scanline_count} scanline(s)"
        )
        return SpitResult(listing, schedule, tuple(costed))

    def spit_file(self, path: Path) -> SpitResult:
        """
        Transform a source file.

        Raises:
            OSError: If the file cannot be read
            CycleSpitterError: The first failure of any stage
        """
        path = Path(path)
        return self.spit(path.read_text(encoding="utf-8"), str(path))


# =============================================================================
# Convenience Functions
# =============================================================================

def spit(source: str, config: Optional[SpitterConfig] = None, filename: str = "<input>") -> str:
    """Transform source text and return the listing."""
    return CycleSpitter(config).spit(source, filename).listing
