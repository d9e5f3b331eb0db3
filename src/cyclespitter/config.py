"""
Cycle Spitter Configuration
===========================

Run configuration for a spitter pass. Configuration can come from:
- Default values (defined here)
- Environment variables
- Command-line options (applied with with_overrides)

External Cost Table
-------------------
A JSON object mapping instructions or shapes to cycle counts:

```json
{
    "adda.l (a2)+,a0": 16,
    "adda.l (an)+,an": 16,
    "bne.b xxx.l": 10
}
```

Keys are either a literal instruction, matched after lowercasing and
dropping operand whitespace, or a shape as printed in the listing
annotations. Literal keys win over shape keys; inline "; (n)" comments win
over both.
"""

import json
import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional

from cyclespitter.cpu import NOP_CYCLES, NOP_SHAPE
from cyclespitter.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_TARGET_WIDTH = 512
DEFAULT_SCANLINES_LABEL = "SCANLINES_CONSUMED"


@dataclass
class SpitterConfig:
    """
    Configuration for one spitter run.

    Attributes:
        target_width: Cycles per scanline (default: 512)
        scanlines_label: Label bound to the scanline count in the output
        template_path: Border/stabilizer template file, None for the built-in one
        cost_overrides: External override table (instruction or shape -> cycles)
        annotate: Append cost annotations to emitted instructions
    """

    target_width: int = DEFAULT_TARGET_WIDTH
    scanlines_label: str = DEFAULT_SCANLINES_LABEL
    template_path: Optional[Path] = None
    cost_overrides: dict[str, int] = field(default_factory=dict)
    annotate: bool = True

    @property
    def nop_mnemonic(self) -> str:
        """Padding instruction, fixed to the Cost Table NOP entry."""
        return NOP_SHAPE.mnemonic

    @property
    def nop_cycles(self) -> int:
        return NOP_CYCLES

    # ═══════════════════════════════════════════════════════════════════════════
    # FACTORY METHODS
    # ═══════════════════════════════════════════════════════════════════════════

    @classmethod
    def from_env(cls) -> "SpitterConfig":
        """
        Create SpitterConfig from environment variables.

        Environment variables (all optional):
            CYCLESPITTER_TARGET_WIDTH: Cycles per scanline (integer)
            CYCLESPITTER_LABEL: Scanline-count label name
            CYCLESPITTER_TEMPLATE: Template file path

        Returns:
            SpitterConfig with values from environment variables
        """
        config = cls()

        if width := os.environ.get("CYCLESPITTER_TARGET_WIDTH"):
            try:
                config.target_width = int(width)
            except ValueError:
                logger.debug(f"ignoring invalid CYCLESPITTER_TARGET_WIDTH={width!r}")

        if label := os.environ.get("CYCLESPITTER_LABEL"):
            config.scanlines_label = label

        if template := os.environ.get("CYCLESPITTER_TEMPLATE"):
            config.template_path = Path(template)

        return config

    def with_overrides(self, **values) -> "SpitterConfig":
        """
        Return a copy with the given fields replaced.

        None values are skipped, so optional CLI options can be passed
        straight through.
        """
        return replace(self, **{k: v for k, v in values.items() if v is not None})

    # ═══════════════════════════════════════════════════════════════════════════
    # HELPER METHODS
    # ═══════════════════════════════════════════════════════════════════════════

    def load_cost_overrides(self, path: Path) -> "SpitterConfig":
        """Return a copy with the entries of a cost table file merged in."""
        merged = dict(self.cost_overrides)
        merged.update(load_cost_table(path))
        return replace(self, cost_overrides=merged)


def load_cost_table(path: Path) -> dict[str, int]:
    """
    Read an external cost table file.

    Args:
        path: JSON file mapping instruction or shape to cycles

    Returns:
        The mapping

    Raises:
        ConfigurationError: If the file is unreadable, not a JSON object, or
                            holds anything but non-negative integer costs
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigurationError(f"cannot read cost table: {e.strerror}", str(path)) from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"invalid JSON at line {e.lineno}: {e.msg}", str(path)) from e

    if not isinstance(data, dict):
        raise ConfigurationError("cost table must be a JSON object", str(path))

    table: dict[str, int] = {}
    for key, value in data.items():
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ConfigurationError(
                f"cost for '{key}' must be a non-negative integer, got {value!r}",
                str(path),
            )
        table[key] = value

    logger.debug(f"{path}: loaded {len(table)} cost override(s)")
    return table
