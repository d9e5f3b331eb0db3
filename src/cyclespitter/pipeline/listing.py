"""
Listing Formatter
=================

Renders a Schedule as annotated 68000 source, ready to be included in the
effect's main file.

Output Layout
-------------
```asm
; ------------------------------------------
; This file is generated using
; cyclespitter 1.0.0
; Total scanlines created: 2
; Template used: built-in
; ------------------------------------------
SCANLINES_CONSUMED	equ	2

; === Scanline 1 ===
; >>> left border
	move.b	d7,$ffff8260.w	; (12) move.b dn,xxx.w [0] left border: hi-res
	...
; <<< left border
; --- Section 1: SCROLLOOP ---
	lsl.w	(a0)+	; (12) lsl.w (an)+ [48]
	...
	dcb.w	20,$4e71	; Pad to 512 cycles (80 cycles) [432]
; Total cycles for scanline: 512
```

Each instruction is annotated with its cost, the shape it was costed by,
its offset within the scanline, and then its original comment.
"""

from typing import Optional

from cyclespitter import __version__
from cyclespitter.pipeline.cycles import CostedLine
from cyclespitter.pipeline.scheduler import LineKind, Schedule, ScheduledLine

TOOL_NAME = "cyclespitter"
RULE = "; " + "-" * 42

_SEGMENT_KINDS = (LineKind.LEFT_BORDER, LineKind.STABILIZER, LineKind.RIGHT_BORDER)


class ListingFormatter:
    """
    Formats a Schedule as assembly text.

    Usage:
        text = ListingFormatter("SCANLINES_CONSUMED").format(schedule)

    Attributes:
        scanlines_label: Label bound to the scanline count
        annotate: Append cost annotations to instruction lines
    """

    def __init__(self, scanlines_label: str = "SCANLINES_CONSUMED", annotate: bool = True):
        self.scanlines_label = scanlines_label
        self.annotate = annotate

    def format(self, schedule: Schedule) -> str:
        """Render the whole listing, terminated by a newline."""
        out = self.header(schedule)
        out.append("")

        sections: dict[str, int] = {}
        origin: Optional[str] = None
        for scanline in schedule.scanlines:
            out.append(f"; === Scanline {scanline.index} ===")
            segment: Optional[LineKind] = None

            for scheduled in scanline.lines:
                if scheduled.kind is not segment:
                    if segment in _SEGMENT_KINDS:
                        out.append(f"; <<< {segment}")
                    if scheduled.kind in _SEGMENT_KINDS:
                        out.append(f"; >>> {scheduled.kind}")
                    segment = scheduled.kind

                if scheduled.kind is LineKind.CODE and scheduled.costed.origin != origin:
                    origin = scheduled.costed.origin
                    if origin is not None:
                        number = sections.setdefault(origin, len(sections) + 1)
                        out.append(f"; --- Section {number}: {origin} ---")

                out.append(self.format_line(scheduled, schedule.target_width))

            if segment in _SEGMENT_KINDS:
                out.append(f"; <<< {segment}")
            out.append(f"; Total cycles for scanline: {scanline.total_cycles}")
            out.append("")

        return "\n".join(out)

    def header(self, schedule: Schedule) -> list[str]:
        return [
            RULE,
            "; This file is generated using",
            f"; {TOOL_NAME} {__version__}",
            f"; Total scanlines created: {schedule.scanline_count}",
            f"; Template used: {schedule.template.source}",
            RULE,
            f"{self.scanlines_label}\tequ\t{schedule.scanline_count}",
        ]

    # =========================================================================
    # Line Rendering
    # =========================================================================

    def format_line(self, scheduled: ScheduledLine, target_width: int) -> str:
        if scheduled.kind is LineKind.PADDING:
            text = f"\tdcb.w\t{scheduled.nop_count},$4e71\t; Pad to {target_width} cycles ({scheduled.cycles} cycles)"
            if self.annotate:
                text += f" [{scheduled.offset}]"
            return text
        return self.format_costed(scheduled.costed, scheduled.offset)

    def format_costed(self, costed: CostedLine, offset: int) -> str:
        line = costed.line
        comment = (line.comment or "").strip()

        if line.equate is not None:
            name, expression = line.equate
            return _with_comment(f"{name}\tequ\t{expression}", comment)

        if not costed.is_instruction:
            if line.label:
                return _with_comment(f"{line.label}:", comment)
            return line.source.text.strip()

        code = f"\t{line.mnemonic}"
        if line.operands:
            code += f"\t{line.operands}"
        if line.label:
            code = f"{line.label}:{code}"

        if not self.annotate:
            return _with_comment(code, comment)

        resolution = costed.resolution
        cycles = str(resolution.cycles)
        if resolution.detail:
            cycles += f" = {resolution.detail}"
        annotation = f"({cycles}) {resolution.description} [{offset}]"
        return _with_comment(code, f"{annotation} {comment}".rstrip())


def _with_comment(code: str, comment: str) -> str:
    if not comment:
        return code
    return f"{code}\t; {comment}"


def format_listing(schedule: Schedule, scanlines_label: str = "SCANLINES_CONSUMED") -> str:
    """Convenience wrapper around ListingFormatter.format."""
    return ListingFormatter(scanlines_label).format(schedule)
