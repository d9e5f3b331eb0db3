# =============================================================================
# test_template.py - Border Template Loader Unit Tests
# =============================================================================
# Tests for loading border/stabilizer templates.
#
# Test coverage includes:
#   - The built-in template
#   - Labelled segments with loose spelling
#   - Fill-separated templates
#   - REPT and overrides inside templates
#   - Format errors
# =============================================================================

import pytest

from cyclespitter.errors import TemplateFormatError, UnknownInstructionCostError
from cyclespitter.pipeline.template import (
    BUILTIN_TEMPLATE_NAME,
    SegmentKind,
    load_template,
    marker_kind,
    parse_template,
)


# =============================================================================
# Built-in Template
# =============================================================================

class TestBuiltinTemplate:
    """Test the default template."""

    def test_segment_costs(self, default_template):
        assert default_template.left_border.cycles == 24
        assert default_template.right_border.cycles == 24
        assert default_template.stabilizer.cycles == 24

    def test_reserved(self, default_template):
        assert default_template.opening_cycles == 48
        assert default_template.closing_cycles == 24
        assert default_template.reserved_cycles == 72

    def test_source_name(self, default_template):
        assert default_template.source == BUILTIN_TEMPLATE_NAME

    def test_segment_kinds(self, default_template):
        assert default_template.left_border.kind is SegmentKind.LEFT_BORDER
        assert default_template.stabilizer.kind is SegmentKind.STABILIZER


# =============================================================================
# Labelled Templates
# =============================================================================

class TestLabelledTemplates:
    """Test templates with segment labels."""

    def test_custom_template(self, template_58):
        assert template_58.reserved_cycles == 58
        assert template_58.stabilizer.cycles == 10
        assert template_58.source == "custom.s"

    @pytest.mark.parametrize("label,kind", [
        ("left_border", SegmentKind.LEFT_BORDER),
        ("LeftBorder", SegmentKind.LEFT_BORDER),
        (".left-border", SegmentKind.LEFT_BORDER),
        ("right", SegmentKind.RIGHT_BORDER),
        ("stabiliser", SegmentKind.STABILIZER),
        ("STAB", SegmentKind.STABILIZER),
        ("loop", None),
        (None, None),
    ])
    def test_marker_spelling(self, label, kind):
        assert marker_kind(label) is kind

    def test_label_on_instruction_line(self):
        template = parse_template(
            "left:   move.b d7,$ffff8260.w\n"
            "right:  move.w d7,$ffff820a.w\n"
            "stab:   nop\n"
        )
        assert template.left_border.cycles == 12
        assert template.right_border.cycles == 12
        assert template.stabilizer.cycles == 4

    def test_comments_are_kept(self):
        template = parse_template(
            "; header comment\n"
            "left_border:\n"
            "; hi-res switch\n"
            "        move.b  d7,$ffff8260.w\n"
            "right_border:\n"
            "        nop\n"
            "stabilizer:\n"
            "        nop\n"
        )
        assert len(template.left_border.lines) == 2
        assert template.left_border.cycles == 12

    def test_empty_segment(self):
        template = parse_template(
            "left_border:\n"
            "        nop\n"
            "right_border:\n"
            "stabilizer:\n"
            "        nop\n"
        )
        assert template.right_border.cycles == 0

    def test_rept_and_overrides(self):
        template = parse_template(
            "left_border:\n"
            "        rept 3\n"
            "        nop\n"
            "        endr\n"
            "right_border:\n"
            "        bne.s  .skip ; (12)\n"
            "stabilizer:\n"
            "        nop\n"
        )
        assert template.left_border.cycles == 12
        assert template.right_border.cycles == 12

    def test_external_overrides_apply(self):
        template = parse_template(
            "left_border:\n"
            "        adda.l (a0)+,a1\n"
            "right_border:\n"
            "        nop\n"
            "stabilizer:\n"
            "        nop\n",
            cost_overrides={"adda.l (an)+,an": 16},
        )
        assert template.left_border.cycles == 16

    def test_unknown_cost_in_template(self):
        with pytest.raises(UnknownInstructionCostError):
            parse_template(
                "left_border:\n"
                "        bne.s  .skip\n"
                "right_border:\n"
                "stabilizer:\n"
            )


# =============================================================================
# Fill-separated Templates
# =============================================================================

class TestFillSeparatedTemplates:
    """Test templates split on dcb.w NOP fills."""

    def test_split_on_fills(self):
        template = parse_template(
            "        move.b  d7,$ffff8260.w\n"
            "        move.w  d7,$ffff8260.w\n"
            "        dcb.w   89,$4e71\n"
            "        move.w  d7,$ffff820a.w\n"
            "        move.b  d7,$ffff820a.w\n"
            "        dcb.w   13,$4e71\n"
            "        move.b  d7,$ffff8260.w\n"
            "        nop\n"
            "        move.w  d7,$ffff8260.w\n"
            "        dcb.w   8,$4e71\n"
        )
        assert template.left_border.cycles == 24
        assert template.right_border.cycles == 24
        assert template.stabilizer.cycles == 28

    def test_wrong_number_of_blocks(self):
        with pytest.raises(TemplateFormatError, match="found 2"):
            parse_template(
                "        nop\n"
                "        dcb.w   10,$4e71\n"
                "        nop\n"
            )


# =============================================================================
# Format Errors
# =============================================================================

class TestFormatErrors:
    """Test malformed templates."""

    def test_missing_segment(self):
        with pytest.raises(TemplateFormatError, match="missing segment"):
            parse_template(
                "left_border:\n"
                "        nop\n"
                "right_border:\n"
                "        nop\n"
            )

    def test_wrong_order(self):
        with pytest.raises(TemplateFormatError, match="where 'right border' was expected"):
            parse_template(
                "left_border:\n"
                "stabilizer:\n"
                "right_border:\n"
            )

    def test_duplicate_segment(self):
        with pytest.raises(TemplateFormatError, match="defined twice"):
            parse_template(
                "left_border:\n"
                "left_border:\n"
            )

    def test_instruction_before_first_label(self):
        with pytest.raises(TemplateFormatError, match="before the first"):
            parse_template(
                "        nop\n"
                "left_border:\n"
                "right_border:\n"
                "stabilizer:\n"
            )


# =============================================================================
# Loading from Files
# =============================================================================

class TestLoadTemplate:
    """Test load_template."""

    def test_default(self):
        assert load_template().source == BUILTIN_TEMPLATE_NAME

    def test_from_file(self, template_58_file):
        template = load_template(template_58_file)
        assert template.reserved_cycles == 58
        assert template.source == str(template_58_file)

    def test_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            load_template(tmp_path / "missing.s")
