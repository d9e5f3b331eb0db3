# =============================================================================
# test_cycles.py - Cycle Resolver Unit Tests
# =============================================================================
# Tests for cost resolution over expanded lines.
#
# Test coverage includes:
#   - Register-list (MOVEM) costs
#   - Shifts by an immediate or implicit count
#   - NOP fill blocks
#   - Override precedence (inline, external literal, external shape)
#   - Unknown and data-dependent instructions
#   - Determinism and the override warning
# =============================================================================

import logging

import pytest

from conftest import cost_source
from cyclespitter.errors import UnknownInstructionCostError
from cyclespitter.pipeline.cycles import (
    OVERRIDE_DESCRIPTION,
    CostRule,
    CycleResolver,
    nop_fill_count,
    override_key,
)


def resolve(text: str, cost_overrides=None):
    """Resolve the first instruction of a source snippet."""
    costed = cost_source(text, cost_overrides)
    return next(c for c in costed if c.is_instruction).resolution


# =============================================================================
# Dynamic Rules
# =============================================================================

class TestRegisterList:
    """Test MOVEM costs."""

    def test_movem_to_memory(self):
        resolution = resolve("        movem.l d0-d7/a1-a3,-(sp)")
        assert resolution.cycles == 96
        assert resolution.rule is CostRule.REGISTER_LIST
        assert resolution.description == "movem.l reglist,-(an)"
        assert resolution.detail == "8 + 11x8"

    def test_movem_to_registers(self):
        resolution = resolve("        movem.l (sp)+,d0-d7/a1-a3")
        assert resolution.cycles == 12 + 11 * 8

    def test_movem_word(self):
        assert resolve("        movem.w d0-d3,(a0)").cycles == 8 + 4 * 4

    def test_movem_displacement(self):
        assert resolve("        movem.l 8(a0),d0/d1").cycles == 16 + 2 * 8

    def test_movem_single_register(self):
        assert resolve("        movem.l d0,-(sp)").cycles == 16

    def test_movem_invalid_destination(self):
        with pytest.raises(UnknownInstructionCostError):
            resolve("        movem.l d0-d1,(a0)+")

    def test_reference_example(self):
        """lea with an override, then an 11-register movem."""
        costed = cost_source(
            "        lea     X,a0 ; (12)\n"
            "        movem.l d0-d7/a1-a3,-(sp)\n"
        )
        assert [c.cycles for c in costed] == [12, 96]


class TestShiftCount:
    """Test register shifts and rotates."""

    def test_immediate_count(self):
        resolution = resolve("        lsl.w   #2,d0")
        assert resolution.cycles == 6 + 2 * 2
        assert resolution.rule is CostRule.SHIFT_COUNT
        assert resolution.detail == "6 + 2x2"

    def test_long_size(self):
        assert resolve("        roxr.l  #8,d1").cycles == 8 + 2 * 8

    def test_implicit_count_of_one(self):
        assert resolve("        asr.w   d0").cycles == 8

    def test_count_expression(self):
        assert resolve("        lsr.b   #1+2,d0").cycles == 12

    def test_count_out_of_range(self):
        with pytest.raises(UnknownInstructionCostError):
            resolve("        lsl.w   #9,d0")

    def test_register_count_needs_override(self):
        with pytest.raises(UnknownInstructionCostError, match="register count"):
            resolve("        lsl.w   d1,d0")

    def test_register_count_with_override(self):
        resolution = resolve("        lsl.w   d1,d0 ; (14)")
        assert resolution.cycles == 14
        assert resolution.rule is CostRule.OVERRIDE
        assert resolution.description == OVERRIDE_DESCRIPTION


class TestFill:
    """Test dcb.w NOP blocks."""

    def test_fill(self):
        resolution = resolve("        dcb.w   5,$4e71")
        assert resolution.cycles == 20
        assert resolution.rule is CostRule.FILL
        assert resolution.detail == "5x4"

    def test_fill_count_expression(self):
        assert resolve("        dcb.w   2*3,$4E71").cycles == 24

    def test_fill_with_variable(self):
        costed = cost_source(
            "pad     set 3\n"
            "        dcb.w   pad,$4e71\n"
        )
        assert costed[0].cycles == 12

    def test_other_data_is_not_a_fill(self):
        with pytest.raises(UnknownInstructionCostError):
            resolve("        dcb.w   5,$1234")

    def test_nop_fill_count(self):
        assert nop_fill_count("5,$4e71") == 5
        assert nop_fill_count("5, $4e71") == 5
        assert nop_fill_count("n,$4e71") is None
        assert nop_fill_count("5") is None


# =============================================================================
# Static Table
# =============================================================================

class TestTableLookup:
    """Test static table resolution."""

    def test_description_is_shape(self):
        resolution = resolve("        move.l  (a0)+,8(a1)")
        assert resolution.cycles == 24
        assert resolution.rule is CostRule.TABLE
        assert resolution.description == "move.l (an)+,d(an)"
        assert resolution.detail is None

    def test_same_shape_same_description(self):
        a = resolve("        move.l  (a0)+,8(a1)")
        b = resolve("        move.l  (a2)+,SCREEN_WIDTH(a3)")
        assert a == b

    def test_non_instructions_cost_nothing(self):
        costed = cost_source("; comment\nloop:\n\n")
        assert all(c.cycles == 0 and not c.is_instruction for c in costed)


# =============================================================================
# Overrides
# =============================================================================

class TestOverrides:
    """Test override precedence."""

    def test_inline_override_beats_table(self):
        resolution = resolve("        adda.l  (a2)+,a0 ; (16)")
        assert resolution.cycles == 16
        assert resolution.rule is CostRule.OVERRIDE
        assert resolution.description == "adda.l (an)+,an"

    def test_inline_override_beats_dynamic_rule(self):
        resolution = resolve("        movem.l d0-d7,-(sp) ; (100)")
        assert resolution.cycles == 100
        assert resolution.rule is CostRule.OVERRIDE

    def test_override_on_unknown_shape(self):
        resolution = resolve("        bne.s   loop ; (10)")
        assert resolution.cycles == 10
        assert resolution.description == OVERRIDE_DESCRIPTION

    def test_external_shape_key(self):
        resolution = resolve("        adda.l  (a2)+,a0", {"adda.l (an)+,an": 16})
        assert resolution.cycles == 16
        assert resolution.rule is CostRule.EXTERNAL

    def test_external_literal_key(self):
        resolution = resolve("        bne.s   loop", {"bne.s loop": 12})
        assert resolution.cycles == 12
        assert resolution.description == OVERRIDE_DESCRIPTION

    def test_literal_beats_shape(self):
        overrides = {"adda.l (an)+,an": 16, "ADDA.L (A2)+, A0": 20}
        assert resolve("        adda.l  (a2)+,a0", overrides).cycles == 20
        assert resolve("        adda.l  (a3)+,a1", overrides).cycles == 16

    def test_inline_beats_external(self):
        resolution = resolve("        adda.l  (a2)+,a0 ; (24)", {"adda.l (an)+,an": 16})
        assert resolution.cycles == 24
        assert resolution.rule is CostRule.OVERRIDE

    def test_external_literal_uses_substituted_operands(self):
        costed = cost_source(
            "ofs     set 8\n"
            "        move.w  ofs(a0),d0\n",
            {"move.w 8(a0),d0": 40},
        )
        assert costed[0].cycles == 40

    def test_column_one_uncosted_instructions_keep_overrides(self):
        costed = cost_source("illegal ; (34)\nstop #$2300 ; (4)\n")
        assert [(c.line.mnemonic, c.line.operands, c.cycles) for c in costed] == [
            ("illegal", "", 34),
            ("stop", "#$2300", 4),
        ]

    def test_override_key(self):
        assert override_key("ADDA.L  (A2)+, A0") == "adda.l (a2)+,a0"
        assert override_key("  nop ") == "nop"
        assert override_key("") == ""


# =============================================================================
# Unknown Instructions
# =============================================================================

class TestUnknown:
    """Test instructions with no cost."""

    def test_unknown_mnemonic(self):
        with pytest.raises(UnknownInstructionCostError) as exc_info:
            cost_source("        nop\n        frob.w  d0\n")
        error = exc_info.value
        assert error.instruction == "frob.w d0"
        assert error.shape == "frob.w dn"
        assert error.location.line == 2
        assert "add an explicit cycle count" in str(error)

    def test_conditional_branch_needs_override(self):
        with pytest.raises(UnknownInstructionCostError, match="data-dependent"):
            resolve("        bne.s   loop")

    def test_dbra_needs_override(self):
        with pytest.raises(UnknownInstructionCostError, match="data-dependent"):
            resolve("        dbra    d0,loop")

    def test_error_inside_rept_has_path(self):
        with pytest.raises(UnknownInstructionCostError) as exc_info:
            cost_source(
                "        rept 3\n"
                "        mulu    d0,d1\n"
                "        endr\n"
            )
        assert "in: REPT@1 (1/3)" in str(exc_info.value)

    def test_resolve_instruction(self):
        resolver = CycleResolver()
        assert resolver.resolve_instruction("nop").cycles == 4
        assert resolver.resolve_instruction("bne.s", "loop", override=10).cycles == 10
        with pytest.raises(UnknownInstructionCostError):
            resolver.resolve_instruction("bne.s", "loop")


# =============================================================================
# Determinism and Diagnostics
# =============================================================================

class TestDeterminism:
    """Test repeatable resolution and override warnings."""

    def test_same_instruction_same_resolution(self):
        costed = cost_source(
            "        rept 3\n"
            "        move.w  (a0),(a1)\n"
            "        endr\n"
        )
        assert len({c.resolution for c in costed}) == 1

    def test_fresh_resolvers_agree(self, scroller_source):
        first = [c.resolution for c in cost_source(scroller_source)]
        second = [c.resolution for c in cost_source(scroller_source)]
        assert first == second

    def test_warning_when_override_undercuts(self, caplog):
        with caplog.at_level(logging.WARNING, logger="cyclespitter.pipeline.cycles"):
            cost_source(
                "        rept 3\n"
                "        move.l  (a0)+,(a1)+ ; (12)\n"
                "        endr\n"
            )
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "below the 20 cycles" in warnings[0].getMessage()

    def test_no_warning_when_override_rounds_up(self, caplog):
        with caplog.at_level(logging.WARNING, logger="cyclespitter.pipeline.cycles"):
            cost_source("        adda.l  (a2)+,a0 ; (16)\n")
        assert not [r for r in caplog.records if r.levelno == logging.WARNING]
