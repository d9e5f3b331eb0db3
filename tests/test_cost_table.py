# =============================================================================
# test_cost_table.py - 68000 Timing Table Unit Tests
# =============================================================================
# Tests for operand classification, shape normalisation and the static
# Cost Table built from the 68000 timing tables.
#
# Test coverage includes:
#   - Operand classification for every addressing mode
#   - Register list parsing
#   - Mnemonic normalisation (implicit sizes, short branches)
#   - Spot checks of Cost Table entries per instruction family
#   - Data-dependent instructions staying out of the table
# =============================================================================

import pytest

from cyclespitter.cpu import (
    AddressingMode,
    COST_TABLE,
    InstructionShape,
    NOP_CYCLES,
    classify_operand,
    count_registers,
    get_static_cost,
    instruction_shape,
    is_data_dependent,
    is_known_mnemonic,
    normalize_mnemonic,
    register_mask,
    split_operands,
)


def cost(mnemonic: str, operands: str = ""):
    return get_static_cost(instruction_shape(mnemonic, operands))


# =============================================================================
# Operand Classification
# =============================================================================

class TestClassifyOperand:
    """Test addressing-mode classification."""

    @pytest.mark.parametrize("operand,mode", [
        ("d0", AddressingMode.DATA_REG),
        ("D7", AddressingMode.DATA_REG),
        ("a3", AddressingMode.ADDR_REG),
        ("sp", AddressingMode.ADDR_REG),
        ("(a0)", AddressingMode.INDIRECT),
        ("(a0)+", AddressingMode.POSTINC),
        ("-(sp)", AddressingMode.PREDEC),
        ("8(a1)", AddressingMode.DISPLACEMENT),
        ("SCREEN_WIDTH(a1)", AddressingMode.DISPLACEMENT),
        ("230*100(a5)", AddressingMode.DISPLACEMENT),
        ("4(a0,d1.w)", AddressingMode.INDEXED),
        ("(4,a0)", AddressingMode.DISPLACEMENT),
        ("$ffff8260.w", AddressingMode.ABSOLUTE_SHORT),
        ("charBuffer", AddressingMode.ABSOLUTE_LONG),
        ("$78000", AddressingMode.ABSOLUTE_LONG),
        ("table(pc)", AddressingMode.PC_DISPLACEMENT),
        ("table(pc,d0.w)", AddressingMode.PC_INDEXED),
        ("#1", AddressingMode.IMMEDIATE),
        ("d0-d7/a1-a3", AddressingMode.REGISTER_LIST),
        ("sr", AddressingMode.STATUS_REG),
        ("ccr", AddressingMode.CONDITION_CODES),
        ("usp", AddressingMode.USER_STACK),
    ])
    def test_modes(self, operand, mode):
        assert classify_operand(operand) is mode

    def test_split_keeps_index_commas(self):
        assert split_operands("4(a0,d1.w),d2") == ["4(a0,d1.w)", "d2"]

    def test_split_empty(self):
        assert split_operands("") == []


class TestRegisterLists:
    """Test register-list parsing."""

    def test_count_ranges(self):
        assert count_registers("d0-d7/a1-a3") == 11

    def test_single_register(self):
        assert count_registers("d0") == 1

    def test_overlapping_ranges_count_once(self):
        assert count_registers("d0-d3/d2-d5") == 6

    def test_reversed_range(self):
        assert count_registers("d3-d0") == 4

    def test_mask_layout(self):
        assert register_mask("d0/a0") == 0x0101

    def test_sp_is_a7(self):
        assert register_mask("a7") == register_mask("sp")

    def test_not_a_list(self):
        assert register_mask("SCREEN-2") is None


# =============================================================================
# Shape Normalisation
# =============================================================================

class TestNormalisation:
    """Test mnemonic normalisation and shapes."""

    @pytest.mark.parametrize("mnemonic,normalized", [
        ("MOVE.L", "move.l"),
        ("move", "move.w"),
        ("lea", "lea.l"),
        ("moveq", "moveq.l"),
        ("swap", "swap.w"),
        ("nop", "nop"),
        ("jmp", "jmp"),
        ("bra.s", "bra.b"),
        ("bne", "bne.w"),
    ])
    def test_normalize(self, mnemonic, normalized):
        assert normalize_mnemonic(mnemonic) == normalized

    def test_shape_string(self):
        assert str(instruction_shape("move.l", "(a0)+,8(a1)")) == "move.l (an)+,d(an)"

    def test_movem_single_register_is_a_list(self):
        shape = instruction_shape("movem.l", "d0,-(sp)")
        assert shape.modes[0] is AddressingMode.REGISTER_LIST

    def test_unsized_shape(self):
        assert str(instruction_shape("nop", "")) == "nop"

    def test_shape_properties(self):
        shape = InstructionShape("move.l", (AddressingMode.DATA_REG, AddressingMode.DATA_REG))
        assert shape.base == "move"
        assert shape.size == "l"
        assert InstructionShape("nop").size is None


# =============================================================================
# Cost Table Entries
# =============================================================================

class TestCostTable:
    """Spot checks against the 68000 user's manual timings."""

    @pytest.mark.parametrize("mnemonic,operands,cycles", [
        # MOVE
        ("move.w", "d0,d1", 4),
        ("move.l", "(a0)+,(a1)+", 20),
        ("move.l", "(a0)+,8(a1)", 24),
        ("move.w", "8(a0),8(a1)", 20),
        ("move.b", "d7,$ffff8260.w", 12),
        ("move.w", "#1,d0", 8),
        ("move.l", "d0,-(sp)", 12),
        ("moveq", "#0,d0", 4),
        ("movea.l", "screen_adr_fs,a1", 20),
        ("move.l", "a5,a1", 4),
        # Address
        ("lea", "charBuffer,a0", 12),
        ("lea", "SCREEN_WIDTH(a1),a1", 8),
        ("lea", "(a0),a1", 4),
        ("pea", "(a0)", 12),
        ("jmp", "(a0)", 8),
        ("jsr", "routine", 20),
        # Arithmetic
        ("add.w", "d0,d1", 4),
        ("add.l", "d0,d1", 8),
        ("add.l", "(a0),d1", 14),
        ("add.w", "d0,(a0)", 12),
        ("adda.l", "(a2)+,a0", 14),
        ("adda.w", "(a4)+,a1", 12),
        ("add.l", "#SMALL_SCROLLER_OFFSET,a1", 16),
        ("cmp.l", "d0,d1", 6),
        ("cmpa.w", "d0,a0", 6),
        ("addi.w", "#1,d0", 8),
        ("addq.w", "#1,delayCounter", 20),
        ("addq.l", "#2,a0", 8),
        ("subq.w", "#1,d0", 4),
        ("eor.w", "d0,d1", 4),
        ("cmpm.w", "(a0)+,(a1)+", 12),
        # Single operand
        ("clr.w", "d0", 4),
        ("clr.l", "d0", 6),
        ("clr.w", "(a0)", 12),
        ("tst.w", "d0", 4),
        ("not.l", "d0", 6),
        ("swap", "d0", 4),
        ("ext.w", "d0", 4),
        ("exg", "d0,d1", 6),
        # Memory shifts
        ("lsl.w", "(a0)+", 12),
        ("roxl.w", "224(a1)", 16),
        ("roxl.w", "(a1)", 12),
        # Bit operations
        ("btst", "#0,(a0)", 12),
        ("bset", "d0,(a0)", 12),
        # Control
        ("nop", "", 4),
        ("rts", "", 16),
        ("bra.s", "loop", 10),
        ("bsr", "routine", 18),
        ("move.w", "d0,sr", 12),
        ("move.l", "a0,usp", 4),
    ])
    def test_entries(self, mnemonic, operands, cycles):
        assert cost(mnemonic, operands) == cycles

    def test_nop_cycles(self):
        assert NOP_CYCLES == 4

    def test_table_is_built(self):
        assert len(COST_TABLE) > 500

    def test_unknown_shape(self):
        assert cost("move.l", "d0,#1") is None


# =============================================================================
# Data-dependent Instructions
# =============================================================================

class TestDataDependent:
    """Instructions whose cost depends on run-time values."""

    @pytest.mark.parametrize("mnemonic,operands", [
        ("bne.s", "loop"),
        ("beq", "done"),
        ("dbra", "d0,loop"),
        ("dbf", "d0,loop"),
        ("seq", "d0"),
        ("mulu", "d0,d1"),
        ("divs", "#3,d1"),
    ])
    def test_not_in_table(self, mnemonic, operands):
        shape = instruction_shape(mnemonic, operands)
        assert get_static_cost(shape) is None
        assert is_data_dependent(shape)

    def test_register_shift_by_register_not_in_table(self):
        assert cost("lsl.w", "d1,d0") is None

    def test_known_mnemonics(self):
        assert is_known_mnemonic("MOVE.L")
        assert is_known_mnemonic("movem.l")
        assert is_known_mnemonic("lsl")
        assert is_known_mnemonic("bne")
        assert not is_known_mnemonic("start")

    @pytest.mark.parametrize("mnemonic", ["illegal", "stop", "trapv", "tas", "nbcd", "chk", "st", "dbf"])
    def test_uncosted_instructions_are_known(self, mnemonic):
        assert is_known_mnemonic(mnemonic)
