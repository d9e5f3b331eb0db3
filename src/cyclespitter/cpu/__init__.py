"""
Cycle Spitter CPU Package
=========================

CPU timing definitions used by the cycle resolver and the template loader.

The Motorola 68000 is the CPU of the Atari ST. Sync-scroll and border
removal code on that machine is written against exact bus-cycle counts,
which is what this package describes.

Modules:
    m68000: Addressing modes, instruction shape normalisation, the static
            Cost Table and the parameters of the dynamic cost rules.

Usage:
    from cyclespitter.cpu import (
        AddressingMode,
        InstructionShape,
        instruction_shape,
        get_static_cost,
    )
"""

# =============================================================================
# Public API Exports
# =============================================================================

from cyclespitter.cpu.m68000 import (
    # Core types
    AddressingMode,
    InstructionShape,
    # Cost Table
    COST_TABLE,
    NOP_CYCLES,
    NOP_OPCODE,
    NOP_SHAPE,
    EA_TIMES,
    # Dynamic rule parameters
    MOVEM_PER_REGISTER,
    MOVEM_TO_MEMORY_BASE,
    MOVEM_TO_REGISTERS_BASE,
    SHIFT_INSTRUCTIONS,
    SHIFT_MAX_IMMEDIATE,
    SHIFT_PER_BIT,
    SHIFT_REGISTER_BASE,
    # Instruction classes
    CONDITIONAL_BRANCHES,
    DATA_DEPENDENT_INSTRUCTIONS,
    M68000_MNEMONICS,
    UNCONDITIONAL_BRANCHES,
    # Operand and shape helpers
    classify_operand,
    count_registers,
    ea_time,
    instruction_shape,
    normalize_mnemonic,
    register_mask,
    split_operands,
    # Lookup functions
    get_static_cost,
    is_data_dependent,
    is_known_mnemonic,
)

__all__ = [
    # Core types
    "AddressingMode",
    "InstructionShape",
    # Cost Table
    "COST_TABLE",
    "NOP_CYCLES",
    "NOP_OPCODE",
    "NOP_SHAPE",
    "EA_TIMES",
    # Dynamic rule parameters
    "MOVEM_PER_REGISTER",
    "MOVEM_TO_MEMORY_BASE",
    "MOVEM_TO_REGISTERS_BASE",
    "SHIFT_INSTRUCTIONS",
    "SHIFT_MAX_IMMEDIATE",
    "SHIFT_PER_BIT",
    "SHIFT_REGISTER_BASE",
    # Instruction classes
    "CONDITIONAL_BRANCHES",
    "DATA_DEPENDENT_INSTRUCTIONS",
    "M68000_MNEMONICS",
    "UNCONDITIONAL_BRANCHES",
    # Operand and shape helpers
    "classify_operand",
    "count_registers",
    "ea_time",
    "instruction_shape",
    "normalize_mnemonic",
    "register_mask",
    "split_operands",
    # Lookup functions
    "get_static_cost",
    "is_data_dependent",
    "is_known_mnemonic",
]
