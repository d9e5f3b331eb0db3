"""
Motorola 68000 Instruction Timing Definitions
==============================================

This module defines the 68000 addressing modes, the normalisation of an
instruction into its *shape* (mnemonic with size + operand addressing-mode
classes), and the Cost Table mapping each shape to a fixed cycle count.

Timings are the bus-cycle counts from the Motorola M68000 User's Manual
(section 8, instruction execution times) for the plain 68000 at zero wait
states. On the Atari ST every instruction is effectively rounded up to a
multiple of 4 cycles by the shifter bus arbitration; this table deliberately
holds the *manual* values, and sync code that needs the ST-rounded value
states it with an inline override ("; (16)").

Addressing Modes
----------------
| Class     | Syntax examples              | EA time b/w | EA time l |
|-----------|------------------------------|-------------|-----------|
| dn        | d0                           | 0           | 0         |
| an        | a3, sp                       | 0           | 0         |
| (an)      | (a0)                         | 4           | 8         |
| (an)+     | (a0)+                        | 4           | 8         |
| -(an)     | -(sp)                        | 6           | 10        |
| d(an)     | 8(a1), SCREEN_WIDTH(a1)      | 8           | 12        |
| d(an,xi)  | 4(a0,d1.w)                   | 10          | 14        |
| xxx.w     | $ffff8260.w                  | 8           | 12        |
| xxx.l     | label, $ffff8260             | 12          | 16        |
| d(pc)     | table(pc)                    | 8           | 12        |
| d(pc,xi)  | table(pc,d0.w)               | 10          | 14        |
| #xxx      | #$1234                       | 4           | 8         |

Dynamic Shapes
--------------
Some costs depend on operand *content*, not just on the addressing mode.
The parameters for those rules live here; the Cycle Resolver evaluates
them:

- MOVEM: base + per-register cost x number of registers in the list
- Register shifts/rotates by an immediate count: base + 2 x count
- NOP fill blocks (dcb.w n,$4e71): n x NOP cost

Instructions whose cost depends on run-time data (conditional branches,
DBcc, Scc, MULU/MULS, DIVU/DIVS, shifts by a register count, bit
operations on data registers) are intentionally absent. Their users must
state the cost they rely on.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional


# =============================================================================
# Addressing Mode Enumeration
# =============================================================================

class AddressingMode(Enum):
    """
    68000 operand classes used to build instruction shapes.

    The enum value is the canonical spelling used in shape descriptions,
    so two operands spelled differently but sharing a class describe the
    same way in the output annotations.
    """
    DATA_REG = "dn"
    ADDR_REG = "an"
    INDIRECT = "(an)"
    POSTINC = "(an)+"
    PREDEC = "-(an)"
    DISPLACEMENT = "d(an)"
    INDEXED = "d(an,xi)"
    ABSOLUTE_SHORT = "xxx.w"
    ABSOLUTE_LONG = "xxx.l"
    PC_DISPLACEMENT = "d(pc)"
    PC_INDEXED = "d(pc,xi)"
    IMMEDIATE = "#xxx"
    REGISTER_LIST = "reglist"
    STATUS_REG = "sr"
    CONDITION_CODES = "ccr"
    USER_STACK = "usp"

    def __str__(self) -> str:
        return self.value


# Short aliases used while building the table
DN = AddressingMode.DATA_REG
AN = AddressingMode.ADDR_REG
IND = AddressingMode.INDIRECT
INC = AddressingMode.POSTINC
DEC = AddressingMode.PREDEC
DSP = AddressingMode.DISPLACEMENT
IDX = AddressingMode.INDEXED
ABW = AddressingMode.ABSOLUTE_SHORT
ABL = AddressingMode.ABSOLUTE_LONG
PCD = AddressingMode.PC_DISPLACEMENT
PCX = AddressingMode.PC_INDEXED
IMM = AddressingMode.IMMEDIATE
REGLIST = AddressingMode.REGISTER_LIST
SR = AddressingMode.STATUS_REG
CCR = AddressingMode.CONDITION_CODES
USP = AddressingMode.USER_STACK

# Addressing-mode categories from the 68000 programmer's reference
ALL_SOURCES = (DN, AN, IND, INC, DEC, DSP, IDX, ABW, ABL, PCD, PCX, IMM)
DATA_SOURCES = tuple(m for m in ALL_SOURCES if m is not AN)
MEMORY_ALTERABLE = (IND, INC, DEC, DSP, IDX, ABW, ABL)
DATA_ALTERABLE = (DN,) + MEMORY_ALTERABLE
MEMORY_READABLE = MEMORY_ALTERABLE + (PCD, PCX)
CONTROL = (IND, DSP, IDX, ABW, ABL, PCD, PCX)


# =============================================================================
# Instruction Shape
# =============================================================================

@dataclass(frozen=True)
class InstructionShape:
    """
    Normalised identity of an instruction for cost lookup.

    Attributes:
        mnemonic: Lowercase mnemonic including its size suffix ("move.l"),
                  or without one for unsized instructions ("nop", "jmp")
        modes: Addressing-mode class of each operand, in source order
    """
    mnemonic: str
    modes: tuple[AddressingMode, ...] = ()

    @property
    def base(self) -> str:
        """Mnemonic without size suffix."""
        return self.mnemonic.partition(".")[0]

    @property
    def size(self) -> Optional[str]:
        """Size suffix letter, or None for unsized instructions."""
        _, dot, size = self.mnemonic.partition(".")
        return size if dot else None

    def __str__(self) -> str:
        if not self.modes:
            return self.mnemonic
        return f"{self.mnemonic} {','.join(str(m) for m in self.modes)}"


# =============================================================================
# Effective Address Calculation Times
# =============================================================================
# (byte/word, long) - Motorola M68000UM table 8-1
# =============================================================================

EA_TIMES: dict[AddressingMode, tuple[int, int]] = {
    DN: (0, 0),
    AN: (0, 0),
    IND: (4, 8),
    INC: (4, 8),
    DEC: (6, 10),
    DSP: (8, 12),
    IDX: (10, 14),
    ABW: (8, 12),
    ABL: (12, 16),
    PCD: (8, 12),
    PCX: (10, 14),
    IMM: (4, 8),
}


def ea_time(mode: AddressingMode, size: Optional[str]) -> int:
    """Effective address calculation time for a mode and operand size."""
    word, long = EA_TIMES[mode]
    return long if size == "l" else word


# =============================================================================
# Mnemonic Classes
# =============================================================================

# Condition suffixes shared by Bcc, DBcc and Scc
CONDITIONS = frozenset({
    "t", "f", "hi", "ls", "cc", "hs", "cs", "lo", "ne", "eq",
    "vc", "vs", "pl", "mi", "ge", "lt", "gt", "le",
})

# Branches with a fixed cost (the target is always taken)
UNCONDITIONAL_BRANCHES = frozenset({"bra", "bsr"})

# Conditional branches: cost depends on the run-time outcome
CONDITIONAL_BRANCHES = frozenset(
    {f"b{cc}" for cc in CONDITIONS if cc not in ("t", "f")}
)

DBCC_INSTRUCTIONS = frozenset({"dbra"} | {f"db{cc}" for cc in CONDITIONS})

SCC_INSTRUCTIONS = frozenset({f"s{cc}" for cc in CONDITIONS})

# Instructions written without a size suffix and described without one
UNSIZED_INSTRUCTIONS = frozenset({
    "nop", "rts", "rte", "rtr", "reset", "illegal", "trapv", "stop",
    "jmp", "jsr", "trap", "unlk",
    "btst", "bset", "bclr", "bchg",
})

# Instructions whose size is implied when the suffix is omitted
IMPLICIT_SIZE: dict[str, str] = {
    "lea": "l",
    "pea": "l",
    "moveq": "l",
    "exg": "l",
    "swap": "w",
    "link": "w",
    "abcd": "b",
    "sbcd": "b",
    "nbcd": "b",
    "tas": "b",
}

SHIFT_INSTRUCTIONS = frozenset({
    "asl", "asr", "lsl", "lsr", "rol", "ror", "roxl", "roxr",
})

# Every 68000 instruction base, including those without a Cost Table entry
M68000_MNEMONICS = (
    frozenset({
        "abcd", "add", "adda", "addi", "addq", "addx", "and", "andi",
        "asl", "asr", "bchg", "bclr", "bra", "bset", "bsr", "btst",
        "chk", "clr", "cmp", "cmpa", "cmpi", "cmpm", "divs", "divu",
        "eor", "eori", "exg", "ext", "illegal", "jmp", "jsr", "lea",
        "link", "lsl", "lsr", "move", "movea", "movem", "movep", "moveq",
        "muls", "mulu", "nbcd", "neg", "negx", "nop", "not", "or", "ori",
        "pea", "reset", "rol", "ror", "roxl", "roxr", "rte", "rtr", "rts",
        "sbcd", "stop", "sub", "suba", "subi", "subq", "subx", "swap",
        "tas", "trap", "trapv", "tst", "unlk",
    })
    | UNSIZED_INSTRUCTIONS
    | frozenset(IMPLICIT_SIZE)
    | CONDITIONAL_BRANCHES
    | DBCC_INSTRUCTIONS
    | SCC_INSTRUCTIONS
)

# Instructions whose cost depends on operand values at run time
DATA_DEPENDENT_INSTRUCTIONS = (
    CONDITIONAL_BRANCHES
    | DBCC_INSTRUCTIONS
    | SCC_INSTRUCTIONS
    | frozenset({"mulu", "muls", "divu", "divs", "chk"})
)


# =============================================================================
# Dynamic Rule Parameters
# =============================================================================

# MOVEM memory -> registers: base cost per source mode (M68000UM table 8-8)
MOVEM_TO_REGISTERS_BASE: dict[AddressingMode, int] = {
    IND: 12, INC: 12, DSP: 16, IDX: 18, ABW: 16, ABL: 20, PCD: 16, PCX: 18,
}

# MOVEM registers -> memory: base cost per destination mode
MOVEM_TO_MEMORY_BASE: dict[AddressingMode, int] = {
    IND: 8, DEC: 8, DSP: 12, IDX: 14, ABW: 12, ABL: 16,
}

# MOVEM cost added for every register transferred
MOVEM_PER_REGISTER: dict[str, int] = {"w": 4, "l": 8}

# Register shift/rotate: base cost per size, plus SHIFT_PER_BIT per count
SHIFT_REGISTER_BASE: dict[str, int] = {"b": 6, "w": 6, "l": 8}
SHIFT_PER_BIT = 2
SHIFT_MAX_IMMEDIATE = 8

# The NOP opcode, as written in dcb.w fill blocks
NOP_OPCODE = 0x4E71


# =============================================================================
# Cost Table
# =============================================================================
# Key: InstructionShape
# Value: cycles
#
# The table is built once at import from the per-family timing formulas of
# the user's manual, then treated as read-only.
# =============================================================================

COST_TABLE: dict[InstructionShape, int] = {}


def _add(mnemonic: str, modes: tuple[AddressingMode, ...], cycles: int) -> None:
    COST_TABLE[InstructionShape(mnemonic, modes)] = cycles


def _sized(base: str, sizes: str = "bwl"):
    """Yield (mnemonic-with-size, size) pairs."""
    for size in sizes:
        yield f"{base}.{size}", size


def _move_destination_time(mode: AddressingMode, size: str) -> int:
    # MOVE writes through -(An) without the extra 2-cycle predecrement
    if mode is DEC:
        return ea_time(IND, size)
    return ea_time(mode, size)


def _build_move() -> None:
    for mnemonic, size in _sized("move"):
        for src in ALL_SOURCES:
            for dst in DATA_ALTERABLE:
                _add(mnemonic, (src, dst), 4 + ea_time(src, size) + _move_destination_time(dst, size))
    # MOVEA, including the "move.x <ea>,an" spelling assemblers accept
    for base in ("movea", "move"):
        for mnemonic, size in _sized(base, "wl"):
            for src in ALL_SOURCES:
                _add(mnemonic, (src, AN), 4 + ea_time(src, size))
    _add("moveq.l", (IMM, DN), 4)

    # Status register, condition codes and user stack pointer
    _add("move.w", (SR, DN), 6)
    for dst in MEMORY_ALTERABLE:
        _add("move.w", (SR, dst), 8 + ea_time(dst, "w"))
    for src in DATA_SOURCES:
        _add("move.w", (src, SR), 12 + ea_time(src, "w"))
        _add("move.w", (src, CCR), 12 + ea_time(src, "w"))
    _add("move.l", (USP, AN), 4)
    _add("move.l", (AN, USP), 4)

    for mnemonic, size in _sized("movep", "wl"):
        cost = 16 if size == "w" else 24
        _add(mnemonic, (DN, DSP), cost)
        _add(mnemonic, (DSP, DN), cost)


def _build_address() -> None:
    lea = {IND: 4, DSP: 8, IDX: 12, ABW: 8, ABL: 12, PCD: 8, PCX: 12}
    pea = {IND: 12, DSP: 16, IDX: 20, ABW: 16, ABL: 20, PCD: 16, PCX: 20}
    jmp = {IND: 8, DSP: 10, IDX: 14, ABW: 10, ABL: 12, PCD: 10, PCX: 14}
    jsr = {IND: 16, DSP: 18, IDX: 22, ABW: 18, ABL: 20, PCD: 18, PCX: 22}
    for mode in CONTROL:
        _add("lea.l", (mode, AN), lea[mode])
        _add("pea.l", (mode,), pea[mode])
        _add("jmp", (mode,), jmp[mode])
        _add("jsr", (mode,), jsr[mode])


def _build_arithmetic() -> None:
    # <ea>,Dn forms
    for base in ("add", "sub", "and", "or", "cmp"):
        for mnemonic, size in _sized(base):
            for src in ALL_SOURCES:
                if src is AN and base in ("and", "or"):
                    continue
                if size != "l":
                    cost = 4 + ea_time(src, size)
                elif base == "cmp":
                    cost = 6 + ea_time(src, size)
                elif src in (DN, AN, IMM):
                    cost = 8 + ea_time(src, size)
                else:
                    cost = 6 + ea_time(src, size)
                _add(mnemonic, (src, DN), cost)

    # Dn,<ea> forms
    for base in ("add", "sub", "and", "or", "eor"):
        for mnemonic, size in _sized(base):
            for dst in MEMORY_ALTERABLE:
                _add(mnemonic, (DN, dst), (12 if size == "l" else 8) + ea_time(dst, size))
    for mnemonic, size in _sized("eor"):
        _add(mnemonic, (DN, DN), 8 if size == "l" else 4)

    # Address register arithmetic, also under the "add.l x,an" spelling
    for base in ("adda", "suba", "add", "sub"):
        for mnemonic, size in _sized(base, "wl"):
            for src in ALL_SOURCES:
                if size == "w":
                    cost = 8 + ea_time(src, size)
                elif src in (DN, AN, IMM):
                    cost = 8 + ea_time(src, size)
                else:
                    cost = 6 + ea_time(src, size)
                _add(mnemonic, (src, AN), cost)
    for base in ("cmpa", "cmp"):
        for mnemonic, size in _sized(base, "wl"):
            for src in ALL_SOURCES:
                _add(mnemonic, (src, AN), 6 + ea_time(src, size))

    # Immediate forms: the explicit xxxI mnemonic and the plain spelling
    # assemblers turn into it when the destination is memory
    for base in ("addi", "subi", "andi", "ori", "eori", "cmpi"):
        plain = base[:-1]
        for mnemonic, size in _sized(base):
            if size != "l":
                register = 8
            elif base in ("andi", "cmpi"):
                register = 14
            else:
                register = 16
            _add(mnemonic, (IMM, DN), register)
            for dst in MEMORY_ALTERABLE:
                if base == "cmpi":
                    cost = (12 if size == "l" else 8) + ea_time(dst, size)
                else:
                    cost = (20 if size == "l" else 12) + ea_time(dst, size)
                _add(mnemonic, (IMM, dst), cost)
                _add(f"{plain}.{size}", (IMM, dst), cost)
    for base in ("andi", "ori", "eori"):
        _add(f"{base}.b", (IMM, CCR), 20)
        _add(f"{base}.w", (IMM, SR), 20)

    # Quick forms
    for base in ("addq", "subq"):
        for mnemonic, size in _sized(base):
            _add(mnemonic, (IMM, DN), 8 if size == "l" else 4)
            if size != "b":
                _add(mnemonic, (IMM, AN), 8)
            for dst in MEMORY_ALTERABLE:
                _add(mnemonic, (IMM, dst), (12 if size == "l" else 8) + ea_time(dst, size))

    # Multi-precision and BCD
    for base in ("addx", "subx"):
        for mnemonic, size in _sized(base):
            _add(mnemonic, (DN, DN), 8 if size == "l" else 4)
            _add(mnemonic, (DEC, DEC), 30 if size == "l" else 18)
    for base in ("abcd", "sbcd"):
        _add(f"{base}.b", (DN, DN), 6)
        _add(f"{base}.b", (DEC, DEC), 18)
    for mnemonic, size in _sized("cmpm"):
        _add(mnemonic, (INC, INC), 20 if size == "l" else 12)


def _build_single_operand() -> None:
    for base in ("clr", "neg", "negx", "not"):
        for mnemonic, size in _sized(base):
            _add(mnemonic, (DN,), 6 if size == "l" else 4)
            for dst in MEMORY_ALTERABLE:
                _add(mnemonic, (dst,), (12 if size == "l" else 8) + ea_time(dst, size))
    for mnemonic, size in _sized("tst"):
        for src in (DN,) + MEMORY_READABLE:
            _add(mnemonic, (src,), 4 + ea_time(src, size))

    # Memory shifts and rotates are word-sized, one bit at a time
    for base in SHIFT_INSTRUCTIONS:
        for dst in MEMORY_ALTERABLE:
            _add(f"{base}.w", (dst,), 8 + ea_time(dst, "w"))

    _add("swap.w", (DN,), 4)
    _add("ext.w", (DN,), 4)
    _add("ext.l", (DN,), 4)
    for first in (DN, AN):
        for second in (DN, AN):
            _add("exg.l", (first, second), 6)


def _build_bit_operations() -> None:
    # Memory operands are byte-sized; data-register forms depend on the bit
    # number and stay out of the table
    _add("btst", (DN, DN), 6)
    _add("btst", (IMM, DN), 10)
    for dst in MEMORY_READABLE:
        _add("btst", (DN, dst), 4 + ea_time(dst, "b"))
    for dst in (IND, INC, DEC, DSP, IDX, ABW, ABL, PCD, PCX):
        _add("btst", (IMM, dst), 8 + ea_time(dst, "b"))
    for base in ("bchg", "bclr", "bset"):
        for dst in MEMORY_ALTERABLE:
            _add(base, (DN, dst), 8 + ea_time(dst, "b"))
            _add(base, (IMM, dst), 12 + ea_time(dst, "b"))


def _build_control() -> None:
    _add("nop", (), 4)
    _add("rts", (), 16)
    _add("rte", (), 20)
    _add("rtr", (), 20)
    _add("reset", (), 132)
    _add("trap", (IMM,), 34)
    _add("link.w", (AN, IMM), 16)
    _add("unlk", (AN,), 12)
    for base, cost in (("bra", 10), ("bsr", 18)):
        for size in ("b", "w"):
            _add(f"{base}.{size}", (ABL,), cost)
            _add(f"{base}.{size}", (ABW,), cost)


_build_move()
_build_address()
_build_arithmetic()
_build_single_operand()
_build_bit_operations()
_build_control()

NOP_SHAPE = InstructionShape("nop")
NOP_CYCLES = COST_TABLE[NOP_SHAPE]


# =============================================================================
# Operand Classification
# =============================================================================

_DATA_REG_RE = re.compile(r"^d[0-7]$", re.IGNORECASE)
_ADDR_REG_RE = re.compile(r"^(?:a[0-7]|sp)$", re.IGNORECASE)
_REGISTER_RE = re.compile(r"^(?:(d)([0-7])|(a)([0-7])|(sp))$", re.IGNORECASE)
_POSTINC_RE = re.compile(r"^\(\s*(?:a[0-7]|sp)\s*\)\+$", re.IGNORECASE)
_PREDEC_RE = re.compile(r"^-\(\s*(?:a[0-7]|sp)\s*\)$", re.IGNORECASE)

_SPECIAL_REGISTERS = {"sr": SR, "ccr": CCR, "usp": USP}


def split_operands(text: str) -> list[str]:
    """
    Split an operand field on top-level commas.

    Commas inside parentheses (index registers) and quotes are kept.

        >>> split_operands("4(a0,d1.w),d2")
        ['4(a0,d1.w)', 'd2']
    """
    operands: list[str] = []
    depth = 0
    quote: Optional[str] = None
    current: list[str] = []
    for char in text:
        if quote:
            current.append(char)
            if char == quote:
                quote = None
            continue
        if char in "\"'":
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth = max(depth - 1, 0)
        elif char == "," and depth == 0:
            operands.append("".join(current).strip())
            current = []
            continue
        current.append(char)
    tail = "".join(current).strip()
    if tail or operands:
        operands.append(tail)
    return operands


def register_number(token: str) -> Optional[int]:
    """
    Map a register name to 0-15 (d0-d7 = 0-7, a0-a7/sp = 8-15).

    Returns None for anything that is not a register name.
    """
    match = _REGISTER_RE.match(token.strip())
    if not match:
        return None
    if match.group(1):
        return int(match.group(2))
    if match.group(3):
        return 8 + int(match.group(4))
    return 15


def register_mask(text: str) -> Optional[int]:
    """
    Parse a register-list operand into a 16-bit register mask.

    Accepts tokens and inclusive ranges joined by '/', e.g. "d0-d7/a1-a3".
    Ranges are folded straight into the mask, so the list is never
    expanded into register names. Returns None if the text is not a
    register list.
    """
    mask = 0
    for part in text.split("/"):
        low_text, dash, high_text = part.partition("-")
        low = register_number(low_text)
        if low is None:
            return None
        high = register_number(high_text) if dash else low
        if high is None:
            return None
        if high < low:
            low, high = high, low
        mask |= (1 << (high + 1)) - (1 << low)
    return mask


def count_registers(text: str) -> Optional[int]:
    """Number of registers named by a register-list operand."""
    mask = register_mask(text)
    if mask is None:
        return None
    return bin(mask).count("1")


def _split_trailing_group(operand: str) -> Optional[tuple[str, str]]:
    """
    Split 'disp(inner)' into (disp, inner) using the final parenthesised group.

    Returns None when the operand does not end with a closing parenthesis.
    """
    if not operand.endswith(")"):
        return None
    depth = 0
    for index in range(len(operand) - 1, -1, -1):
        char = operand[index]
        if char == ")":
            depth += 1
        elif char == "(":
            depth -= 1
            if depth == 0:
                return operand[:index].strip(), operand[index + 1:-1].strip()
    return None


def _classify_memory(operand: str) -> Optional[AddressingMode]:
    """Classify base-register memory forms; None if the operand is absolute."""
    group = _split_trailing_group(operand)
    if group is None:
        return None
    disp, inner = group
    parts = [p.strip() for p in inner.split(",")]

    # 68020-style (d,an) / (d,an,xi) with the displacement inside
    if not disp and len(parts) >= 2 and not _is_base_register(parts[0]) and _is_base_register(parts[1]):
        parts = parts[1:]
        disp = "0"

    base = parts[0].lower()
    if base == "pc":
        return PCD if len(parts) == 1 else PCX
    if not _ADDR_REG_RE.match(base):
        return None
    if len(parts) == 1:
        return DSP if disp else IND
    return IDX


def _is_base_register(text: str) -> bool:
    return bool(_ADDR_REG_RE.match(text)) or text.lower() == "pc"


def classify_operand(operand: str) -> AddressingMode:
    """
    Classify one operand into its addressing-mode class.

    Anything that is not a register, register list, immediate or
    register-relative form is an absolute address; a trailing ".w" selects
    the short form.

        >>> classify_operand("SCREEN_WIDTH(a1)")
        <AddressingMode.DISPLACEMENT: 'd(an)'>
        >>> classify_operand("$ffff8260.w")
        <AddressingMode.ABSOLUTE_SHORT: 'xxx.w'>
    """
    text = operand.strip()
    lower = text.lower()

    if lower.startswith("#"):
        return IMM
    if _DATA_REG_RE.match(text):
        return DN
    if _ADDR_REG_RE.match(text):
        return AN
    if lower in _SPECIAL_REGISTERS:
        return _SPECIAL_REGISTERS[lower]
    if ("/" in text or "-" in text) and register_mask(text) is not None:
        return REGLIST
    if _POSTINC_RE.match(text):
        return INC
    if _PREDEC_RE.match(text):
        return DEC

    memory = _classify_memory(text)
    if memory is not None:
        return memory

    if lower.endswith(".w"):
        return ABW
    return ABL


# =============================================================================
# Shape Normalisation
# =============================================================================

def normalize_mnemonic(mnemonic: str) -> str:
    """
    Normalise a mnemonic to lowercase with its effective size suffix.

    - Unsized control instructions stay bare ("nop", "jmp")
    - Branches: ".s" becomes ".b", no suffix becomes ".w"
    - lea/pea/moveq/exg imply ".l", swap implies ".w"
    - Anything else without a suffix defaults to ".w"

        >>> normalize_mnemonic("LEA")
        'lea.l'
        >>> normalize_mnemonic("bne.s")
        'bne.b'
    """
    lower = mnemonic.strip().lower()
    base, dot, size = lower.partition(".")

    if base in UNSIZED_INSTRUCTIONS:
        return base
    if base in UNCONDITIONAL_BRANCHES or base in CONDITIONAL_BRANCHES:
        if size == "s":
            return f"{base}.b"
        return f"{base}.{size or 'w'}"
    if not dot:
        return f"{base}.{IMPLICIT_SIZE.get(base, 'w')}"
    return lower


def instruction_shape(mnemonic: str, operands: str) -> InstructionShape:
    """
    Build the shape of an instruction from its mnemonic and operand text.

    Inside MOVEM a lone register is a one-register list, so it classifies
    as a register list rather than a data/address register.

        >>> str(instruction_shape("movem.l", "d0-d7/a1-a3,-(sp)"))
        'movem.l reglist,-(an)'
    """
    normalized = normalize_mnemonic(mnemonic)
    modes = [classify_operand(op) for op in split_operands(operands)]
    if normalized.startswith("movem."):
        modes = [REGLIST if m in (DN, AN) else m for m in modes]
    return InstructionShape(normalized, tuple(modes))


# =============================================================================
# Lookup Functions
# =============================================================================

def get_static_cost(shape: InstructionShape) -> Optional[int]:
    """
    Look up the fixed cost of an instruction shape.

    Returns:
        Cycle count, or None if the shape has no static entry
    """
    return COST_TABLE.get(shape)


def is_data_dependent(shape: InstructionShape) -> bool:
    """True for instructions whose cost depends on run-time data."""
    return shape.base in DATA_DEPENDENT_INSTRUCTIONS


def is_known_mnemonic(mnemonic: str) -> bool:
    """Check if a mnemonic is a 68000 instruction, costed or not."""
    base = normalize_mnemonic(mnemonic).partition(".")[0]
    return base in M68000_MNEMONICS or base in KNOWN_MNEMONICS


KNOWN_MNEMONICS: frozenset[str] = frozenset(shape.base for shape in COST_TABLE)
