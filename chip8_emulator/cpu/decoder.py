"""
CHIP-8 Virtual Emulator — Opcode Decoder / Opcode Table

Every CHIP-8 instruction is one big-endian 16-bit word. ``decode()`` splits
it into the fixed bit-fields; ``identify()`` matches it against the
baseline opcode table below.

Bit-fields:
  group  bits 12–15   top nibble, selects the instruction family
  x      bits 8–11    first register index
  y      bits 4–7     second register index
  kk     bits 0–7     immediate byte
  n      bits 0–3     immediate nibble
  nnn    bits 0–11    12-bit address

Table rows are (mask, match): an opcode belongs to a row when
``opcode & mask == match``. Rows whose low part is fixed (00E0, 8xy4,
Fx33, ...) only match exactly; there is no partial matching.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ..errors import Chip8Error


# ──────────────────────────────────────────────
# Operand layouts (used by the disassembler)
# ──────────────────────────────────────────────

NONE     = ''
ADDR     = '${nnn:03X}'
VX       = 'V{x:X}'
VX_BYTE  = 'V{x:X}, #${kk:02X}'
VX_VY    = 'V{x:X}, V{y:X}'
VX_VY_N  = 'V{x:X}, V{y:X}, #{n:X}'
I_ADDR   = 'I, ${nnn:03X}'
V0_ADDR  = 'V0, ${nnn:03X}'
VX_DT    = 'V{x:X}, DT'
VX_K     = 'V{x:X}, K'
DT_VX    = 'DT, V{x:X}'
ST_VX    = 'ST, V{x:X}'
I_VX     = 'I, V{x:X}'
F_VX     = 'F, V{x:X}'
B_VX     = 'B, V{x:X}'
MEM_VX   = '[I], V{x:X}'
VX_MEM   = 'V{x:X}, [I]'


@dataclass(frozen=True)
class Instruction:
    """A decoded 16-bit instruction word with every bit-field extracted."""
    opcode: int
    group: int
    x: int
    y: int
    kk: int
    n: int
    nnn: int

    @property
    def hi(self) -> int:
        return self.opcode >> 8

    @property
    def lo(self) -> int:
        return self.opcode & 0xFF

    def __str__(self) -> str:
        return f"{self.opcode:04X}"


@dataclass(frozen=True)
class OpcodeSpec:
    """One row of the opcode table."""
    key: str          # Executor dispatch key
    mask: int
    match: int
    mnemonic: str
    operands: str     # format string over Instruction fields
    description: str

    def format_operands(self, inst: Instruction) -> str:
        return self.operands.format(x=inst.x, y=inst.y, kk=inst.kk,
                                    n=inst.n, nnn=inst.nnn)


class DecodeError(Chip8Error):
    """Raised when an instruction word matches no row of the opcode table."""

    def __init__(self, opcode: int, address: Optional[int] = None):
        self.opcode = opcode
        self.address = address
        where = f" at ${address:04X}" if address is not None else ""
        super().__init__(f"Unknown opcode ${opcode:04X}{where}")


# ──────────────────────────────────────────────
# Baseline opcode table
# ──────────────────────────────────────────────
# Format: key -> (mask, match, mnemonic, operands, description)

_TABLE: Tuple[Tuple[str, int, int, str, str, str], ...] = (
    # ── Flow control ──
    ('CLS',       0xFFFF, 0x00E0, 'CLS',  NONE,     'Clear display'),
    ('RET',       0xFFFF, 0x00EE, 'RET',  NONE,     'Return from subroutine'),
    ('JP',        0xF000, 0x1000, 'JP',   ADDR,     'Jump to nnn'),
    ('CALL',      0xF000, 0x2000, 'CALL', ADDR,     'Call subroutine at nnn'),

    # ── Conditional skips ──
    ('SE_BYTE',   0xF000, 0x3000, 'SE',   VX_BYTE,  'Skip if Vx == kk'),
    ('SNE_BYTE',  0xF000, 0x4000, 'SNE',  VX_BYTE,  'Skip if Vx != kk'),
    ('SE_REG',    0xF00F, 0x5000, 'SE',   VX_VY,    'Skip if Vx == Vy'),

    # ── Immediate loads ──
    ('LD_BYTE',   0xF000, 0x6000, 'LD',   VX_BYTE,  'Vx = kk'),
    ('ADD_BYTE',  0xF000, 0x7000, 'ADD',  VX_BYTE,  'Vx += kk (no flag)'),

    # ── Register ALU ──
    ('LD_REG',    0xF00F, 0x8000, 'LD',   VX_VY,    'Vx = Vy'),
    ('OR',        0xF00F, 0x8001, 'OR',   VX_VY,    'Vx |= Vy'),
    ('AND',       0xF00F, 0x8002, 'AND',  VX_VY,    'Vx &= Vy'),
    ('XOR',       0xF00F, 0x8003, 'XOR',  VX_VY,    'Vx ^= Vy'),
    ('ADD_REG',   0xF00F, 0x8004, 'ADD',  VX_VY,    'Vx += Vy, VF = carry'),
    ('SUB',       0xF00F, 0x8005, 'SUB',  VX_VY,    'Vx -= Vy, VF = Vx > Vy'),
    ('SHR',       0xF00F, 0x8006, 'SHR',  VX_VY,    'Vx >>= 1, VF = bit 0'),
    ('SUBN',      0xF00F, 0x8007, 'SUBN', VX_VY,    'Vx = Vy - Vx, VF = Vy > Vx'),
    ('SHL',       0xF00F, 0x800E, 'SHL',  VX_VY,    'Vx <<= 1, VF = bit 7'),
    ('SNE_REG',   0xF00F, 0x9000, 'SNE',  VX_VY,    'Skip if Vx != Vy'),

    # ── Index / jump / random / draw ──
    ('LD_I',      0xF000, 0xA000, 'LD',   I_ADDR,   'I = nnn'),
    ('JP_V0',     0xF000, 0xB000, 'JP',   V0_ADDR,  'Jump to V0 + nnn'),
    ('RND',       0xF000, 0xC000, 'RND',  VX_BYTE,  'Vx = random & kk'),
    ('DRW',       0xF000, 0xD000, 'DRW',  VX_VY_N,  'Draw 8xn sprite at (Vx, Vy)'),

    # ── Keypad ──
    ('SKP',       0xF0FF, 0xE09E, 'SKP',  VX,       'Skip if key Vx pressed'),
    ('SKNP',      0xF0FF, 0xE0A1, 'SKNP', VX,       'Skip if key Vx not pressed'),

    # ── Timers / memory ──
    ('LD_VX_DT',  0xF0FF, 0xF007, 'LD',   VX_DT,    'Vx = delay timer'),
    ('LD_VX_K',   0xF0FF, 0xF00A, 'LD',   VX_K,     'Wait for key, store in Vx'),
    ('LD_DT_VX',  0xF0FF, 0xF015, 'LD',   DT_VX,    'Delay timer = Vx'),
    ('LD_ST_VX',  0xF0FF, 0xF018, 'LD',   ST_VX,    'Sound timer = Vx'),
    ('ADD_I',     0xF0FF, 0xF01E, 'ADD',  I_VX,     'I += Vx'),
    ('LD_F',      0xF0FF, 0xF029, 'LD',   F_VX,     'I = font glyph for Vx'),
    ('LD_B',      0xF0FF, 0xF033, 'LD',   B_VX,     'Store BCD of Vx at I'),
    ('LD_MEM_VX', 0xF0FF, 0xF055, 'LD',   MEM_VX,   'Store V0..Vx at I'),
    ('LD_VX_MEM', 0xF0FF, 0xF065, 'LD',   VX_MEM,   'Load V0..Vx from I'),
)

OPCODES: Dict[str, OpcodeSpec] = {
    key: OpcodeSpec(key, mask, match, mnem, operands, desc)
    for key, mask, match, mnem, operands, desc in _TABLE
}

# Lookup by group nibble keeps identify() to a handful of mask tests
_BY_GROUP: Dict[int, Tuple[OpcodeSpec, ...]] = {
    group: tuple(spec for spec in OPCODES.values() if spec.match >> 12 == group)
    for group in range(16)
}


def decode(hi: int, lo: int) -> Instruction:
    """Split the two instruction bytes into their bit-fields. Pure."""
    return decode_word(((hi & 0xFF) << 8) | (lo & 0xFF))


def decode_word(opcode: int) -> Instruction:
    """Same as decode() for a 16-bit instruction word."""
    opcode &= 0xFFFF
    return Instruction(
        opcode=opcode,
        group=(opcode >> 12) & 0xF,
        x=(opcode >> 8) & 0xF,
        y=(opcode >> 4) & 0xF,
        kk=opcode & 0xFF,
        n=opcode & 0xF,
        nnn=opcode & 0xFFF,
    )


def lookup(inst: Instruction) -> Optional[OpcodeSpec]:
    """Return the opcode table row for ``inst``, or None."""
    for spec in _BY_GROUP[inst.group]:
        if inst.opcode & spec.mask == spec.match:
            return spec
    return None


def identify(inst: Instruction, address: Optional[int] = None) -> OpcodeSpec:
    """Return the opcode table row for ``inst``; DecodeError if there is none."""
    spec = lookup(inst)
    if spec is None:
        raise DecodeError(inst.opcode, address)
    return spec


def fetch_decode(memory, pc: int) -> Tuple[Instruction, OpcodeSpec]:
    """Fetch the word at ``pc`` and decode it.

    Returns: (instruction, opcode_spec)
    """
    inst = decode_word(memory.read16(pc))
    return inst, identify(inst, pc)
