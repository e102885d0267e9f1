"""
CHIP-8 Virtual Emulator — ALU Operations

Pure 8-bit arithmetic for the 8xyN family, 7xkk, Fx1E and Fx33.

Each flag-producing function returns a tuple ``(result, vf)`` where
``result`` is already truncated to 8 bits (16 for the index register)
and ``vf`` is 0 or 1. The executor writes ``result`` first and ``vf``
second so that an instruction targeting VF itself ends with the flag.

Flag rules (COSMAC VIP / Cowgod reference):
  ADD   VF = 1 if Vx + Vy > 0xFF
  SUB   VF = 1 if Vx > Vy          (NOT borrow)
  SUBN  VF = 1 if Vy > Vx
  SHR   VF = bit 0 shifted out
  SHL   VF = bit 7 shifted out
"""

from typing import Tuple


def wrap8(value: int) -> int:
    """Truncate to an unsigned byte."""
    return value & 0xFF


def add8(a: int, b: int) -> Tuple[int, int]:
    """Vx + Vy with carry out of bit 7."""
    result = a + b
    return (result & 0xFF, int(result > 0xFF))


def sub8(a: int, b: int) -> Tuple[int, int]:
    """Vx - Vy; VF set when no borrow occurred (a > b)."""
    return ((a - b) & 0xFF, int(a > b))


def subn8(a: int, b: int) -> Tuple[int, int]:
    """Vy - Vx (reverse subtract); VF set when b > a."""
    return ((b - a) & 0xFF, int(b > a))


def shr8(val: int) -> Tuple[int, int]:
    """Logical shift right; VF = bit 0 before the shift."""
    return ((val >> 1) & 0xFF, val & 0x01)


def shl8(val: int) -> Tuple[int, int]:
    """Shift left; VF = bit 7 before the shift."""
    return ((val << 1) & 0xFF, (val >> 7) & 0x01)


def add_index(i: int, val: int) -> Tuple[int, int]:
    """I + Vx; VF = 1 if the sum passes 0xFF.

    The index register itself wraps at 16 bits.
    """
    total = i + val
    return (total & 0xFFFF, int(total > 0xFF))


def bcd(val: int) -> Tuple[int, int, int]:
    """Decimal digits of an 8-bit value: (hundreds, tens, ones)."""
    val &= 0xFF
    return (val // 100, (val // 10) % 10, val % 10)
