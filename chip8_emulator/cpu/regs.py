"""
CHIP-8 Virtual Emulator — CPU Register Set + Call Stack

Register model:
  V0–VF  — sixteen 8-bit general purpose registers
           VF is also the carry / borrow / collision flag written by
           8xy4–8xyE, Fx1E and Dxyn. Programs may still use it as a
           plain register; the flag write always lands last.
  I      — 16-bit index register (memory pointer)
  PC     — 16-bit program counter, $200 at reset
  stack  — 16 return addresses, SP = number of entries in use

Register access is index based (``v(x)`` / ``set_v(x, value)``) so one
instruction can name the same register as source, destination and flag
without aliasing surprises.
"""

from typing import List

from ..config import NUM_REGISTERS, FLAG_REGISTER, STACK_DEPTH, PROGRAM_START
from ..errors import Chip8Error


class StackError(Chip8Error):
    """Raised on call-stack overflow (17th CALL) or underflow (RET on empty)."""
    pass


class Registers:
    """CHIP-8 CPU register set."""

    __slots__ = ('_v', 'I', 'PC', '_stack', 'SP', 'cycles')

    def __init__(self, pc: int = PROGRAM_START):
        self._v = bytearray(NUM_REGISTERS)
        self.I: int = 0               # Index register (16-bit)
        self.PC: int = pc             # Program counter (16-bit)
        self._stack: List[int] = [0] * STACK_DEPTH
        self.SP: int = 0              # Stack entries in use
        self.cycles: int = 0          # Instructions executed

    # --- V registers ---

    def v(self, index: int) -> int:
        """Read Vx."""
        if not 0 <= index < NUM_REGISTERS:
            raise IndexError(f"register V{index:X} does not exist")
        return self._v[index]

    def set_v(self, index: int, value: int):
        """Write Vx (value is truncated to 8 bits)."""
        if not 0 <= index < NUM_REGISTERS:
            raise IndexError(f"register V{index:X} does not exist")
        self._v[index] = value & 0xFF

    @property
    def vf(self) -> int:
        return self._v[FLAG_REGISTER]

    @vf.setter
    def vf(self, value: int):
        self._v[FLAG_REGISTER] = value & 0xFF

    @property
    def V(self) -> bytes:
        """Snapshot of V0–VF (read-only copy)."""
        return bytes(self._v)

    # --- Stack operations ---

    def push(self, address: int):
        """Push a return address. Raises StackError when 16 deep."""
        if self.SP >= STACK_DEPTH:
            raise StackError(
                f"call stack overflow at PC=${self.PC:04X} "
                f"({STACK_DEPTH} nested calls)")
        self._stack[self.SP] = address & 0xFFFF
        self.SP += 1

    def pop(self) -> int:
        """Pop a return address. Raises StackError on an empty stack."""
        if self.SP == 0:
            raise StackError(f"return with empty call stack at PC=${self.PC:04X}")
        self.SP -= 1
        return self._stack[self.SP]

    @property
    def stack(self) -> List[int]:
        """Live return addresses, oldest first."""
        return self._stack[:self.SP]

    # --- Display ---

    def display(self) -> str:
        """Format register state for debugging."""
        regs = " ".join(f"V{i:X}={val:02X}" for i, val in enumerate(self._v))
        return f"PC={self.PC:04X} I={self.I:04X} SP={self.SP:X} {regs}"

    def reset(self, pc: int = PROGRAM_START):
        """Reset CPU to power-on state."""
        for i in range(NUM_REGISTERS):
            self._v[i] = 0
        self.I = 0
        self.PC = pc
        self._stack = [0] * STACK_DEPTH
        self.SP = 0
        self.cycles = 0
