"""
CHIP-8 Virtual Emulator — 4K Memory Map

Memory map:
  $000–$04F  Font sprites (80 bytes, written once at reset)
  $050–$1FF  Free (historically the interpreter)
  $200–$FFF  Program space

Access rules:
  - Every address must lie in $000–$FFF. Anything else raises
    AddressError; nothing wraps silently.
  - Writes into the font area raise AddressError. The font table is
    installed by reset() only.
  - load_program() bypasses watchpoints but not the font guard.
"""

import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from ..config import FONT_BASE, FONT_SIZE, FONT_SPRITES, MEMORY_SIZE, PROGRAM_START
from ..errors import Chip8Error

log = logging.getLogger(__name__)


class LoadError(Chip8Error):
    """Program could not be placed in memory. Raised before execution."""
    pass


class EmptyProgram(LoadError):
    pass


class ProgramTooLarge(LoadError):
    pass


class AddressError(Chip8Error):
    """Memory access outside $000–$FFF, or a write into the font area."""
    pass


class Memory:
    """4 KB byte-addressable memory with a protected font area.

    Memory is flat (bytearray). Watchpoint callbacks fire on every write
    issued by the CPU (``write8``), which is how tests and tools observe
    Fx33 / Fx55 stores.
    """

    FONT_END = FONT_BASE + FONT_SIZE   # first byte past the font table

    def __init__(self):
        self._mem = bytearray(MEMORY_SIZE)

        # Watchpoints: addr → [callback(addr, old_val, new_val)]
        self._watchpoints: Dict[int, List[Callable]] = {}

        # Bounds of the most recent load (used by the disassembler)
        self.program_base: int = PROGRAM_START
        self.program_size: int = 0
        self._image: bytes = b''         # program as loaded, restored by reset()

        self.reset()

    def reset(self, keep_program: bool = False):
        """Zero memory and reinstall the font table.

        With keep_program=True the program image is copied back in as it
        was loaded, undoing any writes the program made to its own bytes.
        """
        program = self._image if keep_program else b''
        for addr in range(MEMORY_SIZE):
            self._mem[addr] = 0
        self._mem[FONT_BASE:self.FONT_END] = FONT_SPRITES
        if program:
            self._mem[self.program_base:self.program_base + len(program)] = program
        else:
            self._image = b''
            self.program_size = 0

    # --- Core read/write ---

    @staticmethod
    def _check(addr: int, count: int = 1):
        if addr < 0 or addr + count > MEMORY_SIZE:
            raise AddressError(
                f"access to ${addr:04X} (+{count}) outside ${MEMORY_SIZE:04X} bytes")

    def read8(self, addr: int) -> int:
        """Read 8-bit value from address."""
        self._check(addr)
        return self._mem[addr]

    def write8(self, addr: int, value: int):
        """Write 8-bit value to address. Font area and out-of-range raise."""
        self._check(addr)
        if addr < self.FONT_END:
            raise AddressError(f"write to font area at ${addr:04X}")
        value &= 0xFF
        old = self._mem[addr]
        self._mem[addr] = value

        if addr in self._watchpoints:
            for cb in self._watchpoints[addr]:
                cb(addr, old, value)

    def write_block(self, addr: int, data: bytes):
        """Write several bytes; the whole range is checked before any write."""
        self._check(addr, len(data))
        if addr < self.FONT_END:
            raise AddressError(f"write to font area at ${addr:04X}")
        for offset, value in enumerate(data):
            self.write8(addr + offset, value)

    def read16(self, addr: int) -> int:
        """Read 16-bit value (big-endian, CHIP-8 instruction order)."""
        self._check(addr, 2)
        return (self._mem[addr] << 8) | self._mem[addr + 1]

    def read_block(self, addr: int, count: int) -> bytes:
        """Read ``count`` bytes starting at ``addr``."""
        self._check(addr, count)
        return bytes(self._mem[addr:addr + count])

    # --- Bulk load ---

    def load_program(self, data: Union[bytes, bytearray, str, Path],
                     base_addr: int = PROGRAM_START) -> int:
        """Copy a raw program image into memory at base_addr.

        ``data`` may be bytes or a path to a raw ROM file. Returns the
        number of bytes loaded.

        Raises EmptyProgram, ProgramTooLarge (also for a base_addr at or
        past the end of memory), or AddressError when base_addr is inside
        the font area.
        """
        if isinstance(data, (str, Path)):
            data = Path(data).read_bytes()
        else:
            data = bytes(data)

        if not data:
            raise EmptyProgram("program is empty")
        if base_addr < self.FONT_END:
            raise AddressError(f"load address ${base_addr:04X} is inside the font area")
        if base_addr + len(data) > MEMORY_SIZE:
            raise ProgramTooLarge(
                f"{len(data)} bytes at ${base_addr:04X} exceed "
                f"{max(MEMORY_SIZE - base_addr, 0)} bytes of free memory")

        self._mem[base_addr:base_addr + len(data)] = data
        self.program_base = base_addr
        self.program_size = len(data)
        self._image = data
        log.info("Loaded %d bytes at $%04X", len(data), base_addr)
        return len(data)

    def program_bytes(self) -> bytes:
        """The bytes of the last loaded program as they are now in memory."""
        return bytes(self._mem[self.program_base:self.program_base + self.program_size])

    # --- Watchpoints ---

    def add_watchpoint(self, addr: int, callback: Callable):
        """Call callback(addr, old, new) whenever the CPU writes addr."""
        self._check(addr)
        self._watchpoints.setdefault(addr, []).append(callback)

    def remove_watchpoint(self, addr: int, callback: Optional[Callable] = None):
        """Remove one callback, or every callback on addr."""
        if callback is None:
            self._watchpoints.pop(addr, None)
            return
        callbacks = self._watchpoints.get(addr, [])
        if callback in callbacks:
            callbacks.remove(callback)
        if not callbacks:
            self._watchpoints.pop(addr, None)

    # --- Snapshots ---

    def snapshot(self, start: int, end: int) -> bytes:
        """Copy of memory from start to end (inclusive)."""
        self._check(start, end - start + 1)
        return bytes(self._mem[start:end + 1])

    @staticmethod
    def diff_snapshots(before: bytes, after: bytes, base: int) -> Dict[int, tuple]:
        """addr → (old, new) for every byte that differs."""
        return {
            base + i: (old, new)
            for i, (old, new) in enumerate(zip(before, after))
            if old != new
        }

    def hexdump(self, start: int, length: int, width: int = 16) -> str:
        """Classic hex dump, one line per ``width`` bytes."""
        data = self.read_block(start, length)
        lines = []
        for off in range(0, len(data), width):
            chunk = data[off:off + width]
            hex_s = " ".join(f"{b:02X}" for b in chunk)
            lines.append(f"${start + off:04X}: {hex_s}")
        return "\n".join(lines)

    def __len__(self) -> int:
        return MEMORY_SIZE
