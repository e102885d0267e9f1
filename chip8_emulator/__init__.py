# CHIP-8 Virtual Emulator — Pure-software CHIP-8 interpreter core
#
# The core (cpu/, mem/, periph/, emu.py) owns all machine state and is
# driven synchronously by a presenter; tools/ holds the disassembler and
# cli.py a headless command-line runner.
from .emu import Chip8Emulator, StopReason, KeyWaitError
from .errors import Chip8Error
from .cpu.decoder import DecodeError, Instruction, decode
from .cpu.regs import StackError
from .mem.memory import LoadError, EmptyProgram, ProgramTooLarge, AddressError

__all__ = [
    'Chip8Emulator', 'StopReason', 'KeyWaitError',
    'Chip8Error', 'DecodeError', 'StackError',
    'LoadError', 'EmptyProgram', 'ProgramTooLarge', 'AddressError',
    'Instruction', 'decode',
]
