"""Exception root for the emulator.

Concrete errors live next to the code that raises them:
  mem.memory   — LoadError (EmptyProgram, ProgramTooLarge), AddressError
  cpu.decoder  — DecodeError
  cpu.regs     — StackError
  emu          — KeyWaitError
"""


class Chip8Error(Exception):
    """Base class for every error raised by the emulator core."""
    pass
