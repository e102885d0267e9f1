"""
CHIP-8 Virtual Emulator — Machine Configuration

Fixed machine constants for the CHIP-8 baseline (COSMAC VIP layout):

  $000–$04F  Font sprites (16 glyphs × 5 bytes, read-only after reset)
  $050–$1FF  Free / interpreter area
  $200–$FFF  Program space (default load address $200)

The display is 64×32 monochrome, the timers run at 60 Hz, the call stack
holds 16 return addresses.
"""

# =============================================================================
#  MEMORY MAP
# =============================================================================
MEMORY_SIZE = 0x1000      # 4 KB flat address space
FONT_BASE = 0x000
FONT_GLYPH_BYTES = 5
FONT_SIZE = 16 * FONT_GLYPH_BYTES   # 80 bytes
PROGRAM_START = 0x200


# =============================================================================
#  CPU
# =============================================================================
NUM_REGISTERS = 16
FLAG_REGISTER = 0xF       # VF doubles as carry / borrow / collision flag
STACK_DEPTH = 16


# =============================================================================
#  PERIPHERALS
# =============================================================================
DISPLAY_WIDTH = 64
DISPLAY_HEIGHT = 32
NUM_KEYS = 16

TIMER_HZ = 60
DEFAULT_CYCLES_PER_FRAME = 10   # ~600 instructions/s, typical for VIP ROMs


# =============================================================================
#  FONT SPRITES — 0..F, 4 pixels wide, 5 rows, high nibble only
# =============================================================================
FONT_SPRITES = bytes([
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
])


# =============================================================================
#  KEYBOARD MAP — QWERTY left block → hex keypad
#
#    1 2 3 4        1 2 3 C
#    Q W E R   →    4 5 6 D
#    A S D F        7 8 9 E
#    Z X C V        A 0 B F
# =============================================================================
KEYMAP = {
    '1': 0x1, '2': 0x2, '3': 0x3, '4': 0xC,
    'q': 0x4, 'w': 0x5, 'e': 0x6, 'r': 0xD,
    'a': 0x7, 's': 0x8, 'd': 0x9, 'f': 0xE,
    'z': 0xA, 'x': 0x0, 'c': 0xB, 'v': 0xF,
}
