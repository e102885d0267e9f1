"""
CHIP-8 Virtual Emulator — 64×32 Monochrome Framebuffer

One byte per pixel (0 or 1), row-major: pixel (x, y) lives at
``y * 64 + x``.

Sprites are 8 pixels wide and 1–15 rows tall, one byte per row, MSB
leftmost. They are XORed onto the screen; every pixel position wraps
independently, so a sprite straddling the right or bottom edge
continues on the opposite side.

The redraw flag is raised by clear() and draw_sprite() and lowered only
by the presenter (clear_redraw / consume).
"""

from typing import List

from ..config import DISPLAY_HEIGHT, DISPLAY_WIDTH


class Display:
    """Framebuffer + redraw flag."""

    WIDTH = DISPLAY_WIDTH
    HEIGHT = DISPLAY_HEIGHT

    def __init__(self):
        self._pixels = bytearray(self.WIDTH * self.HEIGHT)
        self.redraw = False

    def clear(self):
        """00E0: blank the screen."""
        for i in range(len(self._pixels)):
            self._pixels[i] = 0
        self.redraw = True

    def draw_sprite(self, x: int, y: int, rows: bytes) -> bool:
        """XOR sprite rows at (x, y). Returns True if any pixel went 1→0."""
        collision = False
        for dy, row in enumerate(rows):
            py = (y + dy) % self.HEIGHT
            for dx in range(8):
                if not row & (0x80 >> dx):
                    continue
                px = (x + dx) % self.WIDTH
                idx = py * self.WIDTH + px
                if self._pixels[idx]:
                    collision = True
                self._pixels[idx] ^= 1
        self.redraw = True
        return collision

    def pixel(self, x: int, y: int) -> int:
        return self._pixels[(y % self.HEIGHT) * self.WIDTH + (x % self.WIDTH)]

    def rows(self) -> List[List[int]]:
        """Copy of the framebuffer as HEIGHT rows of WIDTH ints."""
        w = self.WIDTH
        return [list(self._pixels[r * w:(r + 1) * w]) for r in range(self.HEIGHT)]

    def clear_redraw(self):
        self.redraw = False

    def consume(self) -> List[List[int]]:
        """Return the frame and lower the redraw flag."""
        frame = self.rows()
        self.redraw = False
        return frame

    def lit_count(self) -> int:
        return sum(self._pixels)

    def render_text(self, on: str = '█', off: str = ' ') -> str:
        """Frame as text, one line per row."""
        return "\n".join(
            "".join(on if p else off for p in row) for row in self.rows()
        )

    def reset(self):
        for i in range(len(self._pixels)):
            self._pixels[i] = 0
        self.redraw = False
