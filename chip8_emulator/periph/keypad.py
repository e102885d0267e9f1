"""
CHIP-8 Virtual Emulator — Hex Keypad

Sixteen key flags, 0–F, written only by the presenter and read by the
Ex9E / ExA1 skips. ``translate()`` maps a host key character through
the QWERTY layout in config.KEYMAP.
"""

from typing import List, Optional

from ..config import KEYMAP, NUM_KEYS


class Keypad:
    """16-key hexadecimal keypad state."""

    def __init__(self):
        self._pressed = [False] * NUM_KEYS

    @staticmethod
    def _check(index: int):
        if not 0 <= index < NUM_KEYS:
            raise ValueError(f"key index must be 0..{NUM_KEYS - 1}, got {index}")

    def set_key(self, index: int, pressed: bool):
        self._check(index)
        self._pressed[index] = bool(pressed)

    def is_pressed(self, index: int) -> bool:
        self._check(index)
        return self._pressed[index]

    def pressed_keys(self) -> List[int]:
        return [i for i, down in enumerate(self._pressed) if down]

    def release_all(self):
        self._pressed = [False] * NUM_KEYS

    @staticmethod
    def translate(char: str) -> Optional[int]:
        """Host key → keypad symbol, or None for unmapped keys."""
        return KEYMAP.get(char.lower())
