"""
CHIP-8 Virtual Emulator — Delay / Sound Timers

Two independent 8-bit down-counters. Programs load them with Fx15 / Fx18
and read the delay timer back with Fx07. They are decremented by the
presenter at 60 Hz, independently of how many instructions run per
frame; the core only counts frames it is told about.

The sound timer has no readback: a buzzer sounds while it is non-zero.
"""


class TimerPeripheral:
    """Delay + sound timer pair."""

    def __init__(self):
        self._delay = 0
        self._sound = 0

    @property
    def delay(self) -> int:
        return self._delay

    @delay.setter
    def delay(self, value: int):
        self._delay = value & 0xFF

    @property
    def sound(self) -> int:
        return self._sound

    @sound.setter
    def sound(self, value: int):
        self._sound = value & 0xFF

    @property
    def sound_active(self) -> bool:
        return self._sound > 0

    @staticmethod
    def _check_count(frames: int):
        if frames < 0:
            raise ValueError(f"timer tick count must be non-negative, got {frames}")

    def tick_delay(self, frames: int = 1) -> int:
        """Decrement the delay timer, clamped at zero. Returns the decrement."""
        self._check_count(frames)
        step = min(frames, self._delay)
        self._delay -= step
        return step

    def tick_sound(self, frames: int = 1) -> int:
        """Decrement the sound timer, clamped at zero.

        Returns the number of those frames during which the buzzer was on.
        """
        self._check_count(frames)
        step = min(frames, self._sound)
        self._sound -= step
        return step

    def tick(self, frames: int = 1) -> int:
        """Advance both timers by ``frames``. Returns frames of sound."""
        self.tick_delay(frames)
        return self.tick_sound(frames)

    def reset(self):
        self._delay = 0
        self._sound = 0
