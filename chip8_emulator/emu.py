"""
CHIP-8 Virtual Emulator — Main Emulator Class

This is the top-level class that integrates:
  - CPU registers + call stack (cpu/regs.py)
  - 4K memory map (mem/memory.py)
  - Opcode decoder (cpu/decoder.py)
  - ALU operations (cpu/alu.py)
  - Peripherals: timers, framebuffer, keypad

Execution model (one step):
  1. If the awaiting-key latch is set, do nothing
  2. Fetch the 16-bit word at PC
  3. Decode bit-fields, identify the opcode table row
  4. Execute the handler → registers, memory, stack, peripherals, PC
  5. Report whether a frame is waiting to be drawn

The presenter (window, terminal, test) owns real time: it calls step()
as often as it likes, ticks the timers at 60 Hz, feeds key state and
pulls frames. Nothing here sleeps.

Termination reasons for run():
  - TIMEOUT:    max_steps executed
  - BREAK:      breakpoint address reached
  - AWAIT_KEY:  Fx0A is waiting for a key press
  - ILLEGAL:    undefined opcode (DecodeError)
  - ERROR:      stack or memory fault
"""

import logging
import random
from collections import deque
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Deque, Dict, List, Optional, Set, Union

from .config import FONT_BASE, FONT_GLYPH_BYTES, PROGRAM_START, NUM_KEYS
from .cpu import alu
from .cpu.decoder import DecodeError, Instruction, fetch_decode
from .cpu.regs import Registers, StackError
from .errors import Chip8Error
from .mem.memory import AddressError, Memory
from .periph.display import Display
from .periph.keypad import Keypad
from .periph.timer import TimerPeripheral

log = logging.getLogger(__name__)


class StopReason(Enum):
    TIMEOUT = 'TIMEOUT'
    BREAK = 'BREAK'
    AWAIT_KEY = 'AWAIT_KEY'
    ILLEGAL = 'ILLEGAL'
    ERROR = 'ERROR'


class KeyWaitError(Chip8Error):
    """resolve_key() called while no Fx0A wait is pending."""
    pass


# ── Awaiting-key latch ──

@dataclass(frozen=True)
class Running:
    pass


@dataclass(frozen=True)
class AwaitingKey:
    register: int


RUNNING = Running()


class Chip8Emulator:
    """CHIP-8 virtual machine.

    Usage:
        emu = Chip8Emulator(seed=1)
        emu.load(Path('pong.ch8').read_bytes())
        while True:
            if emu.step():
                frame = emu.consume_frame()
            ...
    """

    DEFAULT_MAX_STEPS = 1_000_000
    TRACE_LIMIT = 10_000          # newest trace lines kept in trace_output

    def __init__(self, seed: Optional[int] = None,
                 rng: Optional[random.Random] = None,
                 load_address: int = PROGRAM_START):
        self.load_address = load_address

        # Core components
        self.regs = Registers(pc=load_address)
        self.mem = Memory()

        # Peripherals
        self.timers = TimerPeripheral()
        self.display = Display()
        self.keypad = Keypad()

        # Cxkk source; seed it for reproducible runs
        self.rng = rng if rng is not None else random.Random(seed)

        self.state: Union[Running, AwaitingKey] = RUNNING

        # Breakpoints: set of PC addresses that stop run()
        self._breakpoints: Set[int] = set()

        # Trace output
        self.trace = False
        self.trace_output: Deque[str] = deque(maxlen=self.TRACE_LIMIT)

        # Exception that ended the last run(), if any
        self.last_error: Optional[Chip8Error] = None

        self._dispatch: Dict[str, Callable[[Instruction], None]] = self._build_dispatch()

    # ══════════════════════════════════════════════
    # Loading / reset
    # ══════════════════════════════════════════════

    def load(self, data, base_addr: Optional[int] = None) -> int:
        """Load a raw program (bytes or file path) and point PC at it.

        Raises EmptyProgram / ProgramTooLarge (LoadError).
        """
        base = self.load_address if base_addr is None else base_addr
        size = self.mem.load_program(data, base)
        self.regs.PC = base
        return size

    def load_file(self, path: Union[str, Path], base_addr: Optional[int] = None) -> int:
        return self.load(Path(path), base_addr)

    def reset(self):
        """Power-on state; the loaded program stays in memory."""
        self.regs.reset(self.mem.program_base if self.mem.program_size else self.load_address)
        self.mem.reset(keep_program=True)
        self.timers.reset()
        self.display.reset()
        self.keypad.release_all()
        self.state = RUNNING
        self.last_error = None
        self.trace_output.clear()

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self) -> bool:
        """Execute one instruction unless waiting for a key.

        Returns the pending redraw flag. DecodeError, StackError and
        AddressError propagate to the caller with PC left on the
        faulting instruction.
        """
        if isinstance(self.state, AwaitingKey):
            return self.display.redraw

        pc = self.regs.PC
        inst, spec = fetch_decode(self.mem, pc)

        if self.trace:
            line = (f"${pc:04X}: {inst.opcode:04X}  "
                    f"{spec.mnemonic:4s} {spec.format_operands(inst):16s} "
                    f"{self.regs.display()}")
            self.trace_output.append(line)
            log.debug(line)

        self._dispatch[spec.key](inst)
        self.regs.cycles += 1
        return self.display.redraw

    def run(self, max_steps: Optional[int] = None,
            cycles_per_frame: Optional[int] = None) -> StopReason:
        """Step until a termination condition.

        Args:
            max_steps: Instructions to execute before TIMEOUT
            cycles_per_frame: When set, tick the timers one frame every
                this many executed instructions

        A breakpoint at the starting PC is ignored so a run can resume
        from the address it stopped on.
        """
        if max_steps is None:
            max_steps = self.DEFAULT_MAX_STEPS
        self.last_error = None
        executed = 0

        while executed < max_steps:
            if isinstance(self.state, AwaitingKey):
                log.info("Waiting for key (V%X) at $%04X", self.state.register, self.regs.PC)
                return StopReason.AWAIT_KEY
            if executed and self.regs.PC in self._breakpoints:
                log.info("Breakpoint at $%04X", self.regs.PC)
                return StopReason.BREAK

            try:
                self.step()
            except DecodeError as e:
                self.last_error = e
                log.warning("Stopped: %s", e)
                return StopReason.ILLEGAL
            except (StackError, AddressError) as e:
                self.last_error = e
                log.warning("Stopped: %s", e)
                return StopReason.ERROR

            executed += 1
            if cycles_per_frame and executed % cycles_per_frame == 0:
                self.tick_timers(1)

        return StopReason.TIMEOUT

    def add_breakpoint(self, addr: int):
        self._breakpoints.add(addr)

    def remove_breakpoint(self, addr: int):
        self._breakpoints.discard(addr)

    def get_trace(self) -> str:
        return "\n".join(self.trace_output)

    def clear_trace(self):
        self.trace_output.clear()

    # ══════════════════════════════════════════════
    # Presenter interface
    # ══════════════════════════════════════════════

    def set_key(self, index: int, pressed: bool):
        self.keypad.set_key(index, pressed)

    def press_key(self, index: int):
        """Key down: mark pressed and satisfy a pending Fx0A."""
        self.keypad.set_key(index, True)
        if isinstance(self.state, AwaitingKey):
            self.resolve_key(index)

    def release_key(self, index: int):
        self.keypad.set_key(index, False)

    def is_awaiting_key(self) -> bool:
        return isinstance(self.state, AwaitingKey)

    def resolve_key(self, value: int):
        """Finish an Fx0A wait: Vr = value, back to running."""
        if not isinstance(self.state, AwaitingKey):
            raise KeyWaitError("resolve_key() called while not waiting for a key")
        if not 0 <= value < NUM_KEYS:
            raise ValueError(f"key value must be 0..{NUM_KEYS - 1}, got {value}")
        self.regs.set_v(self.state.register, value)
        self.state = RUNNING

    def tick_timers(self, elapsed_frames: int = 1) -> int:
        """Decrement both timers. Returns frames the buzzer was on."""
        return self.timers.tick(elapsed_frames)

    def tick_delay(self, frames: int = 1) -> int:
        return self.timers.tick_delay(frames)

    def tick_sound(self, frames: int = 1) -> int:
        return self.timers.tick_sound(frames)

    @property
    def sound_active(self) -> bool:
        return self.timers.sound_active

    def read_framebuffer(self) -> List[List[int]]:
        """32 rows × 64 pixels (copy)."""
        return self.display.rows()

    def consume_frame(self) -> List[List[int]]:
        """Framebuffer copy; lowers the redraw flag."""
        return self.display.consume()

    def clear_redraw(self):
        self.display.clear_redraw()

    @property
    def redraw(self) -> bool:
        return self.display.redraw

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════
    # Handler signature: handler(inst). Every handler sets PC itself;
    # operands are read before any register is written.

    def _build_dispatch(self) -> dict:
        """Build opcode key → handler dispatch table."""
        return {
            # ── Flow control ──
            'CLS':       self._op_cls,
            'RET':       self._op_ret,
            'JP':        self._op_jp,
            'CALL':      self._op_call,
            'JP_V0':     self._op_jp_v0,

            # ── Skips ──
            'SE_BYTE':   self._op_se_byte,
            'SNE_BYTE':  self._op_sne_byte,
            'SE_REG':    self._op_se_reg,
            'SNE_REG':   self._op_sne_reg,
            'SKP':       self._op_skp,
            'SKNP':      self._op_sknp,

            # ── Loads / immediate arithmetic ──
            'LD_BYTE':   self._op_ld_byte,
            'ADD_BYTE':  self._op_add_byte,
            'LD_I':      self._op_ld_i,
            'RND':       self._op_rnd,

            # ── Register ALU ──
            'LD_REG':    self._op_ld_reg,
            'OR':        self._op_or,
            'AND':       self._op_and,
            'XOR':       self._op_xor,
            'ADD_REG':   self._op_add_reg,
            'SUB':       self._op_sub,
            'SHR':       self._op_shr,
            'SUBN':      self._op_subn,
            'SHL':       self._op_shl,

            # ── Display ──
            'DRW':       self._op_drw,

            # ── Timers / keys / memory ──
            'LD_VX_DT':  self._op_ld_vx_dt,
            'LD_VX_K':   self._op_ld_vx_k,
            'LD_DT_VX':  self._op_ld_dt_vx,
            'LD_ST_VX':  self._op_ld_st_vx,
            'ADD_I':     self._op_add_i,
            'LD_F':      self._op_ld_f,
            'LD_B':      self._op_ld_b,
            'LD_MEM_VX': self._op_ld_mem_vx,
            'LD_VX_MEM': self._op_ld_vx_mem,
        }

    def _next(self):
        self.regs.PC = (self.regs.PC + 2) & 0xFFFF

    def _skip_if(self, condition: bool):
        # Always +2, then +2 more when the condition holds
        self._next()
        if condition:
            self._next()

    def _set_with_flag(self, x: int, result: int, flag: int):
        self.regs.set_v(x, result)
        self.regs.vf = flag
        self._next()

    # ── Flow control handlers ──

    def _op_cls(self, inst):
        self.display.clear()
        self._next()

    def _op_ret(self, inst):
        self.regs.PC = (self.regs.pop() + 2) & 0xFFFF

    def _op_jp(self, inst):
        self.regs.PC = inst.nnn

    def _op_call(self, inst):
        self.regs.push(self.regs.PC)
        self.regs.PC = inst.nnn

    def _op_jp_v0(self, inst):
        self.regs.PC = (self.regs.v(0) + inst.nnn) & 0xFFFF

    # ── Skip handlers ──

    def _op_se_byte(self, inst):
        self._skip_if(self.regs.v(inst.x) == inst.kk)

    def _op_sne_byte(self, inst):
        self._skip_if(self.regs.v(inst.x) != inst.kk)

    def _op_se_reg(self, inst):
        self._skip_if(self.regs.v(inst.x) == self.regs.v(inst.y))

    def _op_sne_reg(self, inst):
        self._skip_if(self.regs.v(inst.x) != self.regs.v(inst.y))

    def _op_skp(self, inst):
        self._skip_if(self.keypad.is_pressed(self.regs.v(inst.x) & 0xF))

    def _op_sknp(self, inst):
        self._skip_if(not self.keypad.is_pressed(self.regs.v(inst.x) & 0xF))

    # ── Load handlers ──

    def _op_ld_byte(self, inst):
        self.regs.set_v(inst.x, inst.kk)
        self._next()

    def _op_add_byte(self, inst):
        # No carry flag for 7xkk
        self.regs.set_v(inst.x, alu.wrap8(self.regs.v(inst.x) + inst.kk))
        self._next()

    def _op_ld_i(self, inst):
        self.regs.I = inst.nnn
        self._next()

    def _op_rnd(self, inst):
        self.regs.set_v(inst.x, self.rng.randrange(256) & inst.kk)
        self._next()

    # ── Register ALU handlers ──

    def _op_ld_reg(self, inst):
        self.regs.set_v(inst.x, self.regs.v(inst.y))
        self._next()

    def _op_or(self, inst):
        self.regs.set_v(inst.x, self.regs.v(inst.x) | self.regs.v(inst.y))
        self._next()

    def _op_and(self, inst):
        self.regs.set_v(inst.x, self.regs.v(inst.x) & self.regs.v(inst.y))
        self._next()

    def _op_xor(self, inst):
        self.regs.set_v(inst.x, self.regs.v(inst.x) ^ self.regs.v(inst.y))
        self._next()

    def _op_add_reg(self, inst):
        result, flag = alu.add8(self.regs.v(inst.x), self.regs.v(inst.y))
        self._set_with_flag(inst.x, result, flag)

    def _op_sub(self, inst):
        result, flag = alu.sub8(self.regs.v(inst.x), self.regs.v(inst.y))
        self._set_with_flag(inst.x, result, flag)

    def _op_shr(self, inst):
        result, flag = alu.shr8(self.regs.v(inst.x))
        self._set_with_flag(inst.x, result, flag)

    def _op_subn(self, inst):
        result, flag = alu.subn8(self.regs.v(inst.x), self.regs.v(inst.y))
        self._set_with_flag(inst.x, result, flag)

    def _op_shl(self, inst):
        result, flag = alu.shl8(self.regs.v(inst.x))
        self._set_with_flag(inst.x, result, flag)

    # ── Display handler ──

    def _op_drw(self, inst):
        x = self.regs.v(inst.x)
        y = self.regs.v(inst.y)
        rows = self.mem.read_block(self.regs.I, inst.n)
        collision = self.display.draw_sprite(x, y, rows)
        self.regs.vf = int(collision)
        self._next()

    # ── Timer / key / memory handlers ──

    def _op_ld_vx_dt(self, inst):
        self.regs.set_v(inst.x, self.timers.delay)
        self._next()

    def _op_ld_vx_k(self, inst):
        self.state = AwaitingKey(inst.x)
        self._next()

    def _op_ld_dt_vx(self, inst):
        self.timers.delay = self.regs.v(inst.x)
        self._next()

    def _op_ld_st_vx(self, inst):
        self.timers.sound = self.regs.v(inst.x)
        self._next()

    def _op_add_i(self, inst):
        self.regs.I, self.regs.vf = alu.add_index(self.regs.I, self.regs.v(inst.x))
        self._next()

    def _op_ld_f(self, inst):
        self.regs.I = FONT_BASE + FONT_GLYPH_BYTES * self.regs.v(inst.x)
        self._next()

    def _op_ld_b(self, inst):
        self.mem.write_block(self.regs.I, bytes(alu.bcd(self.regs.v(inst.x))))
        self._next()

    def _op_ld_mem_vx(self, inst):
        self.mem.write_block(self.regs.I, self.regs.V[:inst.x + 1])
        self.regs.I = (self.regs.I + inst.x + 1) & 0xFFFF
        self._next()

    def _op_ld_vx_mem(self, inst):
        data = self.mem.read_block(self.regs.I, inst.x + 1)
        for i, value in enumerate(data):
            self.regs.set_v(i, value)
        self.regs.I = (self.regs.I + inst.x + 1) & 0xFFFF
        self._next()
