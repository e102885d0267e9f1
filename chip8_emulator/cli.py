"""
chip8emu — CHIP-8 emulator command line

Usage:
    chip8emu <rom.ch8> [--decode] [--frames N] [--cycles-per-frame N]
                       [--org 0x200] [--seed N] [--keys 5 A]
                       [--trace] [--verbose] [--log-dir logs]

Runs the ROM headless for N frames of 60 Hz time (no sleeping: each
frame is ``--cycles-per-frame`` instructions followed by one timer
tick) and prints the final framebuffer. ``--keys`` holds keypad keys
down for the whole run; the first one also answers any Fx0A wait.

Examples:
    chip8emu pong.ch8 --decode               # disassembly only
    chip8emu ibm_logo.ch8 --frames 60        # one second, then show screen
    chip8emu game.ch8 --frames 300 --keys 5 --seed 1
"""

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.panel import Panel

from .config import DEFAULT_CYCLES_PER_FRAME, PROGRAM_START, TIMER_HZ
from .emu import Chip8Emulator, StopReason
from .log_setup import setup_logging
from .mem.memory import AddressError, LoadError
from .tools.disassembler import Chip8Disassembler, format_listing

__version__ = "0.4.0"

log = logging.getLogger(__name__)


def parse_int_arg(value: str) -> int:
    """Parse an integer argument that may be hex (0x...), $ prefix, or decimal."""
    value = value.strip()
    if value.startswith("0x") or value.startswith("0X"):
        return int(value, 16)
    if value.startswith("$"):
        return int(value[1:], 16)
    return int(value)


def parse_key_arg(value: str) -> int:
    key = int(value, 16)
    if not 0 <= key <= 0xF:
        raise argparse.ArgumentTypeError(f"key must be a hex digit 0-F, got {value!r}")
    return key


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chip8emu",
        description="CHIP-8 virtual machine (headless runner and disassembler)",
    )
    parser.add_argument("rom", help="Raw CHIP-8 program image")
    parser.add_argument("--org", type=parse_int_arg, default=PROGRAM_START,
                        help="Load address (default: 0x200)")
    parser.add_argument("-d", "--decode", action="store_true",
                        help="Print the disassembly of the ROM")
    parser.add_argument("--frames", type=int, default=0,
                        help="Frames (1/60 s) to run; 0 = do not run")
    parser.add_argument("--cycles-per-frame", type=int,
                        default=DEFAULT_CYCLES_PER_FRAME,
                        help=f"Instructions per frame (default: {DEFAULT_CYCLES_PER_FRAME})")
    parser.add_argument("--seed", type=int, default=None,
                        help="Seed for the RND instruction")
    parser.add_argument("--keys", type=parse_key_arg, nargs="*", default=[],
                        help="Keypad keys (hex digits) held down during the run")
    parser.add_argument("--trace", action="store_true",
                        help="Log every executed instruction at DEBUG")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Show INFO messages on the console")
    parser.add_argument("--log-dir", type=Path, default=None,
                        help="Also write a DEBUG log file into this directory")
    parser.add_argument("--version", action="version",
                        version=f"chip8emu {__version__}")
    return parser


def run_frames(emu: Chip8Emulator, frames: int, cycles_per_frame: int,
               keys=()) -> StopReason:
    """Headless presenter loop: N frames, each = instructions + one timer tick."""
    reason = StopReason.TIMEOUT
    for _ in range(frames):
        budget = cycles_per_frame
        while budget > 0:
            start = emu.regs.cycles
            reason = emu.run(max_steps=budget)
            budget -= emu.regs.cycles - start
            if reason is StopReason.AWAIT_KEY:
                if not keys:
                    return reason
                # The key answers the wait; the frame goes on with what is left
                emu.resolve_key(keys[0])
                reason = StopReason.TIMEOUT
            elif reason in (StopReason.ILLEGAL, StopReason.ERROR):
                return reason
            else:
                break
        emu.tick_timers(1)
    return reason


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    console = Console(highlight=False)

    setup_logging(
        console_level=logging.INFO if args.verbose else logging.WARNING,
        log_dir=args.log_dir,
    )

    emu = Chip8Emulator(seed=args.seed, load_address=args.org)
    emu.trace = args.trace

    try:
        size = emu.load_file(args.rom)
    except FileNotFoundError:
        print(f"Error: File not found: {args.rom}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error reading {args.rom}: {e}", file=sys.stderr)
        return 1
    except (LoadError, AddressError) as e:
        print(f"Load error: {e}", file=sys.stderr)
        return 1

    log.info("ROM %s: %d bytes at $%04X", args.rom, size, args.org)

    if args.decode:
        listing = Chip8Disassembler().disassemble_program(emu)
        console.print(format_listing(listing, show_description=args.verbose),
                      markup=False)

    if args.frames <= 0:
        return 0

    for key in args.keys:
        emu.press_key(key)

    log.info("Running %d frames (%.2f s at %d Hz), %d instructions per frame",
             args.frames, args.frames / TIMER_HZ, TIMER_HZ, args.cycles_per_frame)
    reason = run_frames(emu, args.frames, args.cycles_per_frame, args.keys)

    console.print(Panel(emu.display.render_text(on="#", off="."),
                        title=Path(args.rom).stem, expand=False))
    console.print(f"PC=${emu.regs.PC:04X}  cycles={emu.regs.cycles}  "
                  f"stop={reason.value}", markup=False)

    if reason in (StopReason.ILLEGAL, StopReason.ERROR):
        print(f"Execution error: {emu.last_error}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
