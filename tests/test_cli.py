"""
CLI Tests — chip8emu entry point, run in-process with captured output.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from chip8_emulator.cli import main, parse_int_arg, run_frames
from chip8_emulator.emu import Chip8Emulator, StopReason
from chip8_emulator.log_setup import teardown_logging


@pytest.fixture(autouse=True)
def _fresh_logging():
    teardown_logging()
    yield
    teardown_logging()


def write_rom(tmp_path, data, name="prog.ch8"):
    rom = tmp_path / name
    rom.write_bytes(bytes(data))
    return str(rom)


class TestArgs:

    @pytest.mark.parametrize("text, value", [
        ("512", 512), ("0x200", 0x200), ("0X300", 0x300), ("$600", 0x600),
    ])
    def test_parse_int_arg(self, text, value):
        assert parse_int_arg(text) == value

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["--version"])
        assert exc.value.code == 0
        assert "chip8emu" in capsys.readouterr().out


class TestDecode:

    def test_listing(self, tmp_path, capsys):
        rom = write_rom(tmp_path, [0x60, 0x05, 0x70, 0x03, 0x00, 0x00])
        assert main([rom, "--decode"]) == 0
        out = capsys.readouterr().out.splitlines()
        assert out == [
            "$0200: 60 05  LD   V0, #$05",
            "$0202: 70 03  ADD  V0, #$03",
            "$0204: 00 00  DW   $0000",
        ]

    def test_org(self, tmp_path, capsys):
        rom = write_rom(tmp_path, [0x00, 0xE0])
        assert main([rom, "--decode", "--org", "0x600"]) == 0
        assert "$0600: 00 E0  CLS" in capsys.readouterr().out


class TestRun:

    def test_draws_font_glyph(self, tmp_path, capsys):
        rom = write_rom(tmp_path, [
            0x60, 0x00,  # LD V0, #$00
            0xF0, 0x29,  # LD F, V0
            0xD0, 0x05,  # DRW V0, V0, #5
            0x12, 0x06,  # JP $206
        ])
        assert main([rom, "--frames", "2"]) == 0
        out = capsys.readouterr().out
        assert "####" in out
        assert "stop=TIMEOUT" in out
        assert "PC=$0206" in out

    def test_key_wait_without_keys(self, tmp_path, capsys):
        rom = write_rom(tmp_path, [0xF1, 0x0A, 0x12, 0x02])
        assert main([rom, "--frames", "3"]) == 0
        assert "stop=AWAIT_KEY" in capsys.readouterr().out

    def test_key_wait_answered(self, tmp_path, capsys):
        rom = write_rom(tmp_path, [0xF1, 0x0A, 0x12, 0x02])
        assert main([rom, "--frames", "3", "--keys", "7"]) == 0
        assert "stop=TIMEOUT" in capsys.readouterr().out

    def test_key_answer_keeps_frame_budget(self):
        """Fx0A answered on cycle 1; the other 9 cycles of the frame still run"""
        emu = Chip8Emulator()
        emu.load(bytes([
            0xF1, 0x0A,  # LD V1, K
            0x72, 0x01,  # ADD V2, #$01
            0x12, 0x02,  # JP $202
        ]))
        assert run_frames(emu, 1, 10, keys=[5]) is StopReason.TIMEOUT
        assert emu.regs.v(1) == 5
        assert emu.regs.cycles == 10
        assert emu.regs.v(2) == 5

    def test_illegal_opcode_exit_code(self, tmp_path, capsys):
        rom = write_rom(tmp_path, [0x60, 0x01, 0xFF, 0xFF])
        assert main([rom, "--frames", "1"]) == 2
        captured = capsys.readouterr()
        assert "stop=ILLEGAL" in captured.out
        assert "$FFFF" in captured.err

    def test_stack_underflow_exit_code(self, tmp_path, capsys):
        rom = write_rom(tmp_path, [0x00, 0xEE])
        assert main([rom, "--frames", "1"]) == 2
        assert "stop=ERROR" in capsys.readouterr().out

    def test_log_dir(self, tmp_path):
        rom = write_rom(tmp_path, [0x12, 0x00])
        logs = tmp_path / "logs"
        assert main([rom, "--frames", "1", "--log-dir", str(logs)]) == 0
        files = list(logs.glob("chip8_emulator_*.log"))
        assert len(files) == 1
        teardown_logging()
        assert "Loaded 2 bytes at $0200" in files[0].read_text(encoding="utf-8")


class TestLoadFailures:

    def test_missing_file(self, tmp_path, capsys):
        assert main([str(tmp_path / "nope.ch8")]) == 1
        assert "File not found" in capsys.readouterr().err

    def test_empty_file(self, tmp_path, capsys):
        rom = write_rom(tmp_path, [])
        assert main([rom, "--frames", "1"]) == 1
        assert "Load error" in capsys.readouterr().err

    def test_too_large(self, tmp_path, capsys):
        rom = write_rom(tmp_path, [0] * 0xE01)
        assert main([rom]) == 1
        assert "Load error" in capsys.readouterr().err
