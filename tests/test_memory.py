"""
Memory / Loader / Register-file Tests.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from chip8_emulator.config import FONT_SPRITES, MEMORY_SIZE
from chip8_emulator.cpu.regs import Registers, StackError
from chip8_emulator.emu import Chip8Emulator
from chip8_emulator.mem.memory import (
    AddressError, EmptyProgram, LoadError, Memory, ProgramTooLarge,
)


class TestLoader:
    """load_program() contract."""

    def test_load_at_default_address(self):
        mem = Memory()
        assert mem.load_program(b'\x12\x34\x56') == 3
        assert mem.read_block(0x200, 3) == b'\x12\x34\x56'
        assert mem.program_base == 0x200
        assert mem.program_size == 3

    def test_empty(self):
        with pytest.raises(EmptyProgram):
            Memory().load_program(b'')

    def test_too_large(self):
        mem = Memory()
        mem.load_program(bytes(MEMORY_SIZE - 0x200))      # fits exactly
        with pytest.raises(ProgramTooLarge):
            mem.load_program(bytes(MEMORY_SIZE - 0x200 + 1))

    def test_base_past_end_of_memory(self):
        """A base at or after $1000 leaves no room: ProgramTooLarge, a LoadError"""
        for base in (0x1000, 0x1234):
            with pytest.raises(ProgramTooLarge):
                Memory().load_program(b'\x00\xE0', base_addr=base)
        with pytest.raises(LoadError):
            Chip8Emulator().load(b'\x00\xE0', base_addr=0x1000)

    def test_load_errors_share_base(self):
        assert issubclass(EmptyProgram, LoadError)
        assert issubclass(ProgramTooLarge, LoadError)

    def test_load_into_font_area(self):
        with pytest.raises(AddressError):
            Memory().load_program(b'\x00\xE0', base_addr=0x10)

    def test_load_from_file(self, tmp_path):
        rom = tmp_path / "prog.ch8"
        rom.write_bytes(b'\x60\x01\x00\xE0')
        emu = Chip8Emulator()
        assert emu.load_file(rom) == 4
        assert emu.mem.program_bytes() == b'\x60\x01\x00\xE0'

    def test_load_sets_pc(self):
        emu = Chip8Emulator()
        emu.load(b'\x60\x01', base_addr=0x600)
        assert emu.regs.PC == 0x600


class TestMemoryAccess:
    """Bounds, font protection, watchpoints, snapshots."""

    def test_font_installed(self):
        mem = Memory()
        assert mem.read_block(0, 80) == FONT_SPRITES
        assert mem.read8(0x50) == 0

    def test_font_write_rejected(self):
        mem = Memory()
        with pytest.raises(AddressError):
            mem.write8(0x4F, 0xAA)
        with pytest.raises(AddressError):
            mem.write_block(0x4E, b'\x01\x02\x03')
        assert mem.read_block(0, 80) == FONT_SPRITES

    def test_out_of_range(self):
        mem = Memory()
        with pytest.raises(AddressError):
            mem.read8(0x1000)
        with pytest.raises(AddressError):
            mem.read16(0xFFF)
        with pytest.raises(AddressError):
            mem.write8(-1, 0)

    def test_write_block_checks_whole_range_first(self):
        mem = Memory()
        with pytest.raises(AddressError):
            mem.write_block(0xFFE, b'\x01\x02\x03')
        assert mem.read8(0xFFE) == 0

    def test_read16_big_endian(self):
        mem = Memory()
        mem.write8(0x300, 0xAB)
        mem.write8(0x301, 0xCD)
        assert mem.read16(0x300) == 0xABCD

    def test_watchpoint(self):
        mem = Memory()
        changes = []
        cb = lambda addr, old, new: changes.append((addr, old, new))
        mem.add_watchpoint(0x400, cb)
        mem.write8(0x400, 0x11)
        mem.write8(0x401, 0x22)
        mem.remove_watchpoint(0x400, cb)
        mem.write8(0x400, 0x33)
        assert changes == [(0x400, 0x00, 0x11)]

    def test_snapshot_diff(self):
        mem = Memory()
        before = mem.snapshot(0x300, 0x303)
        mem.write8(0x301, 0xBB)
        mem.write8(0x303, 0xCC)
        diff = Memory.diff_snapshots(before, mem.snapshot(0x300, 0x303), 0x300)
        assert diff == {0x301: (0x00, 0xBB), 0x303: (0x00, 0xCC)}

    def test_hexdump(self):
        mem = Memory()
        mem.load_program(b'\x00\xE0\x12\x00')
        assert mem.hexdump(0x200, 4) == "$0200: 00 E0 12 00"

    def test_reset_keeps_program(self):
        mem = Memory()
        mem.load_program(b'\x12\x00')
        mem.write8(0x300, 0x77)
        mem.reset(keep_program=True)
        assert mem.read8(0x300) == 0
        assert mem.program_bytes() == b'\x12\x00'
        mem.reset()
        assert mem.program_size == 0
        assert mem.read16(0x200) == 0

    def test_reset_restores_loaded_image(self):
        mem = Memory()
        mem.load_program(b'\x60\xAB\xA2\x00')
        mem.write8(0x200, 0xAB)
        mem.write8(0x203, 0x55)
        assert mem.program_bytes() == b'\xAB\xAB\xA2\x55'
        mem.reset(keep_program=True)
        assert mem.program_bytes() == b'\x60\xAB\xA2\x00'


class TestRegisters:
    """Register file and call stack."""

    def test_power_on(self):
        regs = Registers()
        assert regs.PC == 0x200
        assert regs.V == bytes(16)
        assert regs.I == 0
        assert regs.SP == 0

    def test_set_v_truncates(self):
        regs = Registers()
        regs.set_v(3, 0x1FF)
        assert regs.v(3) == 0xFF

    def test_bad_index(self):
        regs = Registers()
        with pytest.raises(IndexError):
            regs.v(16)
        with pytest.raises(IndexError):
            regs.set_v(-1, 0)

    def test_vf_alias(self):
        regs = Registers()
        regs.vf = 1
        assert regs.v(0xF) == 1

    def test_stack_limits(self):
        regs = Registers()
        for addr in range(16):
            regs.push(0x200 + addr * 2)
        with pytest.raises(StackError):
            regs.push(0x300)
        assert regs.pop() == 0x21E
        assert len(regs.stack) == 15

        regs.reset()
        with pytest.raises(StackError):
            regs.pop()

    def test_display(self):
        regs = Registers()
        regs.set_v(0xA, 0x5C)
        text = regs.display()
        assert text.startswith("PC=0200 I=0000 SP=0")
        assert "VA=5C" in text
