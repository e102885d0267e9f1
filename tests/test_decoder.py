"""
Decoder Tests — bit-field extraction and opcode table lookup.

Literal instruction words, checked field by field against the CHIP-8
instruction layout.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from chip8_emulator.cpu.decoder import (
    OPCODES, DecodeError, Instruction, decode, decode_word, identify, lookup,
)
from chip8_emulator.cpu import alu


class TestFields:
    """decode() splits a word into group / x / y / kk / n / nnn."""

    def test_draw_word(self):
        inst = decode(0xD1, 0x2F)
        assert inst == Instruction(opcode=0xD12F, group=0xD, x=0x1, y=0x2,
                                   kk=0x2F, n=0xF, nnn=0x12F)

    def test_address_word(self):
        inst = decode(0xA2, 0xEA)
        assert inst.group == 0xA
        assert inst.nnn == 0x2EA
        assert inst.hi == 0xA2
        assert inst.lo == 0xEA

    def test_idempotent(self):
        assert decode(0x8A, 0xB4) == decode(0x8A, 0xB4)

    def test_decode_word_matches_decode(self):
        assert decode_word(0xF365) == decode(0xF3, 0x65)
        assert decode_word(0x1F365).opcode == 0xF365

    def test_str(self):
        assert str(decode(0x00, 0xE0)) == "00E0"


class TestTable:
    """identify() maps words to opcode table rows."""

    @pytest.mark.parametrize("word, key", [
        (0x00E0, 'CLS'), (0x00EE, 'RET'), (0x1ABC, 'JP'), (0x2ABC, 'CALL'),
        (0x3A12, 'SE_BYTE'), (0x4A12, 'SNE_BYTE'), (0x5AB0, 'SE_REG'),
        (0x6A12, 'LD_BYTE'), (0x7A12, 'ADD_BYTE'),
        (0x8AB0, 'LD_REG'), (0x8AB1, 'OR'), (0x8AB2, 'AND'), (0x8AB3, 'XOR'),
        (0x8AB4, 'ADD_REG'), (0x8AB5, 'SUB'), (0x8AB6, 'SHR'),
        (0x8AB7, 'SUBN'), (0x8ABE, 'SHL'), (0x9AB0, 'SNE_REG'),
        (0xA123, 'LD_I'), (0xB123, 'JP_V0'), (0xCA12, 'RND'), (0xDAB5, 'DRW'),
        (0xEA9E, 'SKP'), (0xEAA1, 'SKNP'),
        (0xFA07, 'LD_VX_DT'), (0xFA0A, 'LD_VX_K'), (0xFA15, 'LD_DT_VX'),
        (0xFA18, 'LD_ST_VX'), (0xFA1E, 'ADD_I'), (0xFA29, 'LD_F'),
        (0xFA33, 'LD_B'), (0xFA55, 'LD_MEM_VX'), (0xFA65, 'LD_VX_MEM'),
    ])
    def test_every_row(self, word, key):
        assert identify(decode_word(word)).key == key

    def test_table_rows_are_unique(self):
        assert len(OPCODES) == 34
        matches = [(spec.mask, spec.match) for spec in OPCODES.values()]
        assert len(set(matches)) == len(matches)

    def test_lookup_none(self):
        assert lookup(decode_word(0x0000)) is None
        assert lookup(decode_word(0x8AB8)) is None

    def test_decode_error_carries_context(self):
        with pytest.raises(DecodeError) as exc:
            identify(decode_word(0xE0FF), address=0x2A0)
        assert exc.value.opcode == 0xE0FF
        assert "$E0FF" in str(exc.value)
        assert "$02A0" in str(exc.value)

    def test_operand_format(self):
        spec = identify(decode_word(0xD12F))
        assert spec.format_operands(decode_word(0xD12F)) == "V1, V2, #F"
        spec = identify(decode_word(0x6A0C))
        assert spec.format_operands(decode_word(0x6A0C)) == "VA, #$0C"


class TestALUHelpers:
    """Pure arithmetic helpers."""

    def test_add8(self):
        assert alu.add8(0xFF, 0x01) == (0x00, 1)
        assert alu.add8(0x7F, 0x01) == (0x80, 0)

    def test_sub8_and_subn8(self):
        assert alu.sub8(0x10, 0x01) == (0x0F, 1)
        assert alu.sub8(0x01, 0x10) == (0xF1, 0)
        assert alu.subn8(0x01, 0x10) == (0x0F, 1)

    def test_shifts(self):
        assert alu.shr8(0x01) == (0x00, 1)
        assert alu.shl8(0x80) == (0x00, 1)
        assert alu.shl8(0x40) == (0x80, 0)

    def test_add_index(self):
        assert alu.add_index(0xFFFF, 0x02) == (0x0001, 1)
        assert alu.add_index(0x00F0, 0x0F) == (0x00FF, 0)

    def test_bcd(self):
        assert alu.bcd(0) == (0, 0, 0)
        assert alu.bcd(9) == (0, 0, 9)
        assert alu.bcd(255) == (2, 5, 5)
