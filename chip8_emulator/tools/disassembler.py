"""
CHIP-8 Disassembler — Read-only Formatter
==========================================

Maps raw program bytes (or a range of emulator memory) to one text line
per 16-bit instruction word, using the same opcode table the CPU
executes from.

API Usage:
    from chip8_emulator.tools.disassembler import Chip8Disassembler

    dis = Chip8Disassembler()
    for r in dis.disassemble(b'\\x60\\x05\\x70\\x03\\x12\\x00', base_addr=0x200):
        print(r.format())    # "$0200: 60 05  LD   V0, #$05"

    dis.disassemble_program(emu)        # whatever emu.load() placed

Bytes that are not an instruction never raise: an unknown word becomes
``DW $XXXX`` and a trailing odd byte becomes ``DB $XX``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from ..cpu.decoder import OPCODES, decode, lookup


@dataclass
class DisassembledInstruction:
    """One decoded instruction word with all formatting data."""
    address: int
    raw_bytes: bytes
    mnemonic: str
    operand_str: str
    description: str = ""
    valid: bool = True

    @property
    def opcode(self) -> Optional[int]:
        """The 16-bit word, or None for a lone trailing byte."""
        if len(self.raw_bytes) != 2:
            return None
        return (self.raw_bytes[0] << 8) | self.raw_bytes[1]

    @property
    def hex_str(self) -> str:
        return " ".join(f"{b:02X}" for b in self.raw_bytes)

    @property
    def text(self) -> str:
        return f"{self.mnemonic:4s} {self.operand_str}".rstrip()

    def format(self, show_description: bool = False) -> str:
        """Format as a single disassembly line."""
        line = f"${self.address:04X}: {self.hex_str:5s}  {self.text}"
        if show_description and self.description:
            line = f"{line:32s} ; {self.description}"
        return line


class Chip8Disassembler:
    """
    CHIP-8 disassembler.

    Usage:
        dis = Chip8Disassembler()
        results = dis.disassemble(raw_bytes, base_addr=0x200)
        single  = dis.decode_one(raw_bytes, offset=0, base_addr=0x200)
    """

    # ── public API ──

    def disassemble(self, data: bytes, base_addr: int = 0,
                    max_instructions: int = 0) -> List[DisassembledInstruction]:
        """Disassemble a block of bytes, two bytes per instruction."""
        data = bytes(data)
        results: List[DisassembledInstruction] = []
        for offset in range(0, len(data), 2):
            results.append(self.decode_one(data, offset, base_addr + offset))
            if max_instructions and len(results) >= max_instructions:
                break
        return results

    def disassemble_memory(self, memory, start: int,
                           length: int) -> List[DisassembledInstruction]:
        """Disassemble ``length`` bytes of emulator memory from ``start``."""
        return self.disassemble(memory.read_block(start, length), start)

    def disassemble_program(self, emu) -> List[DisassembledInstruction]:
        """Disassemble the program last loaded into ``emu``."""
        mem = emu.mem
        return self.disassemble_memory(mem, mem.program_base, mem.program_size)

    def decode_one(self, data: bytes, offset: int = 0,
                   base_addr: int = 0) -> Optional[DisassembledInstruction]:
        """Decode exactly one instruction at the given offset."""
        if offset >= len(data):
            return None
        if offset + 1 >= len(data):
            return self._make_db(data[offset], base_addr)

        hi, lo = data[offset], data[offset + 1]
        inst = decode(hi, lo)
        spec = lookup(inst)
        if spec is None:
            return self._make_dw(bytes((hi, lo)), base_addr)

        return DisassembledInstruction(
            address=base_addr,
            raw_bytes=bytes((hi, lo)),
            mnemonic=spec.mnemonic,
            operand_str=spec.format_operands(inst),
            description=spec.description,
        )

    @staticmethod
    def get_stats() -> Dict[str, int]:
        mnemonics = {spec.mnemonic for spec in OPCODES.values()}
        return {"opcodes": len(OPCODES), "mnemonics": len(mnemonics)}

    # ── placeholders ──

    @staticmethod
    def _make_dw(raw: bytes, address: int) -> DisassembledInstruction:
        return DisassembledInstruction(
            address=address,
            raw_bytes=raw,
            mnemonic="DW",
            operand_str=f"${raw[0]:02X}{raw[1]:02X}",
            description="Data word",
            valid=False,
        )

    @staticmethod
    def _make_db(value: int, address: int) -> DisassembledInstruction:
        return DisassembledInstruction(
            address=address,
            raw_bytes=bytes((value,)),
            mnemonic="DB",
            operand_str=f"${value:02X}",
            description="Data byte",
            valid=False,
        )


def disassemble_bytes(data: bytes, base_addr: int = 0) -> List[DisassembledInstruction]:
    """Module-level convenience function."""
    return Chip8Disassembler().disassemble(data, base_addr)


def format_listing(results: List[DisassembledInstruction],
                   show_description: bool = False) -> str:
    return "\n".join(r.format(show_description) for r in results)
