# chip8_tracer/arch/chip8/assembler.py
"""
CHIP-8 簡易アセンブラ。

対応するニーモニック:
    HALT, RET, JP addr, CALL addr,
    SE/SNE Vx, byte|Vy, LD Vx, byte|Vy, ADD Vx, byte|Vy,
    OR/AND/XOR/SUB/SUBN Vx, Vy, SHR/SHL Vx[, Vy]
ディレクティブ: ORG addr, DW word[, ...], DB byte[, ...]
"""
import re
from typing import List, Optional, Tuple

from chip8_tracer.common.types import SymbolMap
from chip8_tracer.loader.assembler import BaseAssembler
from chip8_tracer.arch.chip8.state import INSTRUCTION_LENGTH, PROGRAM_START

_REGISTER = re.compile(r'^V([0-9A-F])$', re.IGNORECASE)

# @intent:map 8xy_ ファミリのニーモニックから下位ニブルへの対応表。
_REGISTER_PAIR_SUBOPS = {
    "OR": 0x1,
    "AND": 0x2,
    "XOR": 0x3,
    "SUB": 0x5,
    "SUBN": 0x7,
}

# @intent:map 即値/レジスタの両形式を持つニーモニックの (即値形式のベース, レジスタ形式のベース)。
_DUAL_FORMS = {
    "SE": (0x3000, 0x5000),
    "SNE": (0x4000, 0x9000),
    "LD": (0x6000, 0x8000),
    "ADD": (0x7000, 0x8004),
}


class Chip8Assembler(BaseAssembler):
    """
    CHIP-8 用の2パスアセンブラ。
    1パス目でラベルのアドレスを確定し、2パス目で命令語を生成します。
    """
    def __init__(self, origin: int = PROGRAM_START):
        self._origin = origin

    def assemble(self, lines: List[str]) -> Tuple[SymbolMap, List[Tuple[int, int]]]:
        parsed_lines = [self._parse_line(line) for line in lines]

        # First pass: Build symbol map
        symbol_map: SymbolMap = {}
        pc = self._origin
        for label, mnemonic, operands in parsed_lines:
            if label:
                symbol_map[label] = pc
            if not mnemonic:
                continue
            if mnemonic == "ORG":
                pc = self._parse_val(operands, symbol_map)
            else:
                pc += self._length_of(mnemonic, operands)

        # Second pass: Generate binary
        binary_data: List[Tuple[int, int]] = []
        pc = self._origin
        for line_num, (label, mnemonic, operands) in enumerate(parsed_lines, 1):
            if not mnemonic:
                continue
            try:
                if mnemonic == "ORG":
                    pc = self._parse_val(operands, symbol_map)
                    continue
                if mnemonic == "DB":
                    for val_str in self._split_operands(operands):
                        binary_data.append((pc, self._check_range(self._parse_val(val_str, symbol_map), 0xFF)))
                        pc += 1
                    continue
                if mnemonic == "DW":
                    words = [self._check_range(self._parse_val(v, symbol_map), 0xFFFF)
                             for v in self._split_operands(operands)]
                else:
                    words = [self.encode(mnemonic, self._split_operands(operands), symbol_map)]
            except ValueError as e:
                raise ValueError(f"Assembly error on line {line_num}: {e}")

            for word in words:
                binary_data.append((pc, (word >> 8) & 0xFF))
                binary_data.append((pc + 1, word & 0xFF))
                pc += INSTRUCTION_LENGTH

        return symbol_map, binary_data

    def _length_of(self, mnemonic: str, operands: str) -> int:
        if mnemonic == "DB":
            return len(self._split_operands(operands))
        if mnemonic == "DW":
            return INSTRUCTION_LENGTH * len(self._split_operands(operands))
        return INSTRUCTION_LENGTH

    # @intent:responsibility 1命令をエンコードし、16ビット命令語を返します。
    def encode(self, mnemonic: str, operands: List[str], symbol_map: Optional[SymbolMap] = None) -> int:
        symbols = symbol_map or {}
        mnemonic = mnemonic.upper()

        if mnemonic == "HALT":
            self._expect_count(mnemonic, operands, 0)
            return 0x0000
        if mnemonic == "RET":
            self._expect_count(mnemonic, operands, 0)
            return 0x00EE
        if mnemonic in ("JP", "CALL"):
            self._expect_count(mnemonic, operands, 1)
            target = self._check_range(self._parse_val(operands[0], symbols), 0x0FFF)
            return (0x1000 if mnemonic == "JP" else 0x2000) | target
        if mnemonic in _DUAL_FORMS:
            self._expect_count(mnemonic, operands, 2)
            imm_base, reg_base = _DUAL_FORMS[mnemonic]
            x = self._parse_register(operands[0])
            y = self._register_or_none(operands[1])
            if y is not None:
                return reg_base | (x << 8) | (y << 4)
            kk = self._check_range(self._parse_val(operands[1], symbols), 0xFF)
            return imm_base | (x << 8) | kk
        if mnemonic in _REGISTER_PAIR_SUBOPS:
            self._expect_count(mnemonic, operands, 2)
            x = self._parse_register(operands[0])
            y = self._parse_register(operands[1])
            return 0x8000 | (x << 8) | (y << 4) | _REGISTER_PAIR_SUBOPS[mnemonic]
        if mnemonic in ("SHR", "SHL"):
            if len(operands) not in (1, 2):
                raise ValueError(f"{mnemonic} expects 1 or 2 operands, got {len(operands)}")
            x = self._parse_register(operands[0])
            y = self._parse_register(operands[1]) if len(operands) == 2 else 0
            return 0x8000 | (x << 8) | (y << 4) | (0x6 if mnemonic == "SHR" else 0x8)

        raise ValueError(f"Unknown mnemonic: {mnemonic}")

    def _expect_count(self, mnemonic: str, operands: List[str], count: int) -> None:
        if len(operands) != count:
            raise ValueError(f"{mnemonic} expects {count} operand(s), got {len(operands)}")

    def _register_or_none(self, operand: str) -> Optional[int]:
        m = _REGISTER.match(operand.strip())
        return int(m.group(1), 16) if m else None

    def _parse_register(self, operand: str) -> int:
        index = self._register_or_none(operand)
        if index is None:
            raise ValueError(f"Expected a register V0-VF, got '{operand}'")
        return index

    def _check_range(self, value: int, maximum: int) -> int:
        if not 0 <= value <= maximum:
            raise ValueError(f"Value {value:#x} out of range (max {maximum:#x})")
        return value
