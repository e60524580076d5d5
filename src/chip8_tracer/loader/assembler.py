# chip8_tracer/loader/assembler.py
"""
アセンブラの共通基盤。
アーキテクチャごとのアセンブラはこれを継承し、AssemblyLoaderから利用されます。
"""
import re
from abc import ABC, abstractmethod
from typing import Tuple, List, Optional
from chip8_tracer.common.types import SymbolMap

_HEX_SUFFIX = re.compile(r'^[0-9A-Fa-f]+[hH]$')

# @intent:responsibility アセンブラの共通インターフェースを定義します。
class BaseAssembler(ABC):
    @abstractmethod
    def assemble(self, lines: List[str]) -> Tuple[SymbolMap, List[Tuple[int, int]]]:
        """
        アセンブリソースを行単位で解析し、シンボルマップと (address, byte) のリストを返します。
        """
        pass

    # @intent:responsibility 1行を (label, mnemonic, operands) に分解します。コメントは ';' 以降です。
    def _parse_line(self, line: str) -> Tuple[Optional[str], Optional[str], Optional[str]]:
        line = line.split(';')[0].strip()
        if not line:
            return None, None, None

        label = None
        if ':' in line:
            label, rest = line.split(':', 1)
            label = label.strip()
            line = rest.strip()

        if not line:
            return label, None, None

        parts = re.split(r'\s+', line, maxsplit=1)
        mnemonic = parts[0].upper()
        operands = parts[1].strip() if len(parts) > 1 else ""

        return label, mnemonic, operands

    # @intent:responsibility 数値リテラル（10進, 0x.., $.., ..h）またはシンボルを整数に変換します。
    def _parse_val(self, val_str: str, symbol_map: SymbolMap) -> int:
        val_str = val_str.strip()
        if val_str.startswith('$'):
            return int(val_str[1:], 16)
        if val_str.lower().startswith('0x'):
            return int(val_str, 16)
        if _HEX_SUFFIX.match(val_str):
            return int(val_str[:-1], 16)
        try:
            return int(val_str)
        except ValueError:
            if val_str in symbol_map:
                return symbol_map[val_str]
            raise ValueError(f"Undefined symbol or invalid value: {val_str}")

    def _split_operands(self, operands: str) -> List[str]:
        if not operands:
            return []
        return [o.strip() for o in operands.split(',')]
