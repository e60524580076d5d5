# chip8_tracer/loader/loader.py
"""
コードローダーモジュール。
生のROMイメージ、Intel HEX、アセンブリソースのロードをサポートします。
"""
import logging
from pathlib import Path
from typing import Union

from chip8_tracer.transport.bus import Bus
from chip8_tracer.common.types import SymbolMap
from chip8_tracer.arch.chip8.state import MEMORY_SIZE, PROGRAM_START
from chip8_tracer.arch.chip8.assembler import Chip8Assembler

logger = logging.getLogger(__name__)

PathOrBytes = Union[str, Path, bytes, bytearray]


class RomImageLoader:
    """
    ビッグエンディアンの命令語が並んだ生のバイト列（.ch8 イメージ）を
    実行開始アドレスから配置するローダー。
    """
    # @intent:responsibility ROMイメージをバスにロードし、ロードしたバイト数を返します。
    # @intent:pre-condition イメージは address からメモリ末尾までに収まる必要があります。
    def load_rom(self, source: PathOrBytes, bus: Bus, address: int = PROGRAM_START) -> int:
        if isinstance(source, (bytes, bytearray)):
            data = bytes(source)
        else:
            data = Path(source).read_bytes()

        if address < 0 or address + len(data) > MEMORY_SIZE:
            raise ValueError(
                f"ROM image of {len(data)} bytes does not fit at {address:#05x} "
                f"(capacity {MEMORY_SIZE - address} bytes)."
            )
        bus.load_bytes(address, data)
        logger.debug("Loaded %d ROM bytes at %#05x", len(data), address)
        return len(data)


class IntelHexLoader:
    """
    Intel HEX形式のファイルを解析し、データをバスにロードするローダー。
    """
    def load_intel_hex(self, file_path: Union[str, Path], bus: Bus) -> int:
        current_extended_linear_address = 0x0000
        loaded = 0

        with open(file_path, 'r') as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line or not line.startswith(':'):
                    continue

                comment_start = line.find(';')
                if comment_start != -1:
                    line = line[:comment_start].strip()

                if len(line) < 11:
                    raise ValueError(f"Invalid Intel HEX record format on line {line_num}: Too short - {line}")

                try:
                    data_length = int(line[1:3], 16)
                    address_field = int(line[3:7], 16)
                    record_type = int(line[7:9], 16)
                    data_part_str = line[9:-2]
                    checksum_field = int(line[-2:], 16)
                except ValueError as e:
                    raise ValueError(f"Error parsing Intel HEX line {line_num}: {line} - {e}")

                if len(data_part_str) != data_length * 2:
                    raise ValueError(f"Data length mismatch on line {line_num}")

                data_bytes = bytes.fromhex(data_part_str)
                checksum_sum = data_length + (address_field >> 8) + (address_field & 0xFF) + record_type + sum(data_bytes)
                calculated_checksum = (~checksum_sum + 1) & 0xFF

                if calculated_checksum != checksum_field:
                    raise ValueError(
                        f"Checksum mismatch on line {line_num}: "
                        f"Calculated {calculated_checksum:02X}, Expected {checksum_field:02X}"
                    )

                if record_type == 0x00:
                    load_address = current_extended_linear_address + address_field
                    bus.load_bytes(load_address, data_bytes)
                    loaded += data_length
                elif record_type == 0x01:
                    break
                elif record_type == 0x04:
                    current_extended_linear_address = int(data_part_str, 16) << 16
                elif record_type == 0x02:
                    current_extended_linear_address = int(data_part_str, 16) << 4
                elif record_type in (0x03, 0x05):
                    # Start address records carry no data
                    pass
                else:
                    raise ValueError(f"Unknown Intel HEX record type {record_type:02X} on line {line_num}")

        logger.debug("Loaded %d bytes from Intel HEX %s", loaded, file_path)
        return loaded


class AssemblyLoader:
    """
    アセンブリソースコードを解析し、シンボル情報を抽出し、
    バイナリに変換してバスにロードする簡易ローダー。
    """
    def load_assembly(self, file_path: Union[str, Path], bus: Bus, architecture: str = "CHIP8") -> SymbolMap:
        with open(file_path, 'r', encoding="utf-8") as f:
            lines = f.readlines()
        return self.load_source(lines, bus, architecture)

    # @intent:responsibility ソース行のリストをアセンブルしてバスに書き込み、シンボルマップを返します。
    def load_source(self, lines, bus: Bus, architecture: str = "CHIP8") -> SymbolMap:
        if architecture.upper() != "CHIP8":
            raise ValueError(f"Unsupported architecture for assembly loading: {architecture}")

        symbol_map, binary_data = Chip8Assembler().assemble(list(lines))

        for addr, data in binary_data:
            bus.load(addr, data)

        logger.debug("Assembled %d bytes, %d symbols", len(binary_data), len(symbol_map))
        return symbol_map
