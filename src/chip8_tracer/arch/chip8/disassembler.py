# chip8_tracer/arch/chip8/disassembler.py
"""
CHIP-8 Disassembler

メモリ上のバイナリデータを解析し、CHIP-8 のニーモニックに変換します。
Instruction Layer のデコードロジックを再利用し、バスの peek を使うことで
アクセスログを汚さないようにします。
"""
from typing import List

from chip8_tracer.common.errors import UnimplementedInstructionError
from chip8_tracer.common.types import DisassemblyLine
from chip8_tracer.transport.bus import Bus
from chip8_tracer.arch.chip8.state import INSTRUCTION_LENGTH
from chip8_tracer.arch.chip8.instructions import assemble_word, decode_opcode


# @intent:responsibility 単一の命令語をテキストに変換します。未定義の語はデータ定義（DW）として表します。
def format_word(word: int) -> str:
    try:
        operation = decode_opcode(word)
    except UnimplementedInstructionError:
        return f"DW ${word:04X}"
    text = operation.mnemonic
    if operation.operands:
        text += " " + ", ".join(operation.operands)
    return text


# @intent:responsibility 指定されたメモリ範囲を逆アセンブルし、表示用データを生成します。
def disassemble(bus: Bus, start_addr: int, length: int) -> List[DisassemblyLine]:
    """
    指定された範囲（バイト数）のメモリを2バイト単位で逆アセンブルします。

    Returns:
        DisassemblyLine (address, hex_bytes, text) のリスト。
    """
    result = []
    current_addr = start_addr
    end_addr = start_addr + length

    while current_addr < end_addr:
        # メモリ境界チェック
        if not (bus.is_mapped(current_addr) and bus.is_mapped(current_addr + 1)):
            break

        high = bus.peek(current_addr)
        low = bus.peek(current_addr + 1)
        word = assemble_word(high, low)

        result.append(DisassemblyLine(current_addr, f"{high:02X} {low:02X}", format_word(word)))
        current_addr += INSTRUCTION_LENGTH

    return result
