# chip8_tracer/arch/chip8/instructions/__init__.py
"""
CHIP-8 命令セット実装パッケージ。
"""
from chip8_tracer.common.errors import UnimplementedInstructionError
from chip8_tracer.transport.bus import Bus
from chip8_tracer.arch.chip8.state import Chip8CpuState
from .base import Chip8Operation, InstructionKind, InstructionFields, decode_fields, assemble_word
from .maps import DECODE_MAP, EXECUTE_MAP

# @intent:responsibility 16ビット命令語をデコードします。
# @intent:post-condition どのパターンにも一致しない語は UnimplementedInstructionError を送出します。
def decode_opcode(word: int) -> Chip8Operation:
    """
    命令語を上位ニブルで一段目、必要に応じて下位ニブルで二段目の分類を行い、
    Chip8Operation を返します。CPUの状態には一切触れません。
    """
    if not 0 <= word <= 0xFFFF:
        raise ValueError(f"Instruction word {word} is not a 16-bit value.")
    decoder = DECODE_MAP.get(word >> 12)
    if decoder is None:
        raise UnimplementedInstructionError(word)
    return decoder(word)

# @intent:responsibility デコードされた命令を実行します。
def execute_instruction(operation: Chip8Operation, state: Chip8CpuState, bus: Bus) -> None:
    executor = EXECUTE_MAP.get(operation.kind)
    if executor is None:
        raise UnimplementedInstructionError(operation.word)
    executor(state, bus, operation)
