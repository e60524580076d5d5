# chip8_tracer/arch/chip8/instructions/base.py
"""
CHIP-8 命令実装用の共通定義。

命令語のフィールド分解、命令種別の列挙、デコード結果を表す Chip8Operation を提供します。
"""
from dataclasses import dataclass
from enum import Enum, auto
from typing import NamedTuple, Optional

from chip8_tracer.core.snapshot import Operation
from chip8_tracer.arch.chip8.state import INSTRUCTION_LENGTH


# @intent:responsibility デコード結果として取り得る命令種別を列挙します（閉じた集合）。
class InstructionKind(Enum):
    HALT = auto()     # 0000
    RET = auto()      # 00EE
    JP = auto()       # 1nnn
    CALL = auto()     # 2nnn
    SE_IMM = auto()   # 3xkk
    SNE_IMM = auto()  # 4xkk
    SE_REG = auto()   # 5xy0
    LD_IMM = auto()   # 6xkk
    ADD_IMM = auto()  # 7xkk
    LD_REG = auto()   # 8xy0
    OR = auto()       # 8xy1
    AND = auto()      # 8xy2
    XOR = auto()      # 8xy3
    ADD_REG = auto()  # 8xy4
    SUB = auto()      # 8xy5
    SHR = auto()      # 8xy6
    SUBN = auto()     # 8xy7
    SHL = auto()      # 8xy8
    SNE_REG = auto()  # 9xy0

# @intent:map 命令種別からニーモニックへの対応表。アセンブラ・逆アセンブラと共有します。
MNEMONICS = {
    InstructionKind.HALT: "HALT",
    InstructionKind.RET: "RET",
    InstructionKind.JP: "JP",
    InstructionKind.CALL: "CALL",
    InstructionKind.SE_IMM: "SE",
    InstructionKind.SNE_IMM: "SNE",
    InstructionKind.SE_REG: "SE",
    InstructionKind.LD_IMM: "LD",
    InstructionKind.ADD_IMM: "ADD",
    InstructionKind.LD_REG: "LD",
    InstructionKind.OR: "OR",
    InstructionKind.AND: "AND",
    InstructionKind.XOR: "XOR",
    InstructionKind.ADD_REG: "ADD",
    InstructionKind.SUB: "SUB",
    InstructionKind.SHR: "SHR",
    InstructionKind.SUBN: "SUBN",
    InstructionKind.SHL: "SHL",
    InstructionKind.SNE_REG: "SNE",
}


# @intent:data_structure 16ビット命令語から切り出した各フィールド。
class InstructionFields(NamedTuple):
    group: int  # bits 15-12
    x: int      # bits 11-8
    y: int      # bits 7-4
    subop: int  # bits 3-0
    kk: int     # bits 7-0
    nnn: int    # bits 11-0


# @intent:utility_function 命令語をフィールドに分解します。状態を一切変更しない純粋関数です。
def decode_fields(word: int) -> InstructionFields:
    return InstructionFields(
        group=(word >> 12) & 0xF,
        x=(word >> 8) & 0xF,
        y=(word >> 4) & 0xF,
        subop=word & 0xF,
        kk=word & 0xFF,
        nnn=word & 0x0FFF,
    )


# @intent:utility_function 2バイトをビッグエンディアンで命令語に組み立てます。
def assemble_word(high: int, low: int) -> int:
    return ((high & 0xFF) << 8) | (low & 0xFF)


# @intent:responsibility デコード済みの CHIP-8 命令。命令種別とオペランドを保持します。
@dataclass(frozen=True)
class Chip8Operation(Operation):
    """
    Operation に CHIP-8 固有の命令種別と分解済みフィールドを加えたもの。
    実行側は kind だけを見て振る舞いを選択します。
    """
    kind: Optional[InstructionKind] = None
    word: int = 0
    x: int = 0
    y: int = 0
    kk: int = 0
    nnn: int = 0


# @intent:utility_function 命令語と種別から Chip8Operation を組み立てます。
def make_operation(kind: InstructionKind, word: int, operands=None) -> Chip8Operation:
    fields = decode_fields(word)
    return Chip8Operation(
        opcode_hex=f"{word:04X}",
        mnemonic=MNEMONICS[kind],
        operands=list(operands or []),
        operand_bytes=[(word >> 8) & 0xFF, word & 0xFF],
        cycle_count=1,
        length=INSTRUCTION_LENGTH,
        kind=kind,
        word=word,
        x=fields.x,
        y=fields.y,
        kk=fields.kk,
        nnn=fields.nnn,
    )


def reg(index: int) -> str:
    return f"V{index:X}"


def imm(value: int) -> str:
    return f"${value:02X}"


def addr(value: int) -> str:
    return f"${value:03X}"
