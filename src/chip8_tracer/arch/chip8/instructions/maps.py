# chip8_tracer/arch/chip8/instructions/maps.py
"""
命令語と命令実装のマッピング定義。
"""
from . import load
from . import alu
from . import control
from .base import InstructionKind

# @intent:map 命令語の上位ニブル（グループ）からデコード関数へのマッピングテーブル。
# 0x8 グループは alu.decode_register_group 内で下位ニブルによる二段目の分類を行う。
DECODE_MAP = {
    0x0: control.decode_system,
    0x1: control.decode_jp,
    0x2: control.decode_call,
    0x3: control.decode_se_imm,
    0x4: control.decode_sne_imm,
    0x5: control.decode_se_reg,
    0x6: load.decode_ld_imm,
    0x7: alu.decode_add_imm,
    0x8: alu.decode_register_group,
    0x9: control.decode_sne_reg,
}

# @intent:map 命令種別から実行関数へのマッピングテーブル。InstructionKind の全メンバーを網羅する。
EXECUTE_MAP = {
    # Control
    InstructionKind.HALT: control.execute_halt,
    InstructionKind.RET: control.execute_ret,
    InstructionKind.JP: control.execute_jp,
    InstructionKind.CALL: control.execute_call,
    InstructionKind.SE_IMM: control.execute_se_imm,
    InstructionKind.SNE_IMM: control.execute_sne_imm,
    InstructionKind.SE_REG: control.execute_se_reg,
    InstructionKind.SNE_REG: control.execute_sne_reg,

    # Load
    InstructionKind.LD_IMM: load.execute_ld_imm,
    InstructionKind.LD_REG: load.execute_ld_reg,

    # ALU
    InstructionKind.ADD_IMM: alu.execute_add_imm,
    InstructionKind.OR: alu.execute_or,
    InstructionKind.AND: alu.execute_and,
    InstructionKind.XOR: alu.execute_xor,
    InstructionKind.ADD_REG: alu.execute_add_reg,
    InstructionKind.SUB: alu.execute_sub,
    InstructionKind.SHR: alu.execute_shr,
    InstructionKind.SUBN: alu.execute_subn,
    InstructionKind.SHL: alu.execute_shl,
}
