# chip8_tracer/arch/chip8/instructions/load.py
"""
データ転送命令の実装。
"""
from chip8_tracer.transport.bus import Bus
from chip8_tracer.arch.chip8.state import Chip8CpuState
from .base import Chip8Operation, InstructionKind, make_operation, reg, imm

# --- 6xkk LD Vx, byte ---
def decode_ld_imm(word: int) -> Chip8Operation:
    return make_operation(InstructionKind.LD_IMM, word, [reg((word >> 8) & 0xF), imm(word & 0xFF)])

# @intent:responsibility 即値 kk を Vx に格納します。
def execute_ld_imm(state: Chip8CpuState, bus: Bus, op: Chip8Operation) -> None:
    state.v[op.x] = op.kk

# --- 8xy0 LD Vx, Vy ---
# @intent:responsibility Vy の値を Vx にコピーします。
def execute_ld_reg(state: Chip8CpuState, bus: Bus, op: Chip8Operation) -> None:
    state.v[op.x] = state.v[op.y]
