# chip8_tracer/arch/chip8/instructions/alu.py
"""
算術論理演算命令の実装。

全ての演算は8ビットのラップアラウンドで行われ、キャリー/ボロー/シフトアウトビットは
戻り値ではなく VF レジスタへの副作用として書き込まれます。
"""
from chip8_tracer.common.errors import UnimplementedInstructionError
from chip8_tracer.transport.bus import Bus
from chip8_tracer.arch.chip8.state import Chip8CpuState, FLAG_REGISTER
from .base import Chip8Operation, InstructionKind, make_operation, reg, imm

# @intent:map 8xy_ ファミリの下位ニブルから命令種別への対応表。
REGISTER_GROUP_KINDS = {
    0x0: InstructionKind.LD_REG,
    0x1: InstructionKind.OR,
    0x2: InstructionKind.AND,
    0x3: InstructionKind.XOR,
    0x4: InstructionKind.ADD_REG,
    0x5: InstructionKind.SUB,
    0x6: InstructionKind.SHR,
    0x7: InstructionKind.SUBN,
    0x8: InstructionKind.SHL,
}

# --- 7xkk ADD Vx, byte ---
def decode_add_imm(word: int) -> Chip8Operation:
    return make_operation(InstructionKind.ADD_IMM, word, [reg((word >> 8) & 0xF), imm(word & 0xFF)])

# @intent:responsibility Vx に kk を加算し、符号なしオーバーフローを VF に記録します。
def execute_add_imm(state: Chip8CpuState, bus: Bus, op: Chip8Operation) -> None:
    res = state.v[op.x] + op.kk
    state.v[op.x] = res & 0xFF
    state.v[FLAG_REGISTER] = 1 if res > 0xFF else 0

# --- 8xy_ ---
# @intent:responsibility 2レジスタ演算ファミリを下位ニブルで二段目の分類を行いデコードします。
def decode_register_group(word: int) -> Chip8Operation:
    kind = REGISTER_GROUP_KINDS.get(word & 0xF)
    if kind is None:
        raise UnimplementedInstructionError(word)
    return make_operation(kind, word, [reg((word >> 8) & 0xF), reg((word >> 4) & 0xF)])

def execute_or(state: Chip8CpuState, bus: Bus, op: Chip8Operation) -> None:
    state.v[op.x] = state.v[op.x] | state.v[op.y]

def execute_and(state: Chip8CpuState, bus: Bus, op: Chip8Operation) -> None:
    state.v[op.x] = state.v[op.x] & state.v[op.y]

def execute_xor(state: Chip8CpuState, bus: Bus, op: Chip8Operation) -> None:
    state.v[op.x] = state.v[op.x] ^ state.v[op.y]

# @intent:responsibility Vx = Vx + Vy。VF = 1 (和が8ビットを超えた場合)。
def execute_add_reg(state: Chip8CpuState, bus: Bus, op: Chip8Operation) -> None:
    res = state.v[op.x] + state.v[op.y]
    state.v[op.x] = res & 0xFF
    state.v[FLAG_REGISTER] = 1 if res > 0xFF else 0

# @intent:responsibility Vx = Vx - Vy。VF = NOT borrow (演算前に Vx >= Vy なら 1)。
def execute_sub(state: Chip8CpuState, bus: Bus, op: Chip8Operation) -> None:
    v1 = state.v[op.x]
    v2 = state.v[op.y]
    state.v[op.x] = (v1 - v2) & 0xFF
    state.v[FLAG_REGISTER] = 1 if v1 >= v2 else 0

# @intent:responsibility Vx = Vy - Vx。VF = NOT borrow (演算前に Vy >= Vx なら 1)。
def execute_subn(state: Chip8CpuState, bus: Bus, op: Chip8Operation) -> None:
    v1 = state.v[op.x]
    v2 = state.v[op.y]
    state.v[op.x] = (v2 - v1) & 0xFF
    state.v[FLAG_REGISTER] = 1 if v2 >= v1 else 0

# @intent:responsibility Vx を1ビット右シフトし、シフト前の最下位ビットを VF に格納します。
def execute_shr(state: Chip8CpuState, bus: Bus, op: Chip8Operation) -> None:
    v1 = state.v[op.x]
    state.v[FLAG_REGISTER] = v1 & 0x01
    state.v[op.x] = v1 >> 1

# @intent:responsibility Vx を1ビット左シフト（下位8ビットを保持）し、シフト前の最上位ビットを VF に格納します。
def execute_shl(state: Chip8CpuState, bus: Bus, op: Chip8Operation) -> None:
    v1 = state.v[op.x]
    state.v[FLAG_REGISTER] = (v1 & 0x80) >> 7
    state.v[op.x] = (v1 << 1) & 0xFF
