# chip8_tracer/arch/chip8/instructions/control.py
"""
制御命令（停止、ジャンプ、サブルーチン、条件スキップ）の実装。
"""
from chip8_tracer.common.errors import (
    ReservedMemoryCallError,
    StackOverflowError,
    StackUnderflowError,
    UnimplementedInstructionError,
)
from chip8_tracer.transport.bus import Bus
from chip8_tracer.arch.chip8.state import (
    Chip8CpuState,
    INSTRUCTION_LENGTH,
    PROGRAM_START,
    STACK_CAPACITY,
)
from .base import Chip8Operation, InstructionKind, make_operation, reg, imm, addr

# --- 0nnn (HALT / RET) ---
# @intent:responsibility 0グループの命令語をデコードします。完全一致の 0000 と 00EE のみを受け付けます。
def decode_system(word: int) -> Chip8Operation:
    if word == 0x0000:
        return make_operation(InstructionKind.HALT, word)
    if word == 0x00EE:
        return make_operation(InstructionKind.RET, word)
    raise UnimplementedInstructionError(word)

# @intent:responsibility HALT命令を実行し、実行ループを正常終了させます。
def execute_halt(state: Chip8CpuState, bus: Bus, op: Chip8Operation) -> None:
    state.halted = True

# @intent:responsibility RET命令を実行し、コールスタックから戻りアドレスをポップしてPCに設定します。
def execute_ret(state: Chip8CpuState, bus: Bus, op: Chip8Operation) -> None:
    if state.sp == 0:
        raise StackUnderflowError()
    state.pc = state.pop()

# --- 1nnn JP ---
def decode_jp(word: int) -> Chip8Operation:
    return make_operation(InstructionKind.JP, word, [addr(word & 0x0FFF)])

def execute_jp(state: Chip8CpuState, bus: Bus, op: Chip8Operation) -> None:
    state.pc = op.nnn

# --- 2nnn CALL ---
def decode_call(word: int) -> Chip8Operation:
    return make_operation(InstructionKind.CALL, word, [addr(word & 0x0FFF)])

# @intent:responsibility CALL命令を実行し、戻りアドレスをスタックにプッシュしてからジャンプします。
# @intent:pre-condition 呼び出し先が予約領域外で、スタックに空きがあること。違反時はSPを変更せずに中断します。
def execute_call(state: Chip8CpuState, bus: Bus, op: Chip8Operation) -> None:
    if op.nnn < PROGRAM_START:
        raise ReservedMemoryCallError(op.nnn)
    if state.sp >= STACK_CAPACITY:
        raise StackOverflowError(STACK_CAPACITY)

    # state.pc is already pointing to the NEXT instruction (advanced in AbstractCpu.step)
    state.push(state.pc)
    state.pc = op.nnn

# --- 3xkk / 4xkk ---
def decode_se_imm(word: int) -> Chip8Operation:
    return make_operation(InstructionKind.SE_IMM, word, [reg((word >> 8) & 0xF), imm(word & 0xFF)])

def decode_sne_imm(word: int) -> Chip8Operation:
    return make_operation(InstructionKind.SNE_IMM, word, [reg((word >> 8) & 0xF), imm(word & 0xFF)])

# @intent:responsibility Vx == kk の場合、次の命令をスキップします。
def execute_se_imm(state: Chip8CpuState, bus: Bus, op: Chip8Operation) -> None:
    if state.v[op.x] == op.kk:
        state.pc += INSTRUCTION_LENGTH

def execute_sne_imm(state: Chip8CpuState, bus: Bus, op: Chip8Operation) -> None:
    if state.v[op.x] != op.kk:
        state.pc += INSTRUCTION_LENGTH

# --- 5xy0 / 9xy0 ---
# @intent:responsibility レジスタ比較スキップ命令をデコードします。下位ニブルが0以外の語は未定義です。
def decode_se_reg(word: int) -> Chip8Operation:
    if word & 0xF:
        raise UnimplementedInstructionError(word)
    return make_operation(InstructionKind.SE_REG, word, [reg((word >> 8) & 0xF), reg((word >> 4) & 0xF)])

def decode_sne_reg(word: int) -> Chip8Operation:
    if word & 0xF:
        raise UnimplementedInstructionError(word)
    return make_operation(InstructionKind.SNE_REG, word, [reg((word >> 8) & 0xF), reg((word >> 4) & 0xF)])

def execute_se_reg(state: Chip8CpuState, bus: Bus, op: Chip8Operation) -> None:
    if state.v[op.x] == state.v[op.y]:
        state.pc += INSTRUCTION_LENGTH

def execute_sne_reg(state: Chip8CpuState, bus: Bus, op: Chip8Operation) -> None:
    if state.v[op.x] != state.v[op.y]:
        state.pc += INSTRUCTION_LENGTH
