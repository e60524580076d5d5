# chip8_tracer/arch/chip8/state.py
"""
CHIP-8 インタプリタ固有の状態定義。
"""
from dataclasses import dataclass, field
from typing import List

from chip8_tracer.core.state import CpuState

# @intent:constant メモリ構成とレジスタファイルの固定パラメータ。
MEMORY_SIZE = 0x1000      # 4096 bytes
PROGRAM_START = 0x200     # 実行可能領域の先頭（これより下はシステム予約領域）
REGISTER_COUNT = 16
FLAG_REGISTER = 0xF       # VF: キャリー/ボロー/シフトアウトビット
STACK_CAPACITY = 32
INSTRUCTION_LENGTH = 2

# @intent:responsibility CHIP-8 の全レジスタ（V0-VF, PC, SP）とコールスタックを保持します。
@dataclass
class Chip8CpuState(CpuState):
    """
    CHIP-8 インタプリタのレジスタ状態を保持するデータクラス。
    `sp` はコールスタックの次の空きスロットのインデックスです。
    """
    pc: int = PROGRAM_START
    v: bytearray = field(default_factory=lambda: bytearray(REGISTER_COUNT))
    stack: List[int] = field(default_factory=lambda: [0] * STACK_CAPACITY)
    halted: bool = False

    @property
    def vf(self) -> int:
        return self.v[FLAG_REGISTER]

    # @intent:responsibility 戻りアドレスをコールスタックへプッシュします。
    # @intent:pre-condition 呼び出し元で容量チェック済みであること。
    def push(self, address: int) -> None:
        if not 0 <= self.sp < STACK_CAPACITY:
            raise IndexError(f"Stack pointer {self.sp} out of range for push.")
        self.stack[self.sp] = address & 0xFFFF
        self.sp += 1

    # @intent:responsibility コールスタックから直近の戻りアドレスをポップします。
    def pop(self) -> int:
        if not 0 < self.sp <= STACK_CAPACITY:
            raise IndexError(f"Stack pointer {self.sp} out of range for pop.")
        self.sp -= 1
        return self.stack[self.sp]
