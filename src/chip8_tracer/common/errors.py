"""
実行時フォルト（構造的違反）の分類を定義するモジュール。

命令実行中に発生する致命的なエラーは全て ExecutionFault のサブクラスとして表現され、
FaultKind によって種類を区別できます。HALT命令による正常終了はフォルトではありません。
"""
from enum import Enum
from typing import Optional


# @intent:responsibility 実行時フォルトの種類を列挙します。
class FaultKind(Enum):
    UNIMPLEMENTED_INSTRUCTION = "UNIMPLEMENTED_INSTRUCTION"
    RESERVED_MEMORY_CALL = "RESERVED_MEMORY_CALL"
    STACK_OVERFLOW = "STACK_OVERFLOW"
    STACK_UNDERFLOW = "STACK_UNDERFLOW"
    OUT_OF_BOUNDS_FETCH = "OUT_OF_BOUNDS_FETCH"


# @intent:responsibility 全ての実行時フォルトの基底クラス。
# @intent:rationale 呼び出し元が種類ごとに except を書かなくても kind で分岐できるようにします。
class ExecutionFault(Exception):
    """
    命令実行を即座に中断させる構造的違反。
    `pc` はフォルトを起こした命令のアドレス（判明している場合）です。
    """
    kind: FaultKind

    def __init__(self, message: str, pc: Optional[int] = None):
        super().__init__(message)
        self.pc = pc


class UnimplementedInstructionError(ExecutionFault):
    """どのパターンにも一致しない命令語。"""
    kind = FaultKind.UNIMPLEMENTED_INSTRUCTION

    def __init__(self, word: int, pc: Optional[int] = None):
        super().__init__(f"Unimplemented instruction {word:#06x}", pc)
        self.word = word


class ReservedMemoryCallError(ExecutionFault):
    """システム予約領域へのサブルーチン呼び出し。"""
    kind = FaultKind.RESERVED_MEMORY_CALL

    def __init__(self, target: int, pc: Optional[int] = None):
        super().__init__(f"Call into reserved system memory at {target:#05x}", pc)
        self.target = target


class StackOverflowError(ExecutionFault):
    kind = FaultKind.STACK_OVERFLOW

    def __init__(self, capacity: int, pc: Optional[int] = None):
        super().__init__(f"Stack overflow: call stack capacity {capacity} exhausted", pc)
        self.capacity = capacity


class StackUnderflowError(ExecutionFault):
    kind = FaultKind.STACK_UNDERFLOW

    def __init__(self, pc: Optional[int] = None):
        super().__init__("Stack underflow: return with an empty call stack", pc)


class OutOfBoundsFetchError(ExecutionFault):
    """PC（またはその次のバイト）がメモリ外を指している。"""
    kind = FaultKind.OUT_OF_BOUNDS_FETCH

    def __init__(self, address: int, pc: Optional[int] = None):
        super().__init__(f"Instruction fetch out of bounds at {address:#06x}", pc)
        self.address = address
