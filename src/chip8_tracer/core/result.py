# chip8_tracer/core/result.py
"""
実行結果の型定義。

run() の終了理由を例外ではなく値として表現し、正常終了（HALT）と
各種フォルトを呼び出し元が区別できるようにします。
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from chip8_tracer.common.errors import ExecutionFault, FaultKind


class RunOutcome(Enum):
    HALTED = "HALTED"                 # HALT命令による正常終了
    FAULTED = "FAULTED"               # 構造的違反による異常終了
    BREAKPOINT = "BREAKPOINT"         # デバッガのブレークポイントで停止
    LIMIT_REACHED = "LIMIT_REACHED"   # デバッガの命令数上限に到達
    STOPPED = "STOPPED"               # デバッガの stop() による停止


# @intent:responsibility 1回の実行の終了理由と統計を保持します。
@dataclass(frozen=True)
class RunResult:
    outcome: RunOutcome
    steps: int = 0
    pc: int = 0
    fault: Optional[ExecutionFault] = None

    @property
    def halted(self) -> bool:
        return self.outcome is RunOutcome.HALTED

    @property
    def fault_kind(self) -> Optional[FaultKind]:
        return self.fault.kind if self.fault is not None else None
