# chip8_tracer/debugger/debugger.py
"""
デバッガモジュール。

コアエンジンの実行を制御し、ユーザーが指定した条件（ブレークポイント）や
命令数の上限で実行を中断させる責務を負います。
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from chip8_tracer.common.errors import ExecutionFault
from chip8_tracer.core.cpu import AbstractCpu
from chip8_tracer.core.result import RunOutcome, RunResult
from chip8_tracer.core.snapshot import Snapshot
from chip8_tracer.core.state import CpuState
from chip8_tracer.transport.bus import BusAccessType

logger = logging.getLogger(__name__)

# @intent:responsibility ブレークポイントの条件タイプを定義します。
class BreakpointConditionType(Enum):
    PC_MATCH = "PC_MATCH"               # プログラムカウンタが特定のアドレスに一致
    MEMORY_READ = "MEMORY_READ"         # 特定のアドレスが読み込まれた
    MEMORY_WRITE = "MEMORY_WRITE"       # 特定のアドレスに書き込まれた
    REGISTER_VALUE = "REGISTER_VALUE"   # 特定のレジスタが特定の値になった
    REGISTER_CHANGE = "REGISTER_CHANGE" # 特定のレジスタの値が変化した

# @intent:responsibility ブレークポイントをトリガーする条件を定義します。
@dataclass(frozen=True)
class BreakpointCondition:
    """
    ブレークポイントがヒットするための条件を定義するデータクラス。
    register_name は get_register_map() のキー（"V0" など）です。
    """
    condition_type: BreakpointConditionType
    value: Optional[int] = None           # PC_MATCH, REGISTER_VALUEで使用
    address: Optional[int] = None         # MEMORY_READ, MEMORY_WRITEで使用
    register_name: Optional[str] = None   # REGISTER_VALUE, REGISTER_CHANGEで使用
    enabled: bool = True

# @intent:responsibility コアエンジンの実行制御とブレークポイント管理を行います。
class Debugger:
    """
    CPUの実行を制御し、ブレークポイントの管理を行うクラス。
    コア自体は実行回数の上限を持たないため、有限回の実行が必要な場合はこのクラスを介します。
    """
    def __init__(self, cpu: AbstractCpu):
        self._cpu = cpu
        self._breakpoints: List[BreakpointCondition] = []
        self._running: bool = False
        self._previous_registers: Dict[str, int] = cpu.get_register_map()
        self._last_snapshot: Optional[Snapshot] = None
        # @intent:responsibility 実行履歴を保持し、step_back による巻き戻しをサポートします。
        self._history: List[Snapshot] = []
        self._initial_state: CpuState = cpu.get_state().copy()

    def add_breakpoint(self, condition: BreakpointCondition) -> None:
        if condition not in self._breakpoints:
            self._breakpoints.append(condition)

    def update_breakpoint(self, old_condition: BreakpointCondition, new_condition: BreakpointCondition) -> None:
        if old_condition in self._breakpoints:
            idx = self._breakpoints.index(old_condition)
            self._breakpoints[idx] = new_condition

    def remove_breakpoint(self, condition: BreakpointCondition) -> None:
        if condition in self._breakpoints:
            self._breakpoints.remove(condition)

    def get_breakpoints(self) -> List[BreakpointCondition]:
        return list(self._breakpoints)

    def get_history(self) -> List[Snapshot]:
        return list(self._history)

    def get_last_snapshot(self) -> Optional[Snapshot]:
        return self._last_snapshot

    def _pc_breakpoint_hit(self, pc: int) -> bool:
        return any(
            bp.enabled and bp.condition_type == BreakpointConditionType.PC_MATCH and bp.value == pc
            for bp in self._breakpoints
        )

    # @intent:responsibility Snapshotに基づいてPC_MATCH以外のブレークポイントをチェックします。
    def _check_other_breakpoints(self, snapshot: Snapshot) -> bool:
        registers = self._cpu.get_register_map()

        for bp in self._breakpoints:
            if not bp.enabled:
                continue

            if bp.condition_type == BreakpointConditionType.MEMORY_READ:
                for access in snapshot.bus_activity:
                    if access.access_type == BusAccessType.READ and access.address == bp.address:
                        return True
            elif bp.condition_type == BreakpointConditionType.MEMORY_WRITE:
                for access in snapshot.bus_activity:
                    if access.access_type == BusAccessType.WRITE and access.address == bp.address:
                        return True
            elif bp.condition_type == BreakpointConditionType.REGISTER_VALUE:
                if bp.register_name in registers and registers[bp.register_name] == bp.value:
                    return True
            elif bp.condition_type == BreakpointConditionType.REGISTER_CHANGE:
                name = bp.register_name
                if name in registers and name in self._previous_registers:
                    if registers[name] != self._previous_registers[name]:
                        return True
        return False

    # @intent:responsibility CPUを1命令分実行し、その結果のSnapshotを履歴に追加して返します。
    # @intent:post-condition 実行時フォルトはそのまま送出されます（履歴には追加されません）。
    def step_instruction(self) -> Snapshot:
        self._previous_registers = self._cpu.get_register_map()
        snapshot = self._cpu.step()
        self._last_snapshot = snapshot
        self._history.append(snapshot)
        return snapshot

    # @intent:responsibility 実行履歴を1つ戻り、CPUとメモリの状態を復元します。
    def step_back(self) -> Optional[Snapshot]:
        if not self._history:
            return None

        snapshot_to_revert = self._history.pop()

        # バスアクティビティを逆順にスキャンし、書き込み操作があれば元に戻す
        bus = self._cpu.bus
        for access in reversed(snapshot_to_revert.bus_activity):
            if access.access_type == BusAccessType.WRITE and access.previous_data is not None:
                bus.load(access.address, access.previous_data)

        if self._history:
            previous_snapshot = self._history[-1]
            self._cpu.restore_state(previous_snapshot.state)
            self._last_snapshot = previous_snapshot
            return previous_snapshot

        # 履歴が尽きた場合は初期状態に復元
        self._cpu.restore_state(self._initial_state)
        self._last_snapshot = None
        return None

    # @intent:responsibility HALT、フォルト、ブレークポイント、命令数上限のいずれかまで実行を継続します。
    def run(self, max_instructions: Optional[int] = None) -> RunResult:
        """
        CPUの実行を継続し、停止理由を RunResult として返します。
        開始時のPCにあるブレークポイントは、その場で停止しないよう1命令実行してから評価を始めます。
        """
        self._cpu.resume()
        self._running = True
        steps = 0

        def result(outcome: RunOutcome, fault: Optional[ExecutionFault] = None) -> RunResult:
            self._running = False
            return RunResult(outcome, steps=steps, pc=self._cpu.get_state().pc, fault=fault)

        first = True
        while self._running:
            if max_instructions is not None and steps >= max_instructions:
                logger.info("Instruction limit %d reached at PC %#05x", max_instructions, self._cpu.get_state().pc)
                return result(RunOutcome.LIMIT_REACHED)

            current_pc = self._cpu.get_state().pc
            if not first and self._pc_breakpoint_hit(current_pc):
                logger.info("Breakpoint hit at PC: %#05x", current_pc)
                return result(RunOutcome.BREAKPOINT)
            first = False

            try:
                snapshot = self.step_instruction()
            except ExecutionFault as fault:
                logger.error("Execution fault at PC %#05x: %s", fault.pc, fault)
                return result(RunOutcome.FAULTED, fault)
            steps += 1

            if self._cpu.halted:
                return result(RunOutcome.HALTED)

            if self._check_other_breakpoints(snapshot):
                logger.info("Breakpoint hit at PC: %#05x", snapshot.state.pc)
                return result(RunOutcome.BREAKPOINT)

        return result(RunOutcome.STOPPED)

    def stop(self) -> None:
        self._running = False
