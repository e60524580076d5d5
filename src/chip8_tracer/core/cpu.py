# chip8_tracer/core/cpu.py
"""
Core Layer (抽象CPU)

このモジュールは、CPUの基本的な状態管理と命令サイクルの駆動に関する抽象化を提供します。
具体的な命令の振る舞いはInstruction Layerに移譲されます。
"""
import logging
from abc import ABC, abstractmethod
from typing import Optional, List, Dict

from chip8_tracer.common.errors import ExecutionFault
from chip8_tracer.common.types import DisassemblyLine, SymbolMap, RegisterLayoutInfo
from chip8_tracer.core.result import RunOutcome, RunResult
from chip8_tracer.core.snapshot import Snapshot, Operation, Metadata
from chip8_tracer.core.state import CpuState
from chip8_tracer.transport.bus import Bus

logger = logging.getLogger(__name__)

# @intent:responsibility 抽象CPUの基本機能とインターフェースを定義します。
class AbstractCpu(ABC):
    """
    全てのCPUエミュレーションの基底となる抽象クラス。
    Busとのインターフェース、基本的な状態管理、命令サイクルの抽象化を提供します。
    """
    # @intent:pre-condition `bus`は有効なBusオブジェクトである必要があります。
    def __init__(self, bus: Bus):
        self._bus = bus
        self._state: CpuState = self._create_initial_state()
        self._cycle_count: int = 0
        self._symbol_map: SymbolMap = {}
        self._reverse_symbol_map: Dict[int, str] = {}
        # @intent:rationale Stateオブジェクトの直接操作を避けるため、protectedな命名規則を採用。
        #                  外部からのアクセスは`get_state()`メソッドを介して行う。

    # @intent:responsibility シンボルマップを設定します。
    def set_symbol_map(self, symbol_map: SymbolMap) -> None:
        self._symbol_map = dict(symbol_map)
        # 逆引きマップを作成して、アドレスからラベルを素早く引けるようにする
        self._reverse_symbol_map = {addr: name for name, addr in symbol_map.items()}

    def get_symbol_map(self) -> SymbolMap:
        return self._symbol_map

    @property
    def bus(self) -> Bus:
        return self._bus

    @property
    def cycle_count(self) -> int:
        return self._cycle_count

    # @intent:responsibility 初期状態のCpuStateオブジェクトを生成します。
    # @intent:rationale 各CPUアーキテクチャで初期状態が異なるため、抽象メソッドとして定義します。
    @abstractmethod
    def _create_initial_state(self) -> CpuState:
        """
        CPUの初期状態を生成して返します。
        """
        pass

    # @intent:responsibility CPUをリセットし、初期状態に戻します。
    def reset(self) -> None:
        """
        CPUのPCとSP、およびその他の状態を初期値にリセットします。
        """
        self._state = self._create_initial_state()
        self._cycle_count = 0

    def get_state(self) -> CpuState:
        return self._state

    # @intent:responsibility 保存された状態からCPUの状態を復元します。
    # @intent:rationale 呼び出し元が保持するオブジェクトとの共有を避けるため、必ず複製してから設定します。
    def restore_state(self, state: CpuState) -> None:
        self._state = state.copy()

    # @intent:responsibility HALT状態かどうかを返します。
    @property
    def halted(self) -> bool:
        return False

    # @intent:responsibility 直前の HALT を解除し、現在のPCから実行を再開できるようにします。
    def resume(self) -> None:
        pass

    # @intent:responsibility メモリから次の命令語をフェッチします。
    @abstractmethod
    def _fetch(self) -> int:
        """
        現在のPCから次の命令語を読み出して返します。PCは変更しません。
        """
        pass

    # @intent:responsibility フェッチした命令語を解析し、Operationオブジェクトに変換します。
    @abstractmethod
    def _decode(self, opcode: int) -> Operation:
        pass

    # @intent:responsibility デコードされた命令を実行し、CPUの状態を更新します。
    @abstractmethod
    def _execute(self, operation: Operation) -> None:
        pass

    # @intent:responsibility CPUを1命令サイクル進め、その結果のスナップショットを返します。
    # @intent:rationale Template Methodパターンを採用し、共通の実行フロー（ログクリア→フェッチ→デコード→PC更新→実行→Snapshot生成）を定義します。
    #                  アーキテクチャ固有の振る舞い（HALT処理など）はフックメソッドで対応します。
    # @intent:post-condition 構造的違反が起きた場合は ExecutionFault を送出し、pc にはその命令のアドレスが設定されます。
    def step(self) -> Snapshot:
        """
        CPUを1命令サイクル進め、その時点でのCPUとバスの状態を含むSnapshotオブジェクトを返します。
        """
        # 1. 前処理: 前サイクルまでの残存ログを破棄
        self._bus.get_and_clear_activity_log()
        initial_pc = self._state.pc

        # 2. HALT判定 (Hook)
        halt_snapshot = self._handle_halt(initial_pc)
        if halt_snapshot:
            return halt_snapshot

        try:
            # 3. フェッチ
            opcode = self._fetch()

            # 4. デコード
            operation = self._decode(opcode)

            # 5. PC更新 (Hook)
            self._update_pc(operation)

            # 6. 実行
            self._execute(operation)
        except ExecutionFault as fault:
            if fault.pc is None:
                fault.pc = initial_pc
            raise

        logger.debug("%04X: %s %s", initial_pc, operation.mnemonic, ", ".join(operation.operands))

        # 7. 後処理 & Snapshot生成
        return self._create_snapshot(initial_pc, operation)

    # @intent:responsibility HALT状態の場合の処理を行います。
    # @intent:return HALT中であればその状態のSnapshot、そうでなければNone。
    def _handle_halt(self, current_pc: int) -> Optional[Snapshot]:
        return None

    # @intent:responsibility 命令実行前にPCを更新します。
    def _update_pc(self, operation: Operation) -> None:
        self._state.pc = (self._state.pc + operation.length) & 0xFFFF

    # @intent:responsibility スナップショットを生成します。
    def _create_snapshot(self, initial_pc: int, operation: Operation) -> Snapshot:
        bus_activity = self._bus.get_and_clear_activity_log()
        self._cycle_count += operation.cycle_count

        symbol_label = self._reverse_symbol_map.get(initial_pc, "")
        symbol_info = f"{symbol_label}: " if symbol_label else ""
        symbol_info += f"{operation.mnemonic}"
        if operation.operands:
            symbol_info += " " + ", ".join(operation.operands)

        return Snapshot(
            state=self._state.copy(),
            operation=operation,
            metadata=Metadata(cycle_count=self._cycle_count, symbol_info=symbol_info),
            bus_activity=bus_activity
        )

    # @intent:responsibility HALTまたはフォルトまで命令を実行し続けます。
    # @intent:rationale 実行回数の上限は持ちません。上限が必要な呼び出し元は step() を
    #                  自前で数えるか、Debugger.run(max_instructions=...) を使用します。
    def run(self) -> RunResult:
        """
        現在のPCからHALTまたは構造的違反が発生するまで実行し、終了理由を返します。
        前回の実行がHALTで終わっていた場合は、その HALT 命令の次から再開します。
        """
        self.resume()
        steps = 0
        logger.info("Run started at PC %#05x", self._state.pc)
        while not self.halted:
            try:
                self.step()
            except ExecutionFault as fault:
                logger.error("Run aborted after %d steps: %s (PC %#05x)", steps, fault, fault.pc)
                return RunResult(RunOutcome.FAULTED, steps=steps, pc=self._state.pc, fault=fault)
            steps += 1
        logger.info("Halted after %d steps at PC %#05x", steps, self._state.pc)
        return RunResult(RunOutcome.HALTED, steps=steps, pc=self._state.pc)

    @abstractmethod
    def get_register_map(self) -> Dict[str, int]:
        """
        現在のレジスタ値を辞書形式で返す。
        """
        pass

    @abstractmethod
    def get_register_layout(self) -> List[RegisterLayoutInfo]:
        """
        レジスタをどのように配置・グループ化して表示すべきかの定義を返す。
        """
        pass

    @abstractmethod
    def get_flag_state(self) -> Dict[str, bool]:
        pass

    @abstractmethod
    def disassemble(self, start_addr: int, length: int) -> List[DisassemblyLine]:
        """
        指定されたメモリ範囲を逆アセンブルし、DisassemblyLine のリストを返す。
        """
        pass
