# tests/debugger/test_debugger.py
"""
chip8_tracer.debugger.debuggerモジュールの単体テスト。
Debuggerの実行制御、ブレークポイント管理、および巻き戻し機能を検証します。
"""
import pytest

from chip8_tracer.arch.chip8.cpu import Chip8Cpu
from chip8_tracer.common.errors import FaultKind
from chip8_tracer.core.result import RunOutcome
from chip8_tracer.debugger.debugger import Debugger, BreakpointCondition, BreakpointConditionType

# @intent:test_suite デバッガのブレークポイントと実行制御機能の検証。

# LD V0, 5 / ADD V0, 1 / ADD V0, 1 / HALT
COUNT_PROGRAM = [0x6005, 0x7001, 0x7001, 0x0000]


@pytest.fixture
def setup_debugger():
    cpu = Chip8Cpu()
    cpu.load_program(COUNT_PROGRAM)
    return Debugger(cpu), cpu


class TestBreakpointManagement:
    def test_add_update_remove_breakpoint(self, setup_debugger):
        debugger, _ = setup_debugger
        bp1 = BreakpointCondition(BreakpointConditionType.PC_MATCH, value=0x204)
        bp2 = BreakpointCondition(BreakpointConditionType.MEMORY_READ, address=0x300)

        debugger.add_breakpoint(bp1)
        debugger.add_breakpoint(bp2)
        debugger.add_breakpoint(bp1)  # 重複追加は無視される
        assert debugger.get_breakpoints() == [bp1, bp2]

        bp3 = BreakpointCondition(BreakpointConditionType.PC_MATCH, value=0x206)
        debugger.update_breakpoint(bp1, bp3)
        assert debugger.get_breakpoints() == [bp3, bp2]

        debugger.remove_breakpoint(bp2)
        debugger.remove_breakpoint(bp2)  # 存在しないブレークポイントの削除はエラーにならない
        assert debugger.get_breakpoints() == [bp3]


class TestDebuggerRun:
    def test_run_until_halt(self, setup_debugger):
        debugger, cpu = setup_debugger
        result = debugger.run()
        assert result.outcome is RunOutcome.HALTED
        assert result.steps == 4
        assert cpu.registers[0] == 7
        assert len(debugger.get_history()) == 4
        assert debugger.get_last_snapshot().operation.mnemonic == "HALT"

        # HALT後の再実行は次の命令（ゼロ埋めされた 0x208 の HALT）から再開する
        again = debugger.run()
        assert again.outcome is RunOutcome.HALTED
        assert again.steps == 1
        assert again.pc == 0x20A

    def test_run_resumes_after_halt(self):
        cpu = Chip8Cpu()
        cpu.load_program([0x0000, 0x6007, 0x0000])
        debugger = Debugger(cpu)
        assert debugger.run().steps == 1
        result = debugger.run()
        assert result.outcome is RunOutcome.HALTED
        assert result.steps == 2
        assert cpu.registers[0] == 7

    def test_instruction_limit(self, setup_debugger):
        debugger, cpu = setup_debugger
        result = debugger.run(max_instructions=2)
        assert result.outcome is RunOutcome.LIMIT_REACHED
        assert result.steps == 2
        assert result.pc == 0x204
        assert cpu.registers[0] == 6

    def test_pc_breakpoint_and_resume(self, setup_debugger):
        debugger, cpu = setup_debugger
        debugger.add_breakpoint(BreakpointCondition(BreakpointConditionType.PC_MATCH, value=0x204))

        result = debugger.run()
        assert result.outcome is RunOutcome.BREAKPOINT
        assert result.pc == 0x204
        assert cpu.registers[0] == 6

        # 停止したアドレスから再開できる
        result = debugger.run()
        assert result.outcome is RunOutcome.HALTED
        assert result.steps == 2

    def test_disabled_breakpoint_is_ignored(self, setup_debugger):
        debugger, _ = setup_debugger
        debugger.add_breakpoint(
            BreakpointCondition(BreakpointConditionType.PC_MATCH, value=0x204, enabled=False)
        )
        assert debugger.run().outcome is RunOutcome.HALTED

    def test_memory_read_breakpoint(self, setup_debugger):
        debugger, _ = setup_debugger
        debugger.add_breakpoint(BreakpointCondition(BreakpointConditionType.MEMORY_READ, address=0x203))
        result = debugger.run()
        assert result.outcome is RunOutcome.BREAKPOINT
        assert result.steps == 2

    def test_register_value_breakpoint(self, setup_debugger):
        debugger, cpu = setup_debugger
        debugger.add_breakpoint(
            BreakpointCondition(BreakpointConditionType.REGISTER_VALUE, register_name="V0", value=6)
        )
        result = debugger.run()
        assert result.outcome is RunOutcome.BREAKPOINT
        assert result.steps == 2
        assert cpu.registers[0] == 6

    def test_register_change_breakpoint_on_flag(self):
        cpu = Chip8Cpu()
        # LD V0, $FF / ADD V0, 1 (キャリー発生) / HALT
        cpu.load_program([0x60FF, 0x7001, 0x0000])
        debugger = Debugger(cpu)
        debugger.add_breakpoint(
            BreakpointCondition(BreakpointConditionType.REGISTER_CHANGE, register_name="VF")
        )
        result = debugger.run()
        assert result.outcome is RunOutcome.BREAKPOINT
        assert result.steps == 2
        assert cpu.registers[0xF] == 1

    def test_fault_is_reported_as_result(self):
        cpu = Chip8Cpu()
        cpu.load_program([0x6001, 0x5121])
        debugger = Debugger(cpu)
        result = debugger.run()
        assert result.outcome is RunOutcome.FAULTED
        assert result.fault_kind is FaultKind.UNIMPLEMENTED_INSTRUCTION
        assert result.fault.pc == 0x202
        assert result.steps == 1
        assert len(debugger.get_history()) == 1

    def test_stop_ends_run(self, setup_debugger, monkeypatch):
        debugger, _ = setup_debugger
        original = debugger.step_instruction

        def step_then_stop():
            snapshot = original()
            debugger.stop()
            return snapshot

        monkeypatch.setattr(debugger, "step_instruction", step_then_stop)
        result = debugger.run()
        assert result.outcome is RunOutcome.STOPPED
        assert result.steps == 1


class TestStepBack:
    def test_step_back_restores_previous_state(self, setup_debugger):
        debugger, cpu = setup_debugger
        debugger.step_instruction()
        debugger.step_instruction()
        assert cpu.registers[0] == 6

        previous = debugger.step_back()
        assert previous is debugger.get_last_snapshot()
        assert cpu.get_state().pc == 0x202
        assert cpu.registers[0] == 5

        assert debugger.step_back() is None
        assert cpu.get_state().pc == 0x200
        assert cpu.registers[0] == 0
        assert debugger.step_back() is None

    def test_step_back_restores_halt(self, setup_debugger):
        debugger, cpu = setup_debugger
        debugger.run()
        assert cpu.halted
        debugger.step_back()
        assert not cpu.halted
        assert cpu.get_state().pc == 0x206

    def test_step_back_undoes_memory_writes(self, setup_debugger, monkeypatch):
        debugger, cpu = setup_debugger
        cpu.bus.load(0x300, 0x11)
        original_execute = cpu._execute

        # 命令実行中のメモリ書き込みを模擬する
        def execute_with_write(operation):
            original_execute(operation)
            cpu.bus.write(0x300, 0xAA)

        monkeypatch.setattr(cpu, "_execute", execute_with_write)
        snapshot = debugger.step_instruction()
        assert cpu.bus.peek(0x300) == 0xAA
        assert snapshot.bus_activity[-1].previous_data == 0x11

        debugger.step_back()
        assert cpu.bus.peek(0x300) == 0x11
        assert cpu.get_state().pc == 0x200
