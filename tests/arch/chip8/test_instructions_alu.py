# tests/arch/chip8/test_instructions_alu.py
"""
CHIP-8 算術論理演算命令 (7xkk, 8xy_) の単体テスト。
VF への副作用は主結果とは独立に検証します。
"""
import pytest

from chip8_tracer.arch.chip8.cpu import Chip8Cpu
from chip8_tracer.arch.chip8.instructions import decode_opcode, execute_instruction

# @intent:test_suite 8ビットのラップアラウンド演算とフラグ規約の検証。

SHIFT_VALUES = [0x00, 0x01, 0x80, 0x81, 0xFF]


@pytest.fixture
def cpu():
    return Chip8Cpu()


def execute(cpu, word):
    """命令語を1つデコードして実行します（PCは通常の実行と同様に先に進めます）。"""
    state = cpu.get_state()
    op = decode_opcode(word)
    state.pc += op.length
    execute_instruction(op, state, cpu.bus)
    return state


def run_all_pairs(cpu, word):
    """
    V0 = a, V1 = b の全 256 x 256 通りで命令を実行し、(a, b, V0, VF) を順に返します。
    """
    op = decode_opcode(word)
    state = cpu.get_state()
    for a in range(256):
        for b in range(256):
            state.v[0] = a
            state.v[1] = b
            execute_instruction(op, state, cpu.bus)
            yield a, b, state.v[0], state.v[0xF]


class TestAddRegister:
    # @intent:test_case_property 全ての組み合わせで (a+b) mod 256 と carry フラグを検証します。
    def test_add_wraps_and_sets_carry(self, cpu):
        for a, b, result, flag in run_all_pairs(cpu, 0x8014):
            assert result == (a + b) % 256, (a, b)
            assert flag == (1 if a + b >= 256 else 0), (a, b)

    def test_add_clears_stale_flag(self, cpu):
        cpu.registers[0xF] = 1
        cpu.registers[2] = 3
        cpu.registers[3] = 4
        execute(cpu, 0x8234)
        assert cpu.registers[2] == 7
        assert cpu.registers[0xF] == 0


class TestAddImmediate:
    def test_add_immediate(self, cpu):
        cpu.registers[5] = 0x10
        execute(cpu, 0x7520)
        assert cpu.registers[5] == 0x30
        assert cpu.registers[0xF] == 0

    def test_add_immediate_overflow(self, cpu):
        cpu.registers[5] = 0xF0
        execute(cpu, 0x7520)
        assert cpu.registers[5] == 0x10
        assert cpu.registers[0xF] == 1


class TestSubtract:
    # @intent:test_case_property VF = NOT borrow の規約を検証します。
    def test_sub_flag_is_not_borrow(self, cpu):
        for a, b, result, flag in run_all_pairs(cpu, 0x8015):
            assert result == (a - b) % 256, (a, b)
            assert flag == (1 if a >= b else 0), (a, b)

    def test_subn_flag_is_not_borrow(self, cpu):
        for a, b, result, flag in run_all_pairs(cpu, 0x8017):
            assert result == (b - a) % 256, (a, b)
            assert flag == (1 if b >= a else 0), (a, b)

    def test_sub_equal_values_sets_flag(self, cpu):
        cpu.registers[3] = 0x42
        cpu.registers[4] = 0x42
        execute(cpu, 0x8345)
        assert cpu.registers[3] == 0
        assert cpu.registers[0xF] == 1


class TestShift:
    @pytest.mark.parametrize("value", SHIFT_VALUES)
    def test_shr_moves_bit0_into_flag(self, cpu, value):
        cpu.registers[0] = value
        execute(cpu, 0x8016)
        assert cpu.registers[0] == value >> 1
        assert cpu.registers[0xF] == value & 0x01

    @pytest.mark.parametrize("value", SHIFT_VALUES)
    def test_shl_moves_bit7_into_flag(self, cpu, value):
        cpu.registers[0] = value
        execute(cpu, 0x8018)
        assert cpu.registers[0] == (value << 1) & 0xFF
        assert cpu.registers[0xF] == (value >> 7) & 0x01

    def test_shr_ignores_y(self, cpu):
        cpu.registers[2] = 0x05
        cpu.registers[7] = 0xFF
        execute(cpu, 0x8276)
        assert cpu.registers[2] == 0x02
        assert cpu.registers[7] == 0xFF
        assert cpu.registers[0xF] == 1


class TestBitwise:
    def test_or(self, cpu):
        cpu.registers[0] = 0b1010_0000
        cpu.registers[1] = 0b0000_0101
        execute(cpu, 0x8011)
        assert cpu.registers[0] == 0b1010_0101

    def test_and(self, cpu):
        cpu.registers[0] = 0xAA
        cpu.registers[1] = 0x0F
        execute(cpu, 0x8012)
        assert cpu.registers[0] == 0x0A

    def test_xor(self, cpu):
        cpu.registers[0] = 0xFF
        cpu.registers[1] = 0x0F
        execute(cpu, 0x8013)
        assert cpu.registers[0] == 0xF0

    def test_bitwise_ops_leave_flag_untouched(self, cpu):
        cpu.registers[0xF] = 0x01
        cpu.registers[0] = 0xFF
        cpu.registers[1] = 0x00
        execute(cpu, 0x8012)
        assert cpu.registers[0] == 0x00
        assert cpu.registers[0xF] == 0x01

    def test_move(self, cpu):
        cpu.registers[9] = 0x77
        execute(cpu, 0x8A90)
        assert cpu.registers[0xA] == 0x77
        assert cpu.registers[9] == 0x77


class TestLoadImmediate:
    def test_ld_immediate(self, cpu):
        execute(cpu, 0x6C9E)
        assert cpu.registers[0xC] == 0x9E


class TestFlagRegisterAsDestination:
    # @intent:test_case_edge VF 自身が演算先の場合、加減算はフラグ、シフトは演算結果が残ります。
    def test_add_into_vf_keeps_flag(self, cpu):
        cpu.registers[0xF] = 0xF0
        cpu.registers[1] = 0x20
        execute(cpu, 0x8F14)
        assert cpu.registers[0xF] == 1

    def test_sub_into_vf_keeps_flag(self, cpu):
        cpu.registers[0xF] = 0x10
        cpu.registers[1] = 0x20
        execute(cpu, 0x8F15)
        assert cpu.registers[0xF] == 0

    def test_shl_into_vf_keeps_result(self, cpu):
        cpu.registers[0xF] = 0x81
        execute(cpu, 0x8F08)
        assert cpu.registers[0xF] == 0x02
