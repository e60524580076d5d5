# tests/arch/chip8/test_decode.py
"""
命令語のフィールド分解とディスパッチ（二段階分類）の単体テスト。
"""
import pytest

from chip8_tracer.arch.chip8.instructions import decode_opcode, decode_fields
from chip8_tracer.arch.chip8.instructions.base import InstructionKind
from chip8_tracer.arch.chip8.instructions.maps import EXECUTE_MAP
from chip8_tracer.common.errors import FaultKind, UnimplementedInstructionError

# @intent:test_suite デコードが純粋で、全パターンが正しい命令種別に分類されることを検証します。

class TestDecodeFields:
    def test_fields_of_word(self):
        fields = decode_fields(0x8AB4)
        assert fields.group == 0x8
        assert fields.x == 0xA
        assert fields.y == 0xB
        assert fields.subop == 0x4
        assert fields.kk == 0xB4
        assert fields.nnn == 0xAB4


class TestDecodeOpcode:
    @pytest.mark.parametrize("word, kind", [
        (0x0000, InstructionKind.HALT),
        (0x00EE, InstructionKind.RET),
        (0x1234, InstructionKind.JP),
        (0x2400, InstructionKind.CALL),
        (0x3A12, InstructionKind.SE_IMM),
        (0x4A12, InstructionKind.SNE_IMM),
        (0x5AB0, InstructionKind.SE_REG),
        (0x6A12, InstructionKind.LD_IMM),
        (0x7A12, InstructionKind.ADD_IMM),
        (0x8AB0, InstructionKind.LD_REG),
        (0x8AB1, InstructionKind.OR),
        (0x8AB2, InstructionKind.AND),
        (0x8AB3, InstructionKind.XOR),
        (0x8AB4, InstructionKind.ADD_REG),
        (0x8AB5, InstructionKind.SUB),
        (0x8AB6, InstructionKind.SHR),
        (0x8AB7, InstructionKind.SUBN),
        (0x8AB8, InstructionKind.SHL),
        (0x9AB0, InstructionKind.SNE_REG),
    ])
    def test_word_maps_to_kind(self, word, kind):
        op = decode_opcode(word)
        assert op.kind is kind
        assert op.word == word
        assert op.length == 2
        assert op.opcode_hex == f"{word:04X}"

    def test_operands_are_extracted(self):
        op = decode_opcode(0x2ABC)
        assert op.nnn == 0xABC
        assert op.operands == ["$ABC"]

        op = decode_opcode(0x6C9E)
        assert (op.x, op.kk) == (0xC, 0x9E)
        assert op.operands == ["VC", "$9E"]

        op = decode_opcode(0x8F14)
        assert (op.x, op.y) == (0xF, 0x1)
        assert op.operands == ["VF", "V1"]

    @pytest.mark.parametrize("word", [
        0x0001, 0x00E0, 0x00EF, 0x0200,  # 0グループは完全一致のみ
        0x5121, 0x912F,                  # 下位ニブルが0でないレジスタ比較
        0x8009, 0x800E, 0x800F,          # 未定義の subop
        0xA000, 0xB123, 0xC0FF, 0xD123, 0xE09E, 0xF007, 0xFFFF,
    ])
    def test_unknown_words_raise_with_word(self, word):
        with pytest.raises(UnimplementedInstructionError) as exc_info:
            decode_opcode(word)
        assert exc_info.value.word == word
        assert exc_info.value.kind is FaultKind.UNIMPLEMENTED_INSTRUCTION
        assert f"{word:#06x}" in str(exc_info.value)

    def test_non_16bit_word_is_rejected(self):
        with pytest.raises(ValueError):
            decode_opcode(0x10000)

    def test_every_kind_has_an_executor(self):
        assert set(EXECUTE_MAP) == set(InstructionKind)
