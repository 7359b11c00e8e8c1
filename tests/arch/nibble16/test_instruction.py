# tests/arch/nibble16/test_instruction.py
"""
nibble_tracer.arch.nibble16.instructionモジュールの単体テスト。
"""
import pytest
from nibble_tracer.arch.nibble16.instruction import Instruction

# @intent:test_suite 16ビット命令語のフィールド分解が全ての値に対して整合していることを検証します。

ALL_WORDS = range(0x10000)

class TestInstructionFields:
    def test_fields_of_sample_word(self):
        instr = Instruction(0x8AB4)
        assert instr.opcode == 0x8
        assert instr.x == 0xA
        assert instr.y == 0xB
        assert instr.n == 0x4
        assert instr.kk == 0xB4
        assert instr.nnn == 0xAB4
        assert str(instr) == "8AB4"

    # @intent:test_case_exhaustive 全ての16ビット値について、各フィールドから元の命令語が再構成できることを検証します。
    def test_fields_reconstruct_every_word(self):
        for w in ALL_WORDS:
            instr = Instruction(w)
            assert instr.opcode == w >> 12
            assert (instr.opcode << 12) | instr.nnn == w
            assert (instr.opcode << 12) | (instr.x << 8) | instr.kk == w
            assert (instr.opcode << 12) | (instr.x << 8) | (instr.y << 4) | instr.n == w

    def test_bytes_roundtrip_every_word(self):
        for w in ALL_WORDS:
            hi, lo = Instruction(w).to_bytes()
            assert Instruction.from_bytes([hi, lo]).word == w

    # @intent:test_case_idempotent 同じ命令語を二度デコードしても結果が変わらないことを検証します。
    def test_decode_is_idempotent(self):
        for w in (0x0000, 0x1234, 0x8FFE, 0xFFFF):
            assert Instruction(w) == Instruction(Instruction(w).word)

    def test_word_is_masked_to_16_bits(self):
        assert Instruction(0x1_2345).word == 0x2345

    def test_from_bytes_requires_two_bytes(self):
        with pytest.raises(ValueError, match="exactly 2 bytes"):
            Instruction.from_bytes([0x12])
        with pytest.raises(ValueError, match="exactly 2 bytes"):
            Instruction.from_bytes([0x12, 0x34, 0x56])

    def test_constructors(self):
        assert Instruction.from_fields(0x8, 0x0, 0x1, 0x4).word == 0x8014
        assert Instruction.from_address(0x2, 0x345).word == 0x2345
        assert Instruction.from_immediate(0x6, 0x1, 0x22).word == 0x6122

    def test_instruction_is_immutable(self):
        instr = Instruction(0x6011)
        with pytest.raises(AttributeError):
            instr.word = 0x6012
