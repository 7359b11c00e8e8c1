# tests/arch/nibble16/test_disassembler.py
"""
nibble_tracer.arch.nibble16.disassemblerモジュールの単体テスト。
"""
import pytest

from nibble_tracer.transport.bus import Bus, RAM
from nibble_tracer.transport.console import BufferedSink
from nibble_tracer.arch.nibble16.cpu import Nibble16Cpu
from nibble_tracer.arch.nibble16.disassembler import disassemble
from nibble_tracer.arch.nibble16.instruction import Instruction
from nibble_tracer.arch.nibble16.instructions import decode_instruction

@pytest.fixture
def bus():
    bus = Bus()
    bus.register_device(0x0000, 0x0FFF, RAM(0x1000))
    return bus

def test_disassemble_program(bus):
    program = [0x60, 0x11, 0x61, 0x22, 0x80, 0x14, 0xF0, 0x01, 0xFF, 0xFF]
    for i, b in enumerate(program):
        bus.load(0x200 + i, b)

    lines = disassemble(bus, 0x200, len(program))
    assert lines == [
        (0x200, "60 11", "LD V0, #$11"),
        (0x202, "61 22", "LD V1, #$22"),
        (0x204, "80 14", "ADD V0, V1"),
        (0x206, "F0 01", "OUT V0"),
        (0x208, "FF FF", "EXIT"),
    ]

def test_disassemble_does_not_log_bus_activity(bus):
    disassemble(bus, 0x200, 8)
    assert bus.get_and_clear_activity_log() == []

def test_disassemble_stops_at_end_of_memory(bus):
    lines = disassemble(bus, 0xFFC, 0x100)
    assert [addr for addr, _, _ in lines] == [0xFFC, 0xFFE]

def test_disassemble_drops_trailing_odd_byte(bus):
    assert len(disassemble(bus, 0x200, 3)) == 1

def test_cpu_disassemble_delegates(bus):
    bus.load(0x300, 0xA6)
    bus.load(0x301, 0x00)
    cpu = Nibble16Cpu(bus, output=BufferedSink())
    assert cpu.disassemble(0x300, 2) == [(0x300, "A6 00", "LD I, $600")]

# @intent:test_case_mnemonics 各命令のニーモニック表記を検証します。
@pytest.mark.parametrize("word, text", [
    (0x0000, "RET"),
    (0x1234, "JP $234"),
    (0x2345, "CALL $345"),
    (0x3A10, "SE VA, #$10"),
    (0x4A10, "SNE VA, #$10"),
    (0x5AB0, "SE VA, VB"),
    (0x6AFF, "LD VA, #$FF"),
    (0x7A01, "ADD VA, #$01"),
    (0x8AB0, "LD VA, VB"),
    (0x8AB1, "OR VA, VB"),
    (0x8AB2, "AND VA, VB"),
    (0x8AB3, "XOR VA, VB"),
    (0x8AB4, "ADD VA, VB"),
    (0x8AB5, "SUB VA, VB"),
    (0x8AB6, "SHR VA"),
    (0x8AB7, "SUBN VA, VB"),
    (0x8ABE, "SHL VA"),
    (0x9AB0, "SNE VA, VB"),
    (0xA123, "LD I, $123"),
    (0xB123, "JP V0, $123"),
    (0xCA00, "ADD I, VA"),
    (0xDA00, "BCD VA"),
    (0xEA00, "LD [I], VA"),
    (0xFA00, "LD VA, [I]"),
    (0xFA01, "OUT VA"),
    (0xFA02, "OUT [I], VA"),
    (0xFAAF, "EXIT"),
    (0x8AB8, "UNKNOWN $8AB8"),
    (0xFA05, "UNKNOWN $FA05"),
])
def test_mnemonics(word, text):
    op = decode_instruction(Instruction(word))
    rendered = op.mnemonic + (" " + ", ".join(op.operands) if op.operands else "")
    assert rendered == text
