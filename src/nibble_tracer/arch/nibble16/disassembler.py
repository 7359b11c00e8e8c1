# src/nibble_tracer/arch/nibble16/disassembler.py
"""
Nibble16 Disassembler

メモリ上のバイナリデータを解析し、アセンブリ言語（ニーモニック）に変換します。
Instruction Layerのデコードロジックを再利用し、バスアクセスログを汚さないように
Bus.peekで読み込みます。
"""
from typing import List

from nibble_tracer.common.types import DisassemblyLine
from nibble_tracer.transport.bus import Bus
from nibble_tracer.arch.nibble16.instruction import Instruction
from nibble_tracer.arch.nibble16.instructions import decode_instruction

# @intent:responsibility 指定されたメモリ範囲を逆アセンブルし、表示用データを生成します。
def disassemble(bus: Bus, start_addr: int, length: int) -> List[DisassemblyLine]:
    """
    指定された範囲（バイト数）のメモリを2バイト単位で逆アセンブルします。
    範囲の末尾で1バイトだけ残る場合、その1バイトは対象外です。

    Returns:
        List of (address, hex_bytes, mnemonic) tuples.
    """
    result = []
    current_addr = start_addr
    end_addr = min(start_addr + length, bus.get_mapped_size())

    while current_addr + 1 < end_addr:
        instr = Instruction.from_bytes([bus.peek(current_addr), bus.peek(current_addr + 1)])
        operation = decode_instruction(instr)

        hex_bytes = " ".join(f"{b:02X}" for b in operation.operand_bytes)

        mnemonic_str = operation.mnemonic
        if operation.operands:
            mnemonic_str += " " + ", ".join(operation.operands)

        result.append((current_addr, hex_bytes, mnemonic_str))
        current_addr += operation.length

    return result
