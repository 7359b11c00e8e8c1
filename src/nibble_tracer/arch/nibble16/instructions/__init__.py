"""
Nibble16命令セット実装パッケージ。
"""
from nibble_tracer.transport.bus import Bus
from nibble_tracer.transport.console import OutputSink
from nibble_tracer.core.snapshot import Operation
from nibble_tracer.arch.nibble16.instruction import Instruction
from nibble_tracer.arch.nibble16.state import Nibble16CpuState
from .base import make_operation
from .maps import DECODE_MAP, EXECUTE_MAP, lookup

# @intent:responsibility 16ビット命令語をデコードします。
def decode_instruction(instr: Instruction) -> Operation:
    """
    命令語をデコードし、Operationオブジェクトを返します。
    未知の命令の場合は"UNKNOWN"を返します。
    """
    decoder = lookup(DECODE_MAP, instr)
    if decoder:
        return decoder(instr)
    return make_operation(instr, "UNKNOWN", [f"${instr.word:04X}"])

# @intent:responsibility デコードされた命令を実行し、CPUの状態を変更します。
# @intent:rationale 未知の命令は致命的ではありません。診断メッセージを出力し、実行は次の命令へ進みます。
def execute_instruction(operation: Operation, state: Nibble16CpuState, bus: Bus, out: OutputSink) -> None:
    instr = Instruction(int(operation.opcode_hex, 16))
    executor = lookup(EXECUTE_MAP, instr)
    if executor:
        executor(state, bus, instr, out)
    else:
        out.write_line(f"Unknown instruction: {instr.word:X}")
