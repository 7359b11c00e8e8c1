# src/nibble_tracer/arch/nibble16/instructions/output.py
"""
出力命令と停止命令の実装。
出力は空白区切りの16進数（ゼロ埋めなし）で、1命令につき1行です。
"""
from nibble_tracer.core.snapshot import Operation
from nibble_tracer.transport.bus import Bus
from nibble_tracer.transport.console import OutputSink
from nibble_tracer.arch.nibble16.instruction import Instruction
from nibble_tracer.arch.nibble16.state import Nibble16CpuState
from .base import make_operation, reg, read_byte

# @intent:constant 停止命令の実行時に出力する通知。
EXIT_NOTICE = "Exiting..."

# --- OUT Vx (Fx.1) ---
def decode_out_regs(instr: Instruction) -> Operation:
    return make_operation(instr, "OUT", [reg(instr.x)])

# @intent:responsibility V0からVxまでを出力します。
def execute_out_regs(state: Nibble16CpuState, bus: Bus, instr: Instruction, out: OutputSink) -> None:
    values = state.registers[:instr.x + 1]
    out.write_line(" ".join(f"{v:X}" for v in values))

# --- OUT [I], Vx (Fx.2) ---
def decode_out_mem(instr: Instruction) -> Operation:
    return make_operation(instr, "OUT", ["[I]", reg(instr.x)])

# @intent:responsibility メモリのIからI+xまでを出力します。
def execute_out_mem(state: Nibble16CpuState, bus: Bus, instr: Instruction, out: OutputSink) -> None:
    values = [read_byte(state, bus, state.index + i) for i in range(instr.x + 1)]
    out.write_line(" ".join(f"{v:X}" for v in values))

# --- EXIT (Fx.F) ---
def decode_exit(instr: Instruction) -> Operation:
    return make_operation(instr, "EXIT")

# @intent:responsibility 停止通知を出力し、CPUをHALT状態にします。
# @intent:rationale プロセスは終了させず、実行ループがHALTEDのRunResultを返します。
def execute_exit(state: Nibble16CpuState, bus: Bus, instr: Instruction, out: OutputSink) -> None:
    out.write_line(EXIT_NOTICE)
    state.halted = True
