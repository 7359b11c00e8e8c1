# src/nibble_tracer/arch/nibble16/instructions/load.py
"""
ロード/ストア命令とインデックスレジスタ操作の実装。
"""
from nibble_tracer.core.snapshot import Operation
from nibble_tracer.transport.bus import Bus
from nibble_tracer.transport.console import OutputSink
from nibble_tracer.arch.nibble16.instruction import Instruction
from nibble_tracer.arch.nibble16.state import Nibble16CpuState
from .base import make_operation, reg, addr, imm, read_byte, write_byte

# --- LD Vx, kk (6xkk) ---
def decode_ld_imm(instr: Instruction) -> Operation:
    return make_operation(instr, "LD", [reg(instr.x), imm(instr.kk)])

def execute_ld_imm(state: Nibble16CpuState, bus: Bus, instr: Instruction, out: OutputSink) -> None:
    state.registers[instr.x] = instr.kk

# --- LD I, nnn (Annn) ---
def decode_ld_i(instr: Instruction) -> Operation:
    return make_operation(instr, "LD", ["I", addr(instr.nnn)])

def execute_ld_i(state: Nibble16CpuState, bus: Bus, instr: Instruction, out: OutputSink) -> None:
    state.index = instr.nnn

# --- ADD I, Vx (Cx..) ---
def decode_add_i(instr: Instruction) -> Operation:
    return make_operation(instr, "ADD", ["I", reg(instr.x)])

# @intent:responsibility インデックスレジスタにVxを加算します。16ビットでラップします。
def execute_add_i(state: Nibble16CpuState, bus: Bus, instr: Instruction, out: OutputSink) -> None:
    state.index = (state.index + state.registers[instr.x]) & 0xFFFF

# --- BCD Vx (Dx..) ---
def decode_bcd(instr: Instruction) -> Operation:
    return make_operation(instr, "BCD", [reg(instr.x)])

# @intent:responsibility Vxを10進3桁に分解し、I, I+1, I+2 に百の位、十の位、一の位を格納します。
def execute_bcd(state: Nibble16CpuState, bus: Bus, instr: Instruction, out: OutputSink) -> None:
    val = state.registers[instr.x]
    for offset in (2, 1, 0):
        write_byte(state, bus, state.index + offset, val % 10)
        val //= 10

# --- LD [I], Vx (Ex..) ---
def decode_store_block(instr: Instruction) -> Operation:
    return make_operation(instr, "LD", ["[I]", reg(instr.x)])

# @intent:responsibility V0からVxまでをIから始まるメモリに格納します。
def execute_store_block(state: Nibble16CpuState, bus: Bus, instr: Instruction, out: OutputSink) -> None:
    for i in range(instr.x + 1):
        write_byte(state, bus, state.index + i, state.registers[i])

# --- LD Vx, [I] (Fx.0) ---
def decode_load_block(instr: Instruction) -> Operation:
    return make_operation(instr, "LD", [reg(instr.x), "[I]"])

# @intent:responsibility Iから始まるメモリをV0からVxに読み込みます。
def execute_load_block(state: Nibble16CpuState, bus: Bus, instr: Instruction, out: OutputSink) -> None:
    for i in range(instr.x + 1):
        state.registers[i] = read_byte(state, bus, state.index + i)
