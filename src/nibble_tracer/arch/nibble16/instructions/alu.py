# src/nibble_tracer/arch/nibble16/instructions/alu.py
"""
算術論理演算命令の実装。
8ビット演算は全て256を法としてラップします。フラグを更新するのはレジスタ間の
加減算とシフトのみで、結果はVFに書き込まれます。
"""
from nibble_tracer.core.snapshot import Operation
from nibble_tracer.transport.bus import Bus
from nibble_tracer.transport.console import OutputSink
from nibble_tracer.arch.nibble16.instruction import Instruction
from nibble_tracer.arch.nibble16.state import Nibble16CpuState
from .base import make_operation, reg, imm

# --- ADD Vx, kk (7xkk) ---
def decode_add_imm(instr: Instruction) -> Operation:
    return make_operation(instr, "ADD", [reg(instr.x), imm(instr.kk)])

# @intent:responsibility 即値を加算します。キャリーは破棄され、VFは変化しません。
def execute_add_imm(state: Nibble16CpuState, bus: Bus, instr: Instruction, out: OutputSink) -> None:
    state.registers[instr.x] = (state.registers[instr.x] + instr.kk) & 0xFF

# --- LD Vx, Vy (8xy0) ---
def decode_ld_reg(instr: Instruction) -> Operation:
    return make_operation(instr, "LD", [reg(instr.x), reg(instr.y)])

def execute_ld_reg(state: Nibble16CpuState, bus: Bus, instr: Instruction, out: OutputSink) -> None:
    state.registers[instr.x] = state.registers[instr.y]

# --- OR / AND / XOR (8xy1, 8xy2, 8xy3) ---
def decode_or(instr: Instruction) -> Operation:
    return make_operation(instr, "OR", [reg(instr.x), reg(instr.y)])

def execute_or(state: Nibble16CpuState, bus: Bus, instr: Instruction, out: OutputSink) -> None:
    state.registers[instr.x] |= state.registers[instr.y]

def decode_and(instr: Instruction) -> Operation:
    return make_operation(instr, "AND", [reg(instr.x), reg(instr.y)])

def execute_and(state: Nibble16CpuState, bus: Bus, instr: Instruction, out: OutputSink) -> None:
    state.registers[instr.x] &= state.registers[instr.y]

def decode_xor(instr: Instruction) -> Operation:
    return make_operation(instr, "XOR", [reg(instr.x), reg(instr.y)])

def execute_xor(state: Nibble16CpuState, bus: Bus, instr: Instruction, out: OutputSink) -> None:
    state.registers[instr.x] ^= state.registers[instr.y]

# --- ADD Vx, Vy (8xy4) ---
def decode_add_reg(instr: Instruction) -> Operation:
    return make_operation(instr, "ADD", [reg(instr.x), reg(instr.y)])

# @intent:responsibility レジスタ同士を加算し、8ビットを超えた場合VF=1とします。
# @intent:rationale x=0xFの場合もフラグの書き込みが結果より後になるため、VFにはフラグが残ります。
def execute_add_reg(state: Nibble16CpuState, bus: Bus, instr: Instruction, out: OutputSink) -> None:
    res = state.registers[instr.x] + state.registers[instr.y]
    state.registers[instr.x] = res & 0xFF
    state.flag = 1 if res > 0xFF else 0

# --- SUB Vx, Vy (8xy5) ---
def decode_sub(instr: Instruction) -> Operation:
    return make_operation(instr, "SUB", [reg(instr.x), reg(instr.y)])

# @intent:responsibility Vx - Vy を計算します。VF=1はボローが発生しなかったことを示します。
def execute_sub(state: Nibble16CpuState, bus: Bus, instr: Instruction, out: OutputSink) -> None:
    v1 = state.registers[instr.x]
    v2 = state.registers[instr.y]
    state.registers[instr.x] = (v1 - v2) & 0xFF
    state.flag = 0 if v1 < v2 else 1 # Borrow

# --- SHR Vx (8xy6) ---
def decode_shr(instr: Instruction) -> Operation:
    return make_operation(instr, "SHR", [reg(instr.x)])

# @intent:rationale VFへの書き込みを先に行うため、x=0xFの場合はシフト後の値が残ります。
def execute_shr(state: Nibble16CpuState, bus: Bus, instr: Instruction, out: OutputSink) -> None:
    state.flag = state.registers[instr.x] & 0x01
    state.registers[instr.x] >>= 1

# --- SUBN Vx, Vy (8xy7) ---
def decode_subn(instr: Instruction) -> Operation:
    return make_operation(instr, "SUBN", [reg(instr.x), reg(instr.y)])

# @intent:responsibility Vy - Vx を計算してVxに格納します。フラグの意味はSUBと同じです。
def execute_subn(state: Nibble16CpuState, bus: Bus, instr: Instruction, out: OutputSink) -> None:
    v1 = state.registers[instr.x]
    v2 = state.registers[instr.y]
    state.registers[instr.x] = (v2 - v1) & 0xFF
    state.flag = 0 if v2 < v1 else 1

# --- SHL Vx (8xyE) ---
def decode_shl(instr: Instruction) -> Operation:
    return make_operation(instr, "SHL", [reg(instr.x)])

def execute_shl(state: Nibble16CpuState, bus: Bus, instr: Instruction, out: OutputSink) -> None:
    state.flag = state.registers[instr.x] >> 7
    state.registers[instr.x] = (state.registers[instr.x] << 1) & 0xFF
