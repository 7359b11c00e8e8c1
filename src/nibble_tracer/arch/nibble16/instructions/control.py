# src/nibble_tracer/arch/nibble16/instructions/control.py
"""
制御命令（ジャンプ、サブルーチン、条件スキップ）の実装。
"""
from nibble_tracer.core.snapshot import Operation
from nibble_tracer.transport.bus import Bus
from nibble_tracer.transport.console import OutputSink
from nibble_tracer.arch.nibble16.instruction import Instruction
from nibble_tracer.arch.nibble16.state import Nibble16CpuState
from .base import make_operation, reg, addr, imm, skip_next, push_return, pop_return

# --- RET (0nnn) ---
def decode_ret(instr: Instruction) -> Operation:
    return make_operation(instr, "RET")

# @intent:responsibility RET命令を実行し、スタックから戻りアドレスを取り出してPCに設定します。
def execute_ret(state: Nibble16CpuState, bus: Bus, instr: Instruction, out: OutputSink) -> None:
    state.pc = pop_return(state)

# --- JP (1nnn) ---
def decode_jp(instr: Instruction) -> Operation:
    return make_operation(instr, "JP", [addr(instr.nnn)])

def execute_jp(state: Nibble16CpuState, bus: Bus, instr: Instruction, out: OutputSink) -> None:
    state.pc = instr.nnn

# --- CALL (2nnn) ---
def decode_call(instr: Instruction) -> Operation:
    return make_operation(instr, "CALL", [addr(instr.nnn)])

# @intent:responsibility CALL命令を実行し、戻りアドレスをプッシュしてからジャンプします。
def execute_call(state: Nibble16CpuState, bus: Bus, instr: Instruction, out: OutputSink) -> None:
    # state.pcはCPU.stepで既に次の命令を指している
    push_return(state, state.pc)
    state.pc = instr.nnn

# --- SE Vx, kk (3xkk) ---
def decode_se_imm(instr: Instruction) -> Operation:
    return make_operation(instr, "SE", [reg(instr.x), imm(instr.kk)])

def execute_se_imm(state: Nibble16CpuState, bus: Bus, instr: Instruction, out: OutputSink) -> None:
    if state.registers[instr.x] == instr.kk:
        skip_next(state)

# --- SNE Vx, kk (4xkk) ---
def decode_sne_imm(instr: Instruction) -> Operation:
    return make_operation(instr, "SNE", [reg(instr.x), imm(instr.kk)])

def execute_sne_imm(state: Nibble16CpuState, bus: Bus, instr: Instruction, out: OutputSink) -> None:
    if state.registers[instr.x] != instr.kk:
        skip_next(state)

# --- SE Vx, Vy (5xy0) ---
def decode_se_reg(instr: Instruction) -> Operation:
    return make_operation(instr, "SE", [reg(instr.x), reg(instr.y)])

def execute_se_reg(state: Nibble16CpuState, bus: Bus, instr: Instruction, out: OutputSink) -> None:
    if state.registers[instr.x] == state.registers[instr.y]:
        skip_next(state)

# --- SNE Vx, Vy (9xy0) ---
def decode_sne_reg(instr: Instruction) -> Operation:
    return make_operation(instr, "SNE", [reg(instr.x), reg(instr.y)])

def execute_sne_reg(state: Nibble16CpuState, bus: Bus, instr: Instruction, out: OutputSink) -> None:
    if state.registers[instr.x] != state.registers[instr.y]:
        skip_next(state)

# --- JP V0, nnn (Bnnn) ---
def decode_jp_v0(instr: Instruction) -> Operation:
    return make_operation(instr, "JP", ["V0", addr(instr.nnn)])

# @intent:responsibility V0をオフセットとしてジャンプします。結果がメモリ外でも次のフェッチでフォールトとして検出されます。
def execute_jp_v0(state: Nibble16CpuState, bus: Bus, instr: Instruction, out: OutputSink) -> None:
    state.pc = (instr.nnn + state.registers[0]) & 0xFFFF
