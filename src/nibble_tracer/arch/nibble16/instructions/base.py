# src/nibble_tracer/arch/nibble16/instructions/base.py
"""
Nibble16命令実装用の共通ユーティリティ。
メモリ・スタックへのアクセスは全てここを経由し、範囲外アクセスを明示的なフォールトにします。
"""
from typing import List

from nibble_tracer.core.snapshot import Operation
from nibble_tracer.core.errors import MemoryBoundsError, StackOverflowError, StackUnderflowError
from nibble_tracer.transport.bus import Bus
from nibble_tracer.arch.nibble16.instruction import Instruction
from nibble_tracer.arch.nibble16.state import Nibble16CpuState, MEMORY_SIZE, STACK_DEPTH

# @intent:utility_function デコード結果のOperationを生成します。
def make_operation(instr: Instruction, mnemonic: str, operands: List[str] = None) -> Operation:
    return Operation(str(instr), mnemonic, operands or [], list(instr.to_bytes()), 1, 2)

# @intent:utility_function オペランド表記の整形。
def reg(x: int) -> str:
    return f"V{x:X}"

def addr(nnn: int) -> str:
    return f"${nnn:03X}"

def imm(kk: int) -> str:
    return f"#${kk:02X}"

# @intent:utility_function 範囲チェック付きでメモリから1バイト読み込みます。
def read_byte(state: Nibble16CpuState, bus: Bus, address: int) -> int:
    if not 0 <= address < MEMORY_SIZE:
        raise MemoryBoundsError(f"Memory read at {address:#06x} is outside memory.", pc=state.pc)
    try:
        return bus.read(address)
    except IndexError as e:
        raise MemoryBoundsError(f"Memory read at {address:#06x} is not mapped.", pc=state.pc) from e

# @intent:utility_function 範囲チェック付きでメモリへ1バイト書き込みます。
def write_byte(state: Nibble16CpuState, bus: Bus, address: int, value: int) -> None:
    if not 0 <= address < MEMORY_SIZE:
        raise MemoryBoundsError(f"Memory write at {address:#06x} is outside memory.", pc=state.pc)
    try:
        bus.write(address, value & 0xFF)
    except IndexError as e:
        raise MemoryBoundsError(f"Memory write at {address:#06x} is not mapped.", pc=state.pc) from e

# @intent:utility_function 次の命令をスキップします（フェッチ済みの+2に加えてさらに+2）。
def skip_next(state: Nibble16CpuState) -> None:
    state.pc = (state.pc + 2) & 0xFFFF

# @intent:utility_function 戻りアドレスをプッシュします。SPを先に進めてから格納するため、スロット0は使用されません。
def push_return(state: Nibble16CpuState, return_addr: int) -> None:
    if state.sp >= STACK_DEPTH - 1:
        raise StackOverflowError(f"Call stack overflow (depth {STACK_DEPTH - 1}).", pc=state.pc)
    state.sp += 1
    state.stack[state.sp] = return_addr & 0xFFFF

# @intent:utility_function 戻りアドレスをポップします。
def pop_return(state: Nibble16CpuState) -> int:
    if state.sp == 0:
        raise StackUnderflowError("Return with an empty call stack.", pc=state.pc)
    if state.sp >= STACK_DEPTH:
        raise StackOverflowError(f"Stack pointer {state.sp} is outside the call stack.", pc=state.pc)
    return_addr = state.stack[state.sp]
    state.sp -= 1
    return return_addr
