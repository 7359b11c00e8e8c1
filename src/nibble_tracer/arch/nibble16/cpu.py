# src/nibble_tracer/arch/nibble16/cpu.py
"""
Nibble16 CPUエミュレーションの中心モジュール。
"""
from typing import Dict, List, Optional

from nibble_tracer.core.snapshot import Operation, Metadata, Snapshot
from nibble_tracer.core.cpu import AbstractCpu
from nibble_tracer.core.errors import PcOutOfBoundsError
from nibble_tracer.common.types import DisassemblyLine
from nibble_tracer.transport.bus import Bus
from nibble_tracer.transport.console import OutputSink, ConsoleSink
from nibble_tracer.arch.nibble16.instruction import Instruction
from nibble_tracer.arch.nibble16.state import Nibble16CpuState, MEMORY_SIZE, PROGRAM_START
from nibble_tracer.arch.nibble16.instructions import decode_instruction, execute_instruction
from nibble_tracer.arch.nibble16 import disassembler

# @intent:responsibility Nibble16 CPUの具体的なエミュレーションロジック（フェッチ、デコード、実行）を提供します。
class Nibble16Cpu(AbstractCpu):
    """
    Nibble16 CPUをエミュレートするクラス。

    Args:
        bus: 0x000-0xFFFにRAMが接続されたバス。
        output: 出力命令・トレース・診断メッセージの出力先。省略時は標準出力。
        trace: Trueの場合、各命令の実行前に命令語を16進で出力します。
    """
    def __init__(self, bus: Bus, output: Optional[OutputSink] = None, trace: bool = True):
        self._output = output or ConsoleSink()
        self._trace = trace
        super().__init__(bus)

    def _create_initial_state(self) -> Nibble16CpuState:
        return Nibble16CpuState()

    @property
    def output(self) -> OutputSink:
        return self._output

    # @intent:responsibility プログラムイメージを0x200から書き込みます。
    def load_program(self, program: bytes) -> None:
        from nibble_tracer.loader.loader import BinaryLoader
        BinaryLoader().load_bytes(program, self._bus, PROGRAM_START)

    # @intent:responsibility PCから2バイトをビッグエンディアンで読み込みます。
    # @intent:pre-condition PCとPC+1がメモリ範囲内であること。範囲外の場合はPcOutOfBoundsErrorを送出します。
    def _fetch(self) -> int:
        pc = self._state.pc
        if pc + 1 >= MEMORY_SIZE:
            raise PcOutOfBoundsError(f"PC {pc:#06x} is outside memory.", pc=pc)
        try:
            return (self._bus.read(pc) << 8) | self._bus.read(pc + 1)
        except IndexError as e:
            # メモリ範囲内でもデバイスが割り当てられていないアドレス
            raise PcOutOfBoundsError(f"PC {pc:#06x} is not mapped: {e}", pc=pc) from e

    def _decode(self, opcode: int) -> Operation:
        return decode_instruction(Instruction(opcode))

    def _execute(self, operation: Operation) -> None:
        if self._trace:
            self._output.write_line(f"{int(operation.opcode_hex, 16):X}")
        execute_instruction(operation, self._state, self._bus, self._output)

    # @intent:responsibility HALT後にstepが呼ばれた場合、命令を実行せずに現在の状態を返します。
    def _handle_halt(self, current_pc: int) -> Optional[Snapshot]:
        if not self._state.halted:
            return None
        return Snapshot(
            state=self._state.copy(),
            operation=Operation(opcode_hex="FFFF", mnemonic="EXIT", length=0, cycle_count=0),
            metadata=Metadata(
                cycle_count=self._cycle_count,
                symbol_info="EXIT",
                unknown_instruction_count=self._unknown_instruction_count,
            ),
        )

    # @intent:responsibility デバッガ用に、現在のレジスタ値を辞書形式で提供します。
    def get_register_map(self) -> Dict[str, int]:
        s = self._state
        reg_map = {f"V{i:X}": v for i, v in enumerate(s.registers)}
        reg_map.update({"I": s.index, "PC": s.pc, "SP": s.sp})
        return reg_map

    def disassemble(self, start_addr: int, length: int) -> List[DisassemblyLine]:
        return disassembler.disassemble(self._bus, start_addr, length)
