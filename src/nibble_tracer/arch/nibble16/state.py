# src/nibble_tracer/arch/nibble16/state.py
"""
Nibble16 CPU固有の状態定義。
"""
from dataclasses import dataclass, field
from typing import List
from nibble_tracer.core.state import CpuState

# @intent:constant マシンの固定パラメータ。
MEMORY_SIZE = 0x1000     # 4KB
PROGRAM_START = 0x200    # 0x000-0x1FFは予約領域
REGISTER_COUNT = 16
STACK_DEPTH = 16
FLAG_REGISTER = 0xF      # VF: キャリー/ボロー/シフトアウトビットの出力先

# @intent:responsibility 汎用レジスタV0-VF、インデックスレジスタI、PC、SP、コールスタックを保持します。
# @intent:rationale 状態は全てゼロで初期化し、PCのみプログラム先頭(0x200)を指します。
@dataclass
class Nibble16CpuState(CpuState):
    """
    Nibble16 CPUのレジスタ状態を保持するデータクラス。
    メモリ本体はBus上のRAMデバイスが保持します。
    """
    pc: int = PROGRAM_START
    registers: List[int] = field(default_factory=lambda: [0] * REGISTER_COUNT)
    index: int = 0x0000  # Index Register I
    stack: List[int] = field(default_factory=lambda: [0] * STACK_DEPTH)

    # @intent:accessor フラグレジスタVFへのアクセスを提供します。
    @property
    def flag(self) -> int:
        return self.registers[FLAG_REGISTER]

    @flag.setter
    def flag(self, value: int) -> None:
        self.registers[FLAG_REGISTER] = value & 0xFF
