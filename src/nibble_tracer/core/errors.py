# nibble_tracer/core/errors.py
"""
実行を継続できない異常（フォールト）を表す例外階層。

命令単位の異常（未知の命令）は例外にせず、CPU側で記録して実行を継続します。
ここで定義するのは、実行ループを停止させる構造的な異常です。
"""
from typing import Optional

# @intent:responsibility 実行ループを停止させる致命的な異常の基底クラス。
class CpuFault(Exception):
    """
    CPUの実行中に発生した致命的な異常。
    pcには異常を検出した時点のプログラムカウンタを保持します。
    """
    def __init__(self, message: str, pc: Optional[int] = None):
        super().__init__(message)
        self.pc = pc

class PcOutOfBoundsError(CpuFault):
    """フェッチ位置がメモリ範囲外。"""

class StackOverflowError(CpuFault):
    """CALLのネストがスタック容量を超えた。"""

class StackUnderflowError(CpuFault):
    """空のスタックからRETしようとした。"""

class MemoryBoundsError(CpuFault):
    """命令によるメモリアクセスがメモリ範囲外。"""

# @intent:responsibility メモリに収まらないプログラムイメージのロードを拒否します。
class ProgramTooLargeError(ValueError):
    def __init__(self, size: int, capacity: int):
        super().__init__(f"Program image of {size} bytes exceeds the {capacity} bytes available.")
        self.size = size
        self.capacity = capacity
