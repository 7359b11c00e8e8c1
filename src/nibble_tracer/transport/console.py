# nibble_tracer/transport/console.py
"""
Transport Layer (出力シンク)

CPUが外部へ出力するテキスト（命令トレース、レジスタ/メモリ出力、診断メッセージ）を
受け取る行指向の出力先を定義します。
"""
import sys
from abc import ABC, abstractmethod
from typing import List, Optional, TextIO

# @intent:responsibility 行単位のテキスト出力先のインターフェースを定義します。
class OutputSink(ABC):
    """
    CPUからのテキスト出力を受け取る抽象出力先。
    """
    @abstractmethod
    def write_line(self, text: str) -> None:
        """
        1行分のテキストを出力します。改行は出力先が付加します。
        """
        pass

# @intent:responsibility 標準出力（または任意のストリーム）へ出力します。
class ConsoleSink(OutputSink):
    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream

    def write_line(self, text: str) -> None:
        # sys.stdoutは呼び出し時点で解決する（pytestのcapsysなどで差し替えられるため）
        print(text, file=self._stream or sys.stdout)

# @intent:responsibility 出力をメモリ上に蓄積します。テストや組み込み用途で使用します。
class BufferedSink(OutputSink):
    def __init__(self):
        self._lines: List[str] = []

    def write_line(self, text: str) -> None:
        self._lines.append(text)

    def get_lines(self) -> List[str]:
        return list(self._lines)

    def clear(self) -> None:
        self._lines = []
