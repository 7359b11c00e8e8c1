# nibble_tracer/loader/loader.py
"""
コードローダーモジュール。
生のバイナリイメージとアセンブリソースのロードをサポートします。
"""
from typing import Iterable

from nibble_tracer.transport.bus import Bus
from nibble_tracer.common.types import SymbolMap
from nibble_tracer.core.errors import ProgramTooLargeError
from nibble_tracer.arch.nibble16.state import MEMORY_SIZE, PROGRAM_START
from nibble_tracer.loader.assembler import ASSEMBLERS

class BinaryLoader:
    """
    ヘッダを持たないバイナリイメージ（ビッグエンディアンの命令列）をバスにロードするローダー。
    """
    # @intent:responsibility バイト列を指定アドレスから書き込みます。
    # @intent:pre-condition イメージがstartからメモリ末尾までに収まること。収まらない場合は何も書き込まずに例外を送出します。
    def load_bytes(self, data: Iterable[int], bus: Bus, start: int = PROGRAM_START) -> int:
        image = bytes(data)
        capacity = MEMORY_SIZE - start
        if len(image) > capacity:
            raise ProgramTooLargeError(len(image), capacity)

        for i, byte_data in enumerate(image):
            bus.load(start + i, byte_data)
        return len(image)

    def load_binary(self, file_path: str, bus: Bus, start: int = PROGRAM_START) -> int:
        with open(file_path, 'rb') as f:
            data = f.read()
        return self.load_bytes(data, bus, start)

class AssemblyLoader:
    """
    アセンブリソースコードを解析し、シンボル情報を抽出し、
    バイナリに変換してバスにロードする簡易ローダー。
    """
    def load_assembly(self, file_path: str, bus: Bus, architecture: str = "NIBBLE16") -> SymbolMap:
        with open(file_path, 'r', encoding="utf-8") as f:
            lines = f.readlines()
        return self.load_source(lines, bus, architecture)

    def load_source(self, lines: Iterable[str], bus: Bus, architecture: str = "NIBBLE16") -> SymbolMap:
        assembler_factory = ASSEMBLERS.get(architecture)
        if assembler_factory is None:
            raise ValueError(f"Unsupported architecture for assembly loading: {architecture}")

        symbol_map, binary_data = assembler_factory().assemble(list(lines))

        for addr, data in binary_data:
            if not 0 <= addr < MEMORY_SIZE:
                raise ProgramTooLargeError(addr + 1, MEMORY_SIZE)
            bus.load(addr, data)

        return symbol_map
