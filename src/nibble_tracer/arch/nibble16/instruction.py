# src/nibble_tracer/arch/nibble16/instruction.py
"""
16ビット命令語のデコーダ。

命令語は上位4ビットがオペコード、残り12ビットが引数です。
  nnn: 下位12ビット (0x0FFF)   アドレス/即値
  x:   ビット8-11   (0x0F00)   レジスタ番号
  y:   ビット4-7    (0x00F0)   レジスタ番号
  kk:  下位8ビット  (0x00FF)   8ビット即値
  n:   下位4ビット  (0x000F)   サブオペコード/小さな即値
"""
from dataclasses import dataclass
from typing import Sequence, Tuple

# @intent:responsibility 16ビット命令語を保持し、各ビットフィールドを取り出す純粋なビューを提供します。
# @intent:rationale 全てのフィールドはマスクとシフトで導出するため、どの16ビット値に対しても定義されます。
@dataclass(frozen=True)
class Instruction:
    word: int

    def __post_init__(self):
        # frozenのため object.__setattr__ で16ビットに正規化する
        object.__setattr__(self, "word", self.word & 0xFFFF)

    @classmethod
    def from_bytes(cls, data: Sequence[int]) -> "Instruction":
        """ビッグエンディアン（上位バイトが先）の2バイトから命令を生成します。"""
        if len(data) != 2:
            raise ValueError(f"An instruction is exactly 2 bytes, got {len(data)}.")
        return cls(((data[0] & 0xFF) << 8) | (data[1] & 0xFF))

    # @intent:responsibility 各フィールドから命令語を組み立てます。アセンブラから使用します。
    @classmethod
    def from_fields(cls, opcode: int, x: int = 0, y: int = 0, n: int = 0) -> "Instruction":
        return cls(((opcode & 0xF) << 12) | ((x & 0xF) << 8) | ((y & 0xF) << 4) | (n & 0xF))

    @classmethod
    def from_address(cls, opcode: int, nnn: int) -> "Instruction":
        return cls(((opcode & 0xF) << 12) | (nnn & 0x0FFF))

    @classmethod
    def from_immediate(cls, opcode: int, x: int, kk: int) -> "Instruction":
        return cls(((opcode & 0xF) << 12) | ((x & 0xF) << 8) | (kk & 0xFF))

    @property
    def opcode(self) -> int:
        return self.word >> 12

    @property
    def nnn(self) -> int:
        return self.word & 0x0FFF

    @property
    def x(self) -> int:
        return (self.word & 0x0F00) >> 8

    @property
    def y(self) -> int:
        return (self.word & 0x00F0) >> 4

    @property
    def kk(self) -> int:
        return self.word & 0x00FF

    @property
    def n(self) -> int:
        return self.word & 0x000F

    def to_bytes(self) -> Tuple[int, int]:
        """ビッグエンディアンの2バイトへ再シリアライズします（from_bytesの逆変換）。"""
        return (self.word >> 8, self.word & 0xFF)

    def __str__(self) -> str:
        return f"{self.word:04X}"
