# nibble_tracer/loader/assembler.py
"""
アーキテクチャごとのアセンブラ実装。
AssemblyLoaderから利用されます。
"""
import re
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Tuple

from nibble_tracer.common.types import SymbolMap, BinaryData
from nibble_tracer.arch.nibble16.instruction import Instruction
from nibble_tracer.arch.nibble16.state import PROGRAM_START

# @intent:responsibility アセンブラの共通インターフェースを定義します。
class BaseAssembler(ABC):
    @abstractmethod
    def assemble(self, lines: List[str]) -> Tuple[SymbolMap, BinaryData]:
        """
        アセンブリソースを行単位で解析し、シンボルマップとバイナリデータを返します。
        """
        pass

    def _parse_line(self, line: str) -> Tuple[Optional[str], Optional[str], Optional[str]]:
        line = line.strip()
        if not line or line.startswith(';'):
            return None, None, None

        line = line.split(';')[0].strip()

        label = None
        if ':' in line:
            label, rest = line.split(':', 1)
            label = label.strip()
            line = rest.strip()

        if not line:
            return label, None, None

        parts = re.split(r'\s+', line, maxsplit=1)
        mnemonic = parts[0].upper()
        operands = parts[1] if len(parts) > 1 else ""

        return label, mnemonic, operands

    # @intent:utility_function 多様な数値表現（$, 0x, h, #）およびラベル名を数値に変換します。
    def _parse_val(self, val_str: str, symbol_map: SymbolMap) -> int:
        val_str = val_str.strip().lstrip('#').replace('$', '0x')
        if re.fullmatch(r'[0-9][0-9A-Fa-f]*[hH]', val_str):
            val_str = '0x' + val_str[:-1]
        if val_str.lower().startswith('0x'):
            return int(val_str, 16)
        try:
            return int(val_str)
        except ValueError:
            if val_str in symbol_map:
                return symbol_map[val_str]
            raise ValueError(f"Undefined symbol or invalid value: {val_str}")

# @intent:constant レジスタオペランド (V0-VF) の書式。
REGISTER_PATTERN = re.compile(r'^V([0-9A-F])$', re.IGNORECASE)

# @intent:responsibility Nibble16用のアセンブラ実装。
# @intent:rationale 全命令が2バイト固定長のため、1パス目は行数からアドレスを数えるだけで済みます。
class Nibble16Assembler(BaseAssembler):
    """
    Nibble16のアセンブラ。

    書式: `label: MNEMONIC op1, op2 ; comment`
    疑似命令: ORG addr / DB b1, b2, ... / DW w1, w2, ...
    """
    def __init__(self, origin: int = PROGRAM_START):
        self._origin = origin

    def assemble(self, lines: List[str]) -> Tuple[SymbolMap, BinaryData]:
        symbol_map: SymbolMap = {}
        binary_data: BinaryData = []
        parsed_lines = [self._parse_line(line) for line in lines]

        # First pass: Build symbol map
        temp_pc = self._origin
        for label, mnemonic, operands in parsed_lines:
            if label:
                symbol_map[label] = temp_pc
            if not mnemonic:
                continue
            if mnemonic == "ORG":
                temp_pc = self._parse_val(operands, {})
            elif mnemonic == "DB":
                temp_pc += len(self._split_operands(operands))
            elif mnemonic == "DW":
                temp_pc += 2 * len(self._split_operands(operands))
            else:
                temp_pc += 2

        # Second pass: Generate binary
        current_pc = self._origin
        for line_num, (label, mnemonic, operands) in enumerate(parsed_lines, 1):
            if not mnemonic:
                continue

            if mnemonic == "ORG":
                current_pc = self._parse_val(operands, {})
                continue

            if mnemonic == "DB":
                for val_str in self._split_operands(operands):
                    binary_data.append((current_pc, self._parse_val(val_str, symbol_map) & 0xFF))
                    current_pc += 1
                continue

            if mnemonic == "DW":
                for val_str in self._split_operands(operands):
                    word = self._parse_val(val_str, symbol_map) & 0xFFFF
                    binary_data.append((current_pc, word >> 8))
                    binary_data.append((current_pc + 1, word & 0xFF))
                    current_pc += 2
                continue

            try:
                instr = self._encode(mnemonic, self._split_operands(operands), symbol_map)
            except ValueError as e:
                raise ValueError(f"Line {line_num}: {e}") from e

            hi, lo = instr.to_bytes()
            binary_data.append((current_pc, hi))
            binary_data.append((current_pc + 1, lo))
            current_pc += 2

        return symbol_map, binary_data

    def _split_operands(self, operands: str) -> List[str]:
        return [op.strip() for op in operands.split(',') if op.strip()]

    def _register(self, operand: str) -> Optional[int]:
        match = REGISTER_PATTERN.match(operand)
        return int(match.group(1), 16) if match else None

    # @intent:responsibility 1命令をニーモニックとオペランドから命令語へ変換します。
    def _encode(self, mnemonic: str, ops: List[str], symbol_map: SymbolMap) -> Instruction:
        upper_ops = [op.upper() for op in ops]
        regs = [self._register(op) for op in ops]

        def value(i: int) -> int:
            return self._parse_val(ops[i], symbol_map)

        if mnemonic == "RET" and not ops:
            return Instruction(0x0000)
        if mnemonic == "EXIT" and not ops:
            return Instruction(0xFFFF)

        if mnemonic in ("JP", "CALL") and len(ops) == 1:
            return Instruction.from_address(0x1 if mnemonic == "JP" else 0x2, value(0))
        if mnemonic == "JP" and len(ops) == 2 and upper_ops[0] == "V0":
            return Instruction.from_address(0xB, value(1))

        if mnemonic in ("SE", "SNE") and len(ops) == 2 and regs[0] is not None:
            if regs[1] is not None:
                return Instruction.from_fields(0x5 if mnemonic == "SE" else 0x9, regs[0], regs[1], 0)
            return Instruction.from_immediate(0x3 if mnemonic == "SE" else 0x4, regs[0], value(1))

        if mnemonic == "LD" and len(ops) == 2:
            if upper_ops[0] == "I":
                return Instruction.from_address(0xA, value(1))
            if upper_ops[0] == "[I]" and regs[1] is not None:
                return Instruction.from_fields(0xE, regs[1])
            if regs[0] is not None and upper_ops[1] == "[I]":
                return Instruction.from_fields(0xF, regs[0], 0, 0x0)
            if regs[0] is not None and regs[1] is not None:
                return Instruction.from_fields(0x8, regs[0], regs[1], 0x0)
            if regs[0] is not None:
                return Instruction.from_immediate(0x6, regs[0], value(1))

        if mnemonic == "ADD" and len(ops) == 2:
            if upper_ops[0] == "I" and regs[1] is not None:
                return Instruction.from_fields(0xC, regs[1])
            if regs[0] is not None and regs[1] is not None:
                return Instruction.from_fields(0x8, regs[0], regs[1], 0x4)
            if regs[0] is not None:
                return Instruction.from_immediate(0x7, regs[0], value(1))

        if mnemonic in ALU_SUB_OPCODES and len(ops) == 2 and None not in regs:
            return Instruction.from_fields(0x8, regs[0], regs[1], ALU_SUB_OPCODES[mnemonic])

        if mnemonic in ("SHR", "SHL") and len(ops) in (1, 2) and None not in regs:
            y = regs[1] if len(ops) == 2 else 0
            return Instruction.from_fields(0x8, regs[0], y, 0x6 if mnemonic == "SHR" else 0xE)

        if mnemonic == "BCD" and len(ops) == 1 and regs[0] is not None:
            return Instruction.from_fields(0xD, regs[0])

        if mnemonic == "OUT":
            if len(ops) == 1 and regs[0] is not None:
                return Instruction.from_fields(0xF, regs[0], 0, 0x1)
            if len(ops) == 2 and upper_ops[0] == "[I]" and regs[1] is not None:
                return Instruction.from_fields(0xF, regs[1], 0, 0x2)

        raise ValueError(f"Unsupported instruction: {mnemonic} {', '.join(ops)}".rstrip())

# @intent:map レジスタ間演算のニーモニックから0x8ファミリーのサブオペコードへの対応。
ALU_SUB_OPCODES: Dict[str, int] = {
    "OR": 0x1,
    "AND": 0x2,
    "XOR": 0x3,
    "SUB": 0x5,
    "SUBN": 0x7,
}

# @intent:map アーキテクチャ名からアセンブラ生成関数への対応。
ASSEMBLERS: Dict[str, Callable[[], BaseAssembler]] = {
    "NIBBLE16": Nibble16Assembler,
}
