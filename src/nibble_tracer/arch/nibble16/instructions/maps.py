# src/nibble_tracer/arch/nibble16/instructions/maps.py
"""
オペコードと命令実装のマッピング定義。

1段目は上位4ビットのオペコードで引き、0x8（レジスタ間演算）と0xF（ブロック転送/出力/停止）の
2つのファミリーは、値が辞書になっており下位4ビット(n)で2段目を引きます。
"""
from typing import Callable, Dict, Optional, Union

from nibble_tracer.arch.nibble16.instruction import Instruction
from . import load
from . import alu
from . import control
from . import output

# @intent:map 0x8xyN ファミリーの2段目（n → 関数）。
ALU_DECODE_MAP = {
    0x0: alu.decode_ld_reg,
    0x1: alu.decode_or,
    0x2: alu.decode_and,
    0x3: alu.decode_xor,
    0x4: alu.decode_add_reg,
    0x5: alu.decode_sub,
    0x6: alu.decode_shr,
    0x7: alu.decode_subn,
    0xE: alu.decode_shl,
}

ALU_EXECUTE_MAP = {
    0x0: alu.execute_ld_reg,
    0x1: alu.execute_or,
    0x2: alu.execute_and,
    0x3: alu.execute_xor,
    0x4: alu.execute_add_reg,
    0x5: alu.execute_sub,
    0x6: alu.execute_shr,
    0x7: alu.execute_subn,
    0xE: alu.execute_shl,
}

# @intent:map 0xFx.N ファミリーの2段目（n → 関数）。
MISC_DECODE_MAP = {
    0x0: load.decode_load_block,
    0x1: output.decode_out_regs,
    0x2: output.decode_out_mem,
    0xF: output.decode_exit,
}

MISC_EXECUTE_MAP = {
    0x0: load.execute_load_block,
    0x1: output.execute_out_regs,
    0x2: output.execute_out_mem,
    0xF: output.execute_exit,
}

# @intent:map オペコード（上位4ビット）からデコード関数、または2段目のテーブルへのマッピング。
DECODE_MAP = {
    # Control
    0x0: control.decode_ret,
    0x1: control.decode_jp,
    0x2: control.decode_call,
    0x3: control.decode_se_imm,
    0x4: control.decode_sne_imm,
    0x5: control.decode_se_reg,
    # Load / ALU
    0x6: load.decode_ld_imm,
    0x7: alu.decode_add_imm,
    0x8: ALU_DECODE_MAP,
    0x9: control.decode_sne_reg,
    0xA: load.decode_ld_i,
    0xB: control.decode_jp_v0,
    0xC: load.decode_add_i,
    0xD: load.decode_bcd,
    0xE: load.decode_store_block,
    0xF: MISC_DECODE_MAP,
}

# @intent:map オペコード（上位4ビット）から実行関数、または2段目のテーブルへのマッピング。
EXECUTE_MAP = {
    # Control
    0x0: control.execute_ret,
    0x1: control.execute_jp,
    0x2: control.execute_call,
    0x3: control.execute_se_imm,
    0x4: control.execute_sne_imm,
    0x5: control.execute_se_reg,
    # Load / ALU
    0x6: load.execute_ld_imm,
    0x7: alu.execute_add_imm,
    0x8: ALU_EXECUTE_MAP,
    0x9: control.execute_sne_reg,
    0xA: load.execute_ld_i,
    0xB: control.execute_jp_v0,
    0xC: load.execute_add_i,
    0xD: load.execute_bcd,
    0xE: load.execute_store_block,
    0xF: MISC_EXECUTE_MAP,
}

# @intent:utility_function 2段階のテーブル引き。見つからなければNone（未知の命令）を返します。
def lookup(table: Dict[int, Union[Callable, Dict[int, Callable]]], instr: Instruction) -> Optional[Callable]:
    entry = table.get(instr.opcode)
    if isinstance(entry, dict):
        return entry.get(instr.n)
    return entry
