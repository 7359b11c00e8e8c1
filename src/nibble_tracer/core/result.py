# nibble_tracer/core/result.py
"""
実行ループ（AbstractCpu.run）の終了結果を表すデータ構造。

プロセスを終了させる代わりに、停止理由と終了コードを呼び出し元へ返します。
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from nibble_tracer.core.snapshot import Snapshot

# @intent:responsibility 実行ループが停止した理由を定義します。
class RunStatus(Enum):
    HALTED = "HALTED"           # 停止命令を実行した
    FAULTED = "FAULTED"         # 致命的な異常（CpuFault）で停止した
    CANCELLED = "CANCELLED"     # 協調的キャンセルにより停止した
    CYCLE_LIMIT = "CYCLE_LIMIT" # 指定サイクル数に達した

# @intent:constant 停止理由ごとの終了コード。HALTEDの1は停止命令の慣習に従う。
EXIT_CODES = {
    RunStatus.HALTED: 1,
    RunStatus.FAULTED: 2,
    RunStatus.CYCLE_LIMIT: 3,
    RunStatus.CANCELLED: 130,
}

# @intent:responsibility 1回の実行の終了結果を不変に記録します。
@dataclass(frozen=True)
class RunResult:
    status: RunStatus
    cycles: int = 0
    instructions: int = 0
    unknown_instructions: int = 0
    fault: Optional[str] = None
    last_snapshot: Optional[Snapshot] = None

    @property
    def exit_code(self) -> int:
        return EXIT_CODES[self.status]
