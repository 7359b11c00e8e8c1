# nibble_tracer/core/cpu.py
"""
Core Layer (抽象CPU)

このモジュールは、CPUの基本的な状態管理と命令サイクルの駆動に関する抽象化を提供します。
具体的な命令の振る舞いはInstruction Layerに移譲されます。
"""
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional

from nibble_tracer.transport.bus import Bus
from nibble_tracer.core.snapshot import Snapshot, Operation, Metadata
from nibble_tracer.core.state import CpuState
from nibble_tracer.core.errors import CpuFault
from nibble_tracer.core.result import RunResult, RunStatus
from nibble_tracer.common.types import SymbolMap, DisassemblyLine

# @intent:responsibility 抽象CPUの基本機能とインターフェースを定義します。
class AbstractCpu(ABC):
    """
    全てのCPUエミュレーションの基底となる抽象クラス。
    Busとのインターフェース、基本的な状態管理、命令サイクルと実行ループの抽象化を提供します。
    """
    # @intent:pre-condition `bus`は有効なBusオブジェクトである必要があります。
    def __init__(self, bus: Bus):
        self._bus = bus
        self._state: CpuState = self._create_initial_state()
        self._cycle_count: int = 0
        self._unknown_instruction_count: int = 0
        self._stop_requested: bool = False
        self._symbol_map: SymbolMap = {}
        self._reverse_symbol_map: Dict[int, str] = {}
        # @intent:rationale Stateオブジェクトの直接操作を避けるため、protectedな命名規則を採用。
        #                  外部からのアクセスは`get_state()`メソッドを介して行う。

    def set_symbol_map(self, symbol_map: SymbolMap) -> None:
        """
        シンボルマップ（名前とアドレスの対応表）を設定します。
        """
        self._symbol_map = symbol_map
        # 逆引きマップを作成して、アドレスからラベルを素早く引けるようにする
        self._reverse_symbol_map = {addr: name for name, addr in symbol_map.items()}

    def get_symbol_map(self) -> SymbolMap:
        return self._symbol_map

    # @intent:responsibility 初期状態のCpuStateオブジェクトを生成します。
    # @intent:rationale 各CPUアーキテクチャで初期状態が異なるため、抽象メソッドとして定義します。
    @abstractmethod
    def _create_initial_state(self) -> CpuState:
        """
        CPUの初期状態を生成して返します。
        """
        pass

    # @intent:responsibility CPUをリセットし、初期状態に戻します。
    def reset(self) -> None:
        """
        CPUの状態を初期値に戻し、サイクル数と異常カウンタをクリアします。
        メモリ（バス上のデバイス）の内容は変更しません。
        """
        self._state = self._create_initial_state()
        self._cycle_count = 0
        self._unknown_instruction_count = 0

    def get_state(self) -> CpuState:
        """
        現在のCPUの状態を返します（コピーではありません）。
        """
        return self._state

    # @intent:responsibility 保存された状態からCPUの状態を復元します。デバッガのステップバックで使用します。
    def restore_state(self, state: CpuState) -> None:
        self._state = state.copy()

    # @intent:responsibility 累計カウンタを復元します。デバッガのステップバックで状態と共に使用します。
    def restore_counters(self, cycle_count: int, unknown_instruction_count: int) -> None:
        self._cycle_count = cycle_count
        self._unknown_instruction_count = unknown_instruction_count

    @property
    def is_halted(self) -> bool:
        return self._state.halted

    @property
    def cycle_count(self) -> int:
        return self._cycle_count

    @property
    def unknown_instruction_count(self) -> int:
        return self._unknown_instruction_count

    # @intent:responsibility メモリから次の命令をフェッチします。
    @abstractmethod
    def _fetch(self) -> int:
        """
        現在のPCから命令をフェッチし、その値を返します。
        PCの更新は`_update_pc`で行います。
        """
        pass

    # @intent:responsibility フェッチした命令を解析し、Operationオブジェクトに変換します。
    @abstractmethod
    def _decode(self, opcode: int) -> Operation:
        pass

    # @intent:responsibility デコードされた命令を実行し、CPUの状態を更新します。
    @abstractmethod
    def _execute(self, operation: Operation) -> None:
        pass

    # @intent:responsibility CPUを1命令サイクル進め、その結果のスナップショットを返します。
    # @intent:rationale Template Methodパターンを採用し、共通の実行フロー（ログクリア→フェッチ→デコード→PC更新→実行→Snapshot生成）を定義します。
    # @intent:post-condition 致命的な異常が発生した場合はCpuFaultを送出します。
    def step(self) -> Snapshot:
        """
        CPUを1命令サイクル進め、その時点でのCPUとバスの状態を含むSnapshotオブジェクトを返します。
        """
        # 1. 前処理: 前サイクルまでの残存ログを破棄
        self._bus.get_and_clear_activity_log()
        initial_pc = self._state.pc

        # 2. HALT判定 (Hook)
        halt_snapshot = self._handle_halt(initial_pc)
        if halt_snapshot:
            return halt_snapshot

        # 3. フェッチ
        opcode = self._fetch()

        # 4. デコード
        operation = self._decode(opcode)

        # 5. PC更新 (Hook)
        self._update_pc(operation)

        # 6. 実行
        self._execute(operation)

        # 7. 後処理 & Snapshot生成
        return self._create_snapshot(initial_pc, operation)

    # @intent:responsibility HALT状態の場合の処理を行います。
    # @intent:return HALT中であればその状態のSnapshot、そうでなければNone。
    def _handle_halt(self, current_pc: int) -> Optional[Snapshot]:
        """
        HALT状態の場合の処理。デフォルトは何もしない（Noneを返す）。
        """
        return None

    def _update_pc(self, operation: Operation) -> None:
        """
        命令実行前のPC更新。デフォルトは命令長分進める。
        """
        self._state.pc = (self._state.pc + operation.length) & 0xFFFF

    # @intent:responsibility スナップショットを生成します。
    def _create_snapshot(self, initial_pc: int, operation: Operation) -> Snapshot:
        bus_activity = self._bus.get_and_clear_activity_log()

        self._cycle_count += operation.cycle_count
        if operation.mnemonic == "UNKNOWN":
            self._unknown_instruction_count += 1

        symbol_label = self._reverse_symbol_map.get(initial_pc, "")
        symbol_info = f"{symbol_label}: " if symbol_label else ""
        symbol_info += f"{operation.mnemonic}"
        if operation.operands:
            symbol_info += " " + ", ".join(operation.operands)

        return Snapshot(
            state=self._state.copy(),
            operation=operation,
            metadata=Metadata(
                cycle_count=self._cycle_count,
                symbol_info=symbol_info,
                unknown_instruction_count=self._unknown_instruction_count,
            ),
            bus_activity=bus_activity
        )

    # @intent:responsibility HALT、フォールト、キャンセル、サイクル上限のいずれかまで命令を実行し続けます。
    # @intent:rationale ホストプロセスを終了させず、停止理由をRunResultとして返します。
    #                  キャンセル判定はサイクル毎に1回、命令の実行前に行います。
    def run(self, max_cycles: Optional[int] = None,
            cancel: Optional[Callable[[], bool]] = None) -> RunResult:
        """
        実行ループ。

        Args:
            max_cycles: この呼び出しで実行する命令数の上限。Noneなら無制限。
            cancel: 各サイクルの前に呼ばれ、Trueを返すと実行を中断する。
        """
        self._stop_requested = False
        executed = 0
        last_snapshot: Optional[Snapshot] = None

        while True:
            if self.is_halted:
                return self._make_result(RunStatus.HALTED, executed, last_snapshot)
            if self._stop_requested or (cancel is not None and cancel()):
                return self._make_result(RunStatus.CANCELLED, executed, last_snapshot)
            if max_cycles is not None and executed >= max_cycles:
                return self._make_result(RunStatus.CYCLE_LIMIT, executed, last_snapshot)

            try:
                last_snapshot = self.step()
            except CpuFault as e:
                return self._make_result(RunStatus.FAULTED, executed, last_snapshot, fault=str(e))
            executed += 1

    # @intent:responsibility 実行中のループに停止を要求します（次のサイクルの前で停止）。
    def stop(self) -> None:
        self._stop_requested = True

    def _make_result(self, status: RunStatus, executed: int,
                     last_snapshot: Optional[Snapshot], fault: Optional[str] = None) -> RunResult:
        return RunResult(
            status=status,
            cycles=self._cycle_count,
            instructions=executed,
            unknown_instructions=self._unknown_instruction_count,
            fault=fault,
            last_snapshot=last_snapshot,
        )

    @abstractmethod
    def get_register_map(self) -> Dict[str, int]:
        """
        現在のレジスタ値を辞書形式で返す。
        デバッガがCPUの内部構造を知らなくてもレジスタを参照できるようにするために使用される。
        """
        pass

    @abstractmethod
    def disassemble(self, start_addr: int, length: int) -> List[DisassemblyLine]:
        """
        指定されたメモリ範囲を逆アセンブルし、(address, hex_bytes, mnemonic) のタプルリストを返す。
        """
        pass
