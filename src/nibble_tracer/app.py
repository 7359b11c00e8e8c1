# nibble_tracer/app.py
"""
コマンドラインから実行するためのエントリポイント。
システムを構築してプログラムを実行し、RunResultの終了コードでプロセスを終了します。
"""
import argparse
import sys
from typing import List, Optional

from nibble_tracer.config.loader import ConfigLoader
from nibble_tracer.config.builder import SystemBuilder
from nibble_tracer.config.models import SystemConfig, ProgramConfig
from nibble_tracer.core.result import RunStatus

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="nibble-tracer", description="Nibble16 CPU emulator and tracer")
    parser.add_argument("program", nargs="?", help="program image (raw binary) or assembly source")
    parser.add_argument("-c", "--config", help="YAML system configuration")
    parser.add_argument("--asm", action="store_true", help="treat PROGRAM as assembly source")
    parser.add_argument("--no-trace", action="store_true", help="do not print each instruction word")
    parser.add_argument("--max-cycles", type=int, default=None, help="stop after N instructions")
    return parser

# @intent:responsibility 引数と設定ファイルを統合し、システムを構築して実行します。
def run(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    config = ConfigLoader().load_from_file(args.config) if args.config else SystemConfig()
    if args.program:
        config.program = ProgramConfig(path=args.program, format="assembly" if args.asm else "binary")
    if config.program is None:
        print("error: no program given (pass PROGRAM or a config with a program section)", file=sys.stderr)
        return 2
    if args.no_trace:
        config.trace = False
    if args.max_cycles is not None:
        config.max_cycles = args.max_cycles

    cpu, _ = SystemBuilder().build_system(config)
    result = cpu.run(max_cycles=config.max_cycles)

    if result.status == RunStatus.FAULTED:
        print(f"fault: {result.fault}", file=sys.stderr)
    if result.unknown_instructions:
        print(f"{result.unknown_instructions} unknown instruction(s) executed", file=sys.stderr)
    return result.exit_code

def main():
    """
    アプリケーションのメイン関数。
    """
    sys.exit(run())

if __name__ == '__main__':
    main()
