import os
import yaml
from typing import Dict, Any, Optional
from .models import SystemConfig, MemoryRegion, CpuInitialState, ProgramConfig

SUPPORTED_ARCHITECTURES = ("NIBBLE16",)
PROGRAM_FORMATS = ("binary", "assembly")

class ConfigLoader:
    def load_from_file(self, path: str) -> SystemConfig:
        with open(path, 'r', encoding="utf-8") as f:
            data = yaml.safe_load(f)
        # プログラムのパスは設定ファイルからの相対パスとして解決する
        return self._parse_config(data or {}, base_dir=os.path.dirname(os.path.abspath(path)))

    def load_from_string(self, text: str) -> SystemConfig:
        data = yaml.safe_load(text)
        return self._parse_config(data or {})

    def _parse_config(self, data: Dict[str, Any], base_dir: Optional[str] = None) -> SystemConfig:
        if not isinstance(data, dict):
            raise ValueError("Configuration root must be a mapping.")

        arch = str(data.get("architecture", "NIBBLE16")).upper()
        if arch not in SUPPORTED_ARCHITECTURES:
            raise ValueError(f"Unsupported architecture: {arch}")

        # Parse Memory Map
        memory_map = []
        for region_data in data.get("memory_map", []):
            memory_map.append(MemoryRegion(
                start=self._parse_int(region_data.get("start")),
                end=self._parse_int(region_data.get("end")),
                type=region_data.get("type", "RAM"),
                label=region_data.get("label", ""),
            ))

        # Parse Initial State
        initial_state_data = data.get("initial_state", {})
        initial_state = CpuInitialState(
            pc=self._parse_int(initial_state_data.get("pc", 0x200)),
            sp=self._parse_int(initial_state_data.get("sp", 0)),
            index=self._parse_int(initial_state_data.get("index", 0)),
            registers={
                str(name).upper(): self._parse_int(value)
                for name, value in (initial_state_data.get("registers") or {}).items()
            },
        )

        # Parse Program
        program = None
        program_data = data.get("program")
        if program_data:
            path = program_data.get("path")
            if not path:
                raise ValueError("Program section requires a 'path'.")
            if base_dir and not os.path.isabs(path):
                path = os.path.join(base_dir, path)
            fmt = program_data.get("format", "binary")
            if fmt not in PROGRAM_FORMATS:
                raise ValueError(f"Unknown program format: {fmt}")
            program = ProgramConfig(
                path=path,
                format=fmt,
                load_address=self._parse_int(program_data.get("load_address", 0x200)),
            )

        max_cycles = data.get("max_cycles")

        return SystemConfig(
            architecture=arch,
            memory_map=memory_map,
            initial_state=initial_state,
            program=program,
            trace=bool(data.get("trace", True)),
            max_cycles=self._parse_int(max_cycles) if max_cycles is not None else None,
        )

    def _parse_int(self, value: Any) -> int:
        if isinstance(value, bool):
            raise ValueError(f"Invalid integer format: {value}")
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            if value.lower().startswith("0x"):
                return int(value, 16)
            return int(value)
        raise ValueError(f"Invalid integer format: {value}")
