from dataclasses import dataclass, field
from typing import Dict, List, Optional

@dataclass
class MemoryRegion:
    start: int
    end: int
    type: str  # "RAM"
    label: str = ""

@dataclass
class ProgramConfig:
    path: str
    format: str = "binary"  # "binary", "assembly"
    load_address: int = 0x200

@dataclass
class CpuInitialState:
    pc: int = 0x200
    sp: int = 0x00
    index: int = 0x0000
    registers: Dict[str, int] = field(default_factory=dict)  # 例: {"V0": 0x11}

@dataclass
class SystemConfig:
    architecture: str = "NIBBLE16"
    memory_map: List[MemoryRegion] = field(default_factory=list)
    initial_state: CpuInitialState = field(default_factory=CpuInitialState)
    program: Optional[ProgramConfig] = None
    trace: bool = True
    max_cycles: Optional[int] = None
