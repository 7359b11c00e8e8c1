# src/nibble_tracer/arch/nibble16/__init__.py
"""
Nibble16 Architecture Package
"""
from .instruction import Instruction
from .state import Nibble16CpuState
from .cpu import Nibble16Cpu
