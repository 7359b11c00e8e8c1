from typing import List, Optional, Tuple
from nibble_tracer.transport.bus import Bus, RAM
from nibble_tracer.transport.console import OutputSink
from nibble_tracer.core.cpu import AbstractCpu
from nibble_tracer.arch.nibble16.cpu import Nibble16Cpu
from nibble_tracer.arch.nibble16.state import MEMORY_SIZE, REGISTER_COUNT, STACK_DEPTH
from nibble_tracer.loader.loader import BinaryLoader, AssemblyLoader
from .models import SystemConfig, CpuInitialState, MemoryRegion

# @intent:responsibility システム構成（Config）に基づいて、Bus、Device、CPUを生成・接続し、初期状態とプログラムを適用します。
class SystemBuilder:
    def build_system(self, config: SystemConfig, output: Optional[OutputSink] = None) -> Tuple[AbstractCpu, Bus]:
        bus = Bus()

        self.validate_memory_map(config.memory_map)

        if not config.memory_map:
            bus.register_device(0x0000, MEMORY_SIZE - 1, RAM(MEMORY_SIZE))

        for region in config.memory_map:
            size = region.end - region.start + 1
            if region.type != "RAM":
                print(f"Warning: Unknown device type '{region.type}' for range {region.start:04X}-{region.end:04X}, defaulting to RAM")
            bus.register_device(region.start, region.end, RAM(size))

        if config.architecture == "NIBBLE16":
            cpu = Nibble16Cpu(bus, output=output, trace=config.trace)
        else:
            raise ValueError(f"Unsupported architecture: {config.architecture}")

        # 初期状態の適用
        self.apply_initial_state(cpu, config.initial_state)

        if config.program:
            if config.program.format == "assembly":
                symbol_map = AssemblyLoader().load_assembly(config.program.path, bus, config.architecture)
                cpu.set_symbol_map(symbol_map)
            else:
                BinaryLoader().load_binary(config.program.path, bus, config.program.load_address)

        return cpu, bus

    # @intent:responsibility メモリマップが0x000-0xFFFを隙間なく、重複なく覆っていることを検証します。
    def validate_memory_map(self, memory_map: List[MemoryRegion]) -> None:
        next_start = 0
        for region in sorted(memory_map, key=lambda r: r.start):
            if region.start != next_start or region.end < region.start:
                raise ValueError(
                    f"Memory map must cover 0x000-{MEMORY_SIZE - 1:#05x} without gaps or overlaps "
                    f"(region {region.start:#05x}-{region.end:#05x} found where {next_start:#05x} was expected)."
                )
            next_start = region.end + 1
        if memory_map and next_start != MEMORY_SIZE:
            raise ValueError(
                f"Memory map must cover 0x000-{MEMORY_SIZE - 1:#05x} without gaps or overlaps "
                f"(mapped up to {next_start - 1:#05x})."
            )

    # @intent:responsibility Configで定義された初期状態をCPUに適用します。
    def apply_initial_state(self, cpu: AbstractCpu, config_state: CpuInitialState) -> None:
        """
        CPUをリセットし、Configから指定された初期値を適用します。
        レジスタ名は "V0"-"VF" です。
        """
        cpu.reset()
        state = cpu.get_state()
        state.pc = config_state.pc & 0xFFFF
        if not 0 <= config_state.sp < STACK_DEPTH:
            raise ValueError(f"Stack pointer {config_state.sp} is outside the call stack (0-{STACK_DEPTH - 1}).")
        state.sp = config_state.sp
        state.index = config_state.index & 0xFFFF
        for reg_name, value in config_state.registers.items():
            if len(reg_name) != 2 or reg_name[0] != "V":
                raise ValueError(f"Unknown register: {reg_name}")
            reg_index = int(reg_name[1], 16)
            if not 0 <= reg_index < REGISTER_COUNT:
                raise ValueError(f"Unknown register: {reg_name}")
            state.registers[reg_index] = value & 0xFF
