import logging
from typing import Tuple

from chip8_tracer.transport.bus import Bus, RAM
from chip8_tracer.arch.chip8.cpu import Chip8Cpu
from chip8_tracer.loader.loader import RomImageLoader, IntelHexLoader, AssemblyLoader
from .models import SystemConfig, CpuInitialState, ProgramSource

logger = logging.getLogger(__name__)

# @intent:responsibility システム構成（Config）に基づいて、Bus、Device、CPUを生成・接続し、初期状態を適用します。
class SystemBuilder:
    def build_system(self, config: SystemConfig) -> Tuple[Chip8Cpu, Bus]:
        if config.architecture != "CHIP8":
            raise ValueError(f"Unsupported architecture: {config.architecture}")

        bus = Bus()
        for region in config.memory_map:
            if region.type != "RAM":
                logger.warning(
                    "Unknown device type '%s' for range %03X-%03X, defaulting to RAM",
                    region.type, region.start, region.end,
                )
            bus.register_device(region.start, region.end, RAM(region.end - region.start + 1))

        cpu = Chip8Cpu(bus)
        self.apply_initial_state(cpu, config.initial_state)

        if config.program is not None:
            symbols = self.load_program(cpu, config.program)
            cpu.set_symbol_map(symbols)

        return cpu, bus

    # @intent:responsibility Configで定義された初期状態をCPUに適用します。
    def apply_initial_state(self, cpu: Chip8Cpu, config_state: CpuInitialState) -> None:
        """
        CPUをリセットし、Configから指定された初期値を適用します。
        """
        cpu.reset()
        state = cpu.get_state()
        state.pc = config_state.pc
        for index, value in config_state.registers.items():
            state.v[index] = value

    # @intent:responsibility 設定されたプログラムを形式に応じたローダーでロードし、シンボルマップを返します。
    def load_program(self, cpu: Chip8Cpu, program: ProgramSource) -> dict:
        if program.format == "rom":
            RomImageLoader().load_rom(program.path, cpu.bus, program.address)
            return {}
        if program.format == "hex":
            IntelHexLoader().load_intel_hex(program.path, cpu.bus)
            return {}
        if program.format == "asm":
            return AssemblyLoader().load_assembly(program.path, cpu.bus)
        raise ValueError(f"Unsupported program format: {program.format}")
