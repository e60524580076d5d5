from dataclasses import dataclass, field
from typing import Dict, List, Optional

from chip8_tracer.arch.chip8.state import MEMORY_SIZE, PROGRAM_START

@dataclass
class MemoryRegion:
    start: int
    end: int
    type: str = "RAM"
    label: str = ""

@dataclass
class CpuInitialState:
    pc: int = PROGRAM_START
    registers: Dict[int, int] = field(default_factory=dict)  # レジスタ番号 -> 8bit値

@dataclass
class ProgramSource:
    path: str
    format: str = "rom"  # "rom", "hex", "asm"
    address: int = PROGRAM_START

@dataclass
class SystemConfig:
    architecture: str = "CHIP8"
    memory_map: List[MemoryRegion] = field(
        default_factory=lambda: [MemoryRegion(0x000, MEMORY_SIZE - 1, "RAM", "main")]
    )
    initial_state: CpuInitialState = field(default_factory=CpuInitialState)
    program: Optional[ProgramSource] = None
