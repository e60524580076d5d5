"""
CHIP-8 Architecture Package
"""
from .state import Chip8CpuState
from .cpu import Chip8Cpu, create_default_bus
