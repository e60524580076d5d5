import logging
import re
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from .models import SystemConfig, MemoryRegion, CpuInitialState, ProgramSource

logger = logging.getLogger(__name__)

_REGISTER_NAME = re.compile(r'^V([0-9A-F])$', re.IGNORECASE)
_KNOWN_KEYS = {"architecture", "memory_map", "initial_state", "program"}

class ConfigLoader:
    def load_from_file(self, path: Union[str, Path]) -> SystemConfig:
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}
        config = self.parse(data)
        # プログラムのパスは設定ファイルからの相対パスとして解決する
        if config.program is not None and not Path(config.program.path).is_absolute():
            config.program.path = str(Path(path).parent / config.program.path)
        logger.info("Loaded machine configuration from %s", path)
        return config

    def load_from_string(self, text: str) -> SystemConfig:
        return self.parse(yaml.safe_load(text) or {})

    def parse(self, data: Dict[str, Any]) -> SystemConfig:
        if not isinstance(data, dict):
            raise ValueError("Configuration root must be a mapping.")
        for key in data:
            if key not in _KNOWN_KEYS:
                logger.warning("Ignoring unknown configuration key '%s'", key)

        arch = str(data.get("architecture", "CHIP8")).upper()
        if arch != "CHIP8":
            raise ValueError(f"Unsupported architecture: {arch}")

        config = SystemConfig(architecture=arch)

        # Parse Memory Map
        if "memory_map" in data:
            config.memory_map = []
            for region_data in data["memory_map"]:
                config.memory_map.append(MemoryRegion(
                    start=self._parse_int(region_data.get("start")),
                    end=self._parse_int(region_data.get("end")),
                    type=str(region_data.get("type", "RAM")).upper(),
                    label=region_data.get("label", ""),
                ))

        # Parse Initial State
        initial_state_data = data.get("initial_state") or {}
        registers = {}
        for name, value in (initial_state_data.get("registers") or {}).items():
            index = self._parse_register(name)
            val = self._parse_int(value)
            if not 0 <= val <= 0xFF:
                raise ValueError(f"Register {name} value {val} is not an 8-bit value.")
            registers[index] = val
        config.initial_state = CpuInitialState(
            pc=self._parse_int(initial_state_data.get("pc", config.initial_state.pc)),
            registers=registers,
        )

        # Parse Program
        program_data = data.get("program")
        if program_data:
            fmt = str(program_data.get("format", "rom")).lower()
            if fmt not in ("rom", "hex", "asm"):
                raise ValueError(f"Unsupported program format: {fmt}")
            config.program = ProgramSource(
                path=str(program_data["path"]),
                format=fmt,
                address=self._parse_int(program_data.get("address", config.initial_state.pc)),
            )

        return config

    def _parse_register(self, name: Any) -> int:
        if isinstance(name, int):
            index = name
        else:
            m = _REGISTER_NAME.match(str(name).strip())
            if not m:
                raise ValueError(f"Invalid register name: {name}")
            index = int(m.group(1), 16)
        if not 0 <= index <= 0xF:
            raise ValueError(f"Register index out of range: {name}")
        return index

    def _parse_int(self, value: Any) -> int:
        if isinstance(value, bool):
            raise ValueError(f"Invalid integer format: {value}")
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            value = value.strip()
            if value.lower().startswith("0x"):
                return int(value, 16)
            if value.startswith("$"):
                return int(value[1:], 16)
            return int(value)
        raise ValueError(f"Invalid integer format: {value}")
