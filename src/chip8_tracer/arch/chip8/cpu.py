# chip8_tracer/arch/chip8/cpu.py
"""
CHIP-8 インタプリタコアの中心モジュール。
"""
from typing import Dict, Iterable, List, Optional, Union

from chip8_tracer.common.errors import OutOfBoundsFetchError
from chip8_tracer.common.types import DisassemblyLine, RegisterLayoutInfo, RegisterInfo
from chip8_tracer.core.cpu import AbstractCpu
from chip8_tracer.core.snapshot import Metadata, Snapshot
from chip8_tracer.transport.bus import Bus, RAM
from chip8_tracer.arch.chip8.state import (
    Chip8CpuState,
    MEMORY_SIZE,
    PROGRAM_START,
    REGISTER_COUNT,
)
from chip8_tracer.arch.chip8.instructions import assemble_word, decode_opcode, execute_instruction
from chip8_tracer.arch.chip8.instructions.base import Chip8Operation, InstructionKind, make_operation
from chip8_tracer.arch.chip8 import disassembler


# @intent:utility_function 4KBのRAMを1つだけ接続した標準構成のバスを生成します。
def create_default_bus() -> Bus:
    bus = Bus()
    bus.register_device(0x000, MEMORY_SIZE - 1, RAM(MEMORY_SIZE))
    return bus


# @intent:responsibility CHIP-8 のフェッチ・デコード・実行ループを提供します。
class Chip8Cpu(AbstractCpu):
    """
    CHIP-8 命令サブセットを実行するインタプリタコア。

    ハーネスは実行前に `registers` と `memory`（またはバス）へ直接書き込み、
    `run()` の終了後にそれらを読み出します。
    """
    # @intent:responsibility バスが省略された場合は標準構成（4KB RAM）で初期化します。
    def __init__(self, bus: Optional[Bus] = None):
        super().__init__(bus if bus is not None else create_default_bus())

    def _create_initial_state(self) -> Chip8CpuState:
        return Chip8CpuState()

    # @intent:responsibility レジスタ・スタック・PC・SPに加えて、メモリ内容も全てゼロに戻します。
    def reset(self) -> None:
        super().reset()
        self._bus.clear()

    # @intent:accessor レジスタファイル（V0-VF）への直接アクセスを提供します。
    @property
    def registers(self) -> bytearray:
        return self._state.v

    # @intent:accessor アドレス空間全体を覆うRAMのバッファへの直接アクセスを提供します。
    # @intent:pre-condition 単一のRAMが 0x000 から MEMORY_SIZE バイトをマップしていること。
    @property
    def memory(self) -> bytearray:
        for start, _, device in self._bus.get_devices():
            if start == 0 and isinstance(device, RAM) and device.get_size() == MEMORY_SIZE:
                return device.data
        raise RuntimeError("No single RAM device covers the whole address space; use the bus instead.")

    @property
    def halted(self) -> bool:
        return self._state.halted

    def resume(self) -> None:
        self._state.halted = False

    # @intent:responsibility ビッグエンディアンの命令語列またはバイト列をメモリに配置します。
    def load_program(self, program: Union[bytes, bytearray, Iterable[int]], address: int = PROGRAM_START) -> int:
        """
        `program` が bytes/bytearray の場合はそのまま、整数の列の場合は16ビット命令語として
        上位バイトから順に書き込みます。書き込んだバイト数を返します。
        """
        if isinstance(program, (bytes, bytearray)):
            data = bytes(program)
        else:
            data = bytearray()
            for word in program:
                if not 0 <= word <= 0xFFFF:
                    raise ValueError(f"Instruction word {word} is not a 16-bit value.")
                data.append((word >> 8) & 0xFF)
                data.append(word & 0xFF)
        if address < 0 or address + len(data) > MEMORY_SIZE:
            raise ValueError(
                f"Program of {len(data)} bytes does not fit at {address:#05x} in {MEMORY_SIZE} bytes of memory."
            )
        self._bus.load_bytes(address, bytes(data))
        return len(data)

    # @intent:responsibility PCとPC+1の2バイトを読み出し、命令語を組み立てます。
    # @intent:post-condition どちらかのアドレスがメモリ外の場合は OutOfBoundsFetchError を送出します。
    def _fetch(self) -> int:
        pc = self._state.pc
        for address in (pc, pc + 1):
            if not self._bus.is_mapped(address):
                raise OutOfBoundsFetchError(address)
        return assemble_word(self._bus.read(pc), self._bus.read(pc + 1))

    def _decode(self, opcode: int) -> Chip8Operation:
        return decode_opcode(opcode)

    def _execute(self, operation: Chip8Operation) -> None:
        execute_instruction(operation, self._state, self._bus)

    # @intent:responsibility HALT済みの場合はフェッチを行わず、現在の状態のSnapshotを返します。
    def _handle_halt(self, current_pc: int) -> Optional[Snapshot]:
        if not self._state.halted:
            return None
        return Snapshot(
            state=self._state.copy(),
            operation=make_operation(InstructionKind.HALT, 0x0000),
            metadata=Metadata(cycle_count=self._cycle_count, symbol_info="HALT"),
            bus_activity=[],
        )

    def get_register_map(self) -> Dict[str, int]:
        s = self._state
        regs = {f"V{i:X}": s.v[i] for i in range(REGISTER_COUNT)}
        regs.update({"PC": s.pc, "SP": s.sp})
        return regs

    def get_register_layout(self) -> List[RegisterLayoutInfo]:
        return [
            RegisterLayoutInfo("General", [RegisterInfo(f"V{i:X}", 8) for i in range(REGISTER_COUNT)]),
            RegisterLayoutInfo("Control", [RegisterInfo("PC", 16), RegisterInfo("SP", 8)]),
        ]

    # @intent:responsibility VF をフラグとして公開します。
    def get_flag_state(self) -> Dict[str, bool]:
        return {"VF": self._state.vf != 0}

    def disassemble(self, start_addr: int, length: int) -> List[DisassemblyLine]:
        return disassembler.disassemble(self._bus, start_addr, length)
