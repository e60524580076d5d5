# chip8_tracer/cli.py
"""
コマンドラインのエントリポイント。

プログラム（ROMイメージ / Intel HEX / アセンブリ）または YAML のマシン構成を読み込み、
HALTまたはフォルトまで実行してレジスタの内容を表示します。
プログラムを指定しない場合は組み込みのデモ（5 + 10）を実行します。
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from chip8_tracer.arch.chip8.cpu import Chip8Cpu
from chip8_tracer.arch.chip8.state import MEMORY_SIZE
from chip8_tracer.config.builder import SystemBuilder
from chip8_tracer.config.loader import ConfigLoader
from chip8_tracer.config.models import ProgramSource
from chip8_tracer.core.result import RunOutcome, RunResult
from chip8_tracer.debugger.debugger import Debugger

_FORMATS_BY_SUFFIX = {".ch8": "rom", ".bin": "rom", ".rom": "rom", ".hex": "hex", ".asm": "asm", ".s": "asm"}

# @intent:constant 組み込みデモ: ADD V0, V1 / HALT
DEMO_PROGRAM = [0x8014, 0x0000]


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chip8-tracer",
        description="CHIP-8 interpreter core with instruction tracing",
    )
    parser.add_argument("program", nargs="?", type=Path, help="Program to run (.ch8/.bin raw image, .hex, .asm)")
    parser.add_argument("--config", type=Path, help="YAML machine description")
    parser.add_argument("--format", choices=["rom", "hex", "asm"], help="Program format (default: by file suffix)")
    parser.add_argument(
        "--reg", action="append", default=[], metavar="Vx=VALUE",
        help="Initial register value, e.g. --reg V0=5 (repeatable)",
    )
    parser.add_argument("--max-steps", type=int, help="Stop after this many instructions")
    parser.add_argument("--trace", action="store_true", help="Print every executed instruction")
    parser.add_argument("--disassemble", action="store_true", help="Print a listing of the program and exit")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    return parser


def parse_register_assignment(text: str) -> Tuple[int, int]:
    name, sep, value = text.partition("=")
    name = name.strip().upper()
    if not sep or len(name) != 2 or name[0] != "V":
        raise ValueError(f"Invalid register assignment: {text}")
    index = int(name[1], 16)
    val = int(value.strip(), 0)
    if not 0 <= val <= 0xFF:
        raise ValueError(f"Register value out of range: {text}")
    return index, val


def format_registers(cpu: Chip8Cpu) -> str:
    regs = cpu.get_register_map()
    general = " ".join(f"V{i:X}={regs[f'V{i:X}']:02X}" for i in range(16))
    return f"{general}\nPC={regs['PC']:03X} SP={regs['SP']}"


def format_result(result: RunResult) -> str:
    if result.outcome is RunOutcome.FAULTED:
        return f"{result.outcome.value}: {result.fault_kind.value} - {result.fault} after {result.steps} steps"
    return f"{result.outcome.value} after {result.steps} steps at PC={result.pc:03X}"


def _build_cpu(args: argparse.Namespace, parser: argparse.ArgumentParser) -> Tuple[Chip8Cpu, bool]:
    builder = SystemBuilder()
    if args.config:
        if not args.config.exists():
            parser.error(f"Config file not found: {args.config}")
        config = ConfigLoader().load_from_file(args.config)
    else:
        config = ConfigLoader().parse({})

    if args.program:
        if not args.program.exists():
            parser.error(f"Program file not found: {args.program}")
        fmt = args.format or _FORMATS_BY_SUFFIX.get(args.program.suffix.lower(), "rom")
        config.program = ProgramSource(path=str(args.program), format=fmt, address=config.initial_state.pc)

    for text in args.reg:
        index, value = parse_register_assignment(text)
        config.initial_state.registers[index] = value

    demo = config.program is None
    if demo and not args.reg:
        config.initial_state.registers.update({0x0: 5, 0x1: 10})

    cpu, _ = builder.build_system(config)
    if demo:
        cpu.load_program(DEMO_PROGRAM)
    return cpu, demo


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    try:
        cpu, demo = _build_cpu(args, parser)
    except (OSError, ValueError) as exc:
        parser.exit(2, f"chip8-tracer: {exc}\n")

    if args.disassemble:
        start = cpu.get_state().pc
        # 最初の HALT までを表示する
        for addr, hex_bytes, text in cpu.disassemble(start, MEMORY_SIZE - start):
            print(f"{addr:03X}: {hex_bytes}  {text}")
            if text == "HALT":
                break
        return 0

    v0, v1 = cpu.registers[0], cpu.registers[1]
    debugger = Debugger(cpu)
    if args.trace:
        result = _run_traced(cpu, debugger, args.max_steps)
    elif args.max_steps is not None:
        result = debugger.run(max_instructions=args.max_steps)
    else:
        result = cpu.run()

    if demo:
        print(f"{v0} + {v1} = {cpu.registers[0]}")
    print(format_registers(cpu))
    print(format_result(result))
    return 1 if result.outcome is RunOutcome.FAULTED else 0


def _run_traced(cpu: Chip8Cpu, debugger: Debugger, max_steps: Optional[int]) -> RunResult:
    while True:
        pc = cpu.get_state().pc
        result = debugger.run(max_instructions=1)
        if result.steps:
            snapshot = debugger.get_last_snapshot()
            print(f"{pc:03X}: {snapshot.operation.opcode_hex}  {snapshot.metadata.symbol_info}")
        if result.outcome is not RunOutcome.LIMIT_REACHED:
            return RunResult(result.outcome, steps=len(debugger.get_history()), pc=result.pc, fault=result.fault)
        if max_steps is not None and len(debugger.get_history()) >= max_steps:
            return RunResult(RunOutcome.LIMIT_REACHED, steps=len(debugger.get_history()), pc=result.pc)


if __name__ == "__main__":
    sys.exit(main())
