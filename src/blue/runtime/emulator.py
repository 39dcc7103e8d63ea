import sys
from pathlib import Path
import logging as lg
import traceback
from typing import Callable, Iterable

import click

from blue.common.hwconf import ADDR_MASK
from blue.common.settings import DebugSettings
from blue.common.words import parse_number
from blue.runtime.debugger import Debugger
from blue.runtime.devices import ConsoleDevice, ScriptedDevice, HEX_BYTE
from blue.sasm.fpp import AsmError
import blue.runtime.cpu as cpu
import blue.runtime.loader as loader


EXIT_HALT = 0
EXIT_LOAD_ERROR = 1
EXIT_IO_ERROR = 2
EXIT_KEYBOARD = 3
EXIT_EXEC_ERROR = 100


class Address(click.ParamType):
    name = 'address'

    def convert(self, value, param, ctx):
        if isinstance(value, int):
            return value

        try:
            addr = parse_number(value)
        except ValueError:
            self.fail(f'{value!r} is not an address', param, ctx)

        if not 0 <= addr <= ADDR_MASK:
            self.fail(f'{value!r} is outside 0..{ADDR_MASK}', param, ctx)

        return addr


def execute(
    words: list[int],
    settings: DebugSettings,
    device: cpu.Device,
    breakpoints: Iterable[int] = (),
    read_command: Callable[[], str] = input
) -> cpu.CPU:
    proc = cpu.CPU(settings, device)
    proc.load_program(words)

    for addr in breakpoints:
        proc.set_breakpoint(addr)

    if settings.enabled:
        Debugger(proc, device).session(read_command)
    else:
        proc.run(device)

    return proc


@click.group()
def cli():
    pass


@cli.command()
@click.option('-v', '--verbose', is_flag=True, help='Sets logging level to debug')
@click.option('--config', type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help='TOML file with a [debug] table')
@click.option('--debug/--no-debug', default=None, help='Interactive debugger and breakpoints')
@click.option('--print-registers/--no-print-registers', default=None,
              help='Print registers after every instruction cycle')
@click.option('--auto-input', multiple=True, type=HEX_BYTE,
              help='Hex byte supplied to INP instead of prompting (repeatable)')
@click.option('-b', '--break', 'breakpoints', multiple=True, type=Address(),
              help='Breakpoint address (repeatable)')
@click.argument('program')
def run(
    verbose: bool,
    config: Path | None,
    debug: bool | None,
    print_registers: bool | None,
    auto_input: tuple[int, ...],
    breakpoints: tuple[int, ...],
    program: str
):
    lg.basicConfig(level=lg.DEBUG if verbose else lg.INFO)
    lg.info("BLUE")

    try:
        settings = DebugSettings.from_toml(config) if config else DebugSettings()
        settings.update(enabled=debug, print_registers=print_registers)
        words = loader.load_program_file(loader.resolve_program(program))

    except (OSError, ValueError, AsmError, cpu.BlueError) as e:
        lg.error(f'Cannot load {program}: {e}')
        sys.exit(EXIT_LOAD_ERROR)

    device: cpu.Device = ConsoleDevice()

    if auto_input:
        settings.update(manual_input=False)
        device = ScriptedDevice(auto_input, echo=True)

    lg.debug(f'{settings}')

    try:
        execute(words, settings, device, breakpoints)
        sys.exit(EXIT_HALT)

    except cpu.IOHandshakeError as e:
        lg.info(f'Execution halted on I/O handshake: {e}')
        sys.exit(EXIT_IO_ERROR)

    except KeyboardInterrupt:
        lg.info('Execution halted by the user')
        sys.exit(EXIT_KEYBOARD)

    except Exception as e:
        lg.info(f'Execution halted on general error {e}')
        traceback.print_exc()
        sys.exit(EXIT_EXEC_ERROR)


@cli.command('list')
def list_programs():
    for name in loader.bundled_programs():
        click.echo(name)


if __name__ == '__main__':
    cli()
