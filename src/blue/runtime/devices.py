import logging as lg
from collections import deque
from typing import Iterable

import click

from blue.common.hwconf import BYTE_MASK
from blue.runtime.cpu import IOHandshakeIncomplete


class HexByte(click.ParamType):
    name = 'hex byte'

    def convert(self, value, param, ctx):
        if isinstance(value, int):
            return value

        try:
            byte = int(str(value).strip(), 16)
        except ValueError:
            self.fail(f'{value!r} is not a hex byte', param, ctx)

        if not 0 <= byte <= BYTE_MASK:
            self.fail(f'{value!r} is not a hex byte', param, ctx)

        return byte


HEX_BYTE = HexByte()


def format_output(value: int) -> str:
    return f'{value & BYTE_MASK:02x} .'


class ConsoleDevice:
    ''' Terminal: prompts for hex bytes, prints output bytes '''

    def read_byte(self, selector: int) -> int:
        lg.debug(f'Device {selector:03X}: waiting for console input')
        return click.prompt('Input byte', type=HEX_BYTE)

    def write_byte(self, selector: int, value: int):
        click.echo(format_output(value))


class ScriptedDevice:
    ''' Supplies queued input bytes and records output bytes '''

    def __init__(self, inputs: Iterable[int] = (), echo: bool = False):
        self.inputs = deque(inputs)
        self.outputs: list[int] = []
        self.echo = echo    # Also print output bytes

    def read_byte(self, selector: int) -> int:
        if not self.inputs:
            raise IOHandshakeIncomplete(f'Device {selector:03X}: no scripted input left')

        return self.inputs.popleft()

    def write_byte(self, selector: int, value: int):
        lg.debug(f'Device {selector:03X}: {format_output(value)}')
        self.outputs.append(value)

        if self.echo:
            click.echo(format_output(value))
