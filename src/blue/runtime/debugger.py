import logging as lg
from typing import Any, Callable

import click
import pyparsing as pp

from blue.common.hwconf import ADDR_MASK, WORD_MASK
from blue.common.words import parse_number
from blue.runtime.cpu import (
    CPU, CycleResult, Device, Status, UnknownRegister, InvalidBreakpointAddress
)

Tokens = list[Any]


def g_cmd(literal, action):
    return pp.Literal(literal).setParseAction(lambda _: (action, None))


number = pp.Regex(r'0[xX][0-9a-fA-F]+|[0-9]+')
register = pp.Word(pp.alphas)

continue_cmd = g_cmd('c', lambda d, _: d.on_continue())
registers_cmd = g_cmd('r', lambda d, _: d.on_registers())
dump_cmd = g_cmd('d', lambda d, _: d.on_dump())
quit_cmd = g_cmd('q', lambda d, _: d.on_quit())
step_cmd = g_cmd('s', lambda d, _: d.on_step())
break_cmd = (pp.Suppress('b') + number).setParseAction(lambda r: (lambda d, t: d.on_break(t), r))
write_cmd = (pp.Suppress('x') + register + number).setParseAction(lambda r: (lambda d, t: d.on_write(t), r))

command = (break_cmd | write_cmd | continue_cmd | registers_cmd | dump_cmd | quit_cmd | step_cmd) \
    + pp.StringEnd()


class Debugger:
    ''' Line-oriented debugger over a CPU

    Commands: c(ontinue), r(egisters), d(ump), q(uit), s(tep),
    b<addr> (breakpoint), x<reg> <val> (write register).
    '''

    def __init__(self, proc: CPU, device: Device | None = None, echo: Callable[[str], Any] = click.echo):
        self.proc = proc
        self.device = device
        self.echo = echo
        self.last: CycleResult | None = None

    def report(self, result: CycleResult):
        match result.status:
            case Status.BREAKPOINT_HIT:
                self.echo(f'Stopped at line {result.address}')
            case Status.HALTED:
                self.echo('Halted')

    def go(self) -> CycleResult:
        self.proc.resume()
        self.last = self.proc.run(self.device)
        self.report(self.last)
        return self.last

    # - Commands - #

    def on_continue(self):
        self.go()
        return True

    def on_registers(self):
        self.echo(self.proc.format_registers())
        return True

    def on_dump(self):
        self.echo('==== RAM ====')

        for base, row in self.proc.dump_memory().rows(8):
            self.echo(f'{base:04x}: ' + ' '.join(f'{word:04x}' for word in row))

        return True

    def on_quit(self):
        self.echo('Stopping...')
        return False

    def on_step(self):
        self.proc.set_breakpoint((self.proc.pc + 1) & ADDR_MASK)
        self.go()
        return True

    def on_break(self, tokens: Tokens):
        addr = parse_number(tokens[0])
        self.proc.set_breakpoint(addr)
        self.echo(f'Set breakpoint at line {addr}')
        return True

    def on_write(self, tokens: Tokens):
        name, value = tokens[0], parse_number(tokens[1])

        if value > WORD_MASK:
            self.echo(f'Value {tokens[1]} does not fit into a register')
            return True

        self.proc.write_register(name, value)
        self.echo(f'{name.upper()} = {value:04x}')
        return True

    # -- Implementation -- #

    def execute(self, line: str) -> bool:
        ''' Runs one command, returns False when the session is over '''
        try:
            actions = command.parse_string(line.strip(), parse_all=True)
        except pp.ParseException:
            self.echo(f'Unknown command: {line.strip()}')
            return True

        (func, arg) = actions[0]

        try:
            return func(self, arg)
        except (UnknownRegister, InvalidBreakpointAddress) as e:
            lg.debug(f'Debugger command failed: {e}')
            self.echo(str(e))
            return True

    def session(self, read_command: Callable[[], str] = input) -> CycleResult | None:
        self.go()

        while True:
            try:
                line = read_command()
            except EOFError:
                break

            if not self.execute(line):
                break

        return self.last
