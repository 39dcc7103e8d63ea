import logging as lg
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Iterator, Protocol

import blue.common.ops as ops
from blue.common.hwconf import (
    RAM_LENGTH, WORD_MASK, SIGN_BIT, ADDR_MASK, BYTE_MASK, PULSES, REGISTERS,
    FLAG_ZERO, FLAG_CARRY, FLAG_OVERFLOW, FLAG_NEGATIVE
)
from blue.common.settings import DebugSettings


class BlueError(Exception):
    pass


class UnknownRegister(BlueError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f'Unknown register {name}')


class InvalidBreakpointAddress(BlueError):
    def __init__(self, address: int):
        self.address = address
        super().__init__(f'Breakpoint address {address} is outside 0..{ADDR_MASK}')


class ProgramTooLarge(BlueError):
    def __init__(self, length: int):
        self.length = length
        super().__init__(f'Program of {length} words does not fit into {RAM_LENGTH} words')


class IOHandshakeError(BlueError):
    pass


class IOHandshakeIncomplete(IOHandshakeError):
    pass


class State(Enum):
    FETCH = 'fetch'
    EXECUTE = 'execute'


class Status(Enum):
    CONTINUING = 'continuing'
    HALTED = 'halted'
    BREAKPOINT_HIT = 'breakpoint'
    AWAITING_INPUT = 'awaiting input'
    AWAITING_OUTPUT = 'awaiting output'


AWAITING = (Status.AWAITING_INPUT, Status.AWAITING_OUTPUT)


@dataclass
class ArithmeticOverflow:
    pc: int         # Address of the overflowing instruction
    augend: int
    addend: int
    result: int

    def __str__(self):
        return (
            f'Overflow at {self.pc:03X}: '
            f'{self.augend:04X} + {self.addend:04X} -> {self.result:04X}'
        )


@dataclass
class CycleResult:
    status: Status
    address: int | None = None
    overflow: ArithmeticOverflow | None = None


@dataclass
class IOState:
    transfer_active: bool = False
    direction: str | None = None    # 'input' or 'output'
    ready: bool = False


class Device(Protocol):
    def read_byte(self, selector: int) -> int:
        ...

    def write_byte(self, selector: int, value: int) -> None:
        ...


class MemoryDump:
    ''' Lazy (address, word) view over the whole memory, restartable '''

    def __init__(self, ram: list[int]):
        self.ram = ram

    def __len__(self):
        return len(self.ram)

    def __iter__(self) -> Iterator[tuple[int, int]]:
        return ((addr, self.ram[addr]) for addr in range(len(self.ram)))

    def rows(self, width: int = 8) -> Iterator[tuple[int, list[int]]]:
        for base in range(0, len(self.ram), width):
            yield base, self.ram[base:base + width]


class CPU:
    def __init__(self, settings: DebugSettings | None = None, device: Device | None = None):
        self.settings = settings or DebugSettings()
        self.device = device    # Services I/O when input is not manual

        self.state = State.FETCH
        self.pulse = 0              # Clock pulse within the current phase
        self.power = True
        self.halted = False
        self.io = IOState()

        self.pc = 0     # Program counter (12 bits effective)
        self.a = 0      # Accumulator
        self.z = 0      # ALU operand holder
        self.sr = 0     # Console switches
        self.mar = 0    # Memory address register
        self.mbr = 0    # Memory buffer register
        self.ir = 0     # Instruction register
        self.dsl = 0    # Device selector
        self.dil = 0    # Device input latch
        self.dol = 0    # Device output latch
        self.flags = 0

        self.ram = [0] * RAM_LENGTH
        self.breakpoints: set[int] = set()
        self.overflow: ArithmeticOverflow | None = None
        self.acknowledged: int | None = None    # Breakpoint already reported

    # - Helpers - #

    def format_registers(self) -> str:
        return (
            f'PC: {self.pc:04x} A: {self.a:04x} IR: {self.ir:04x} '
            f'Z: {self.z:04x} SR: {self.sr:04x} '
            f'MAR: {self.mar:04x} MBR: {self.mbr:04x} '
            f'DSL: {self.dsl:03x} DIL: {self.dil & BYTE_MASK:02x} '
            f'DOL: {self.dol & BYTE_MASK:02x} FLAGS: {self.flags:x}'
        )

    def operand(self) -> int:
        return ops.address(self.ir)

    def read_memory(self) -> int:
        return self.ram[self.mar & ADDR_MASK]

    def write_memory(self):
        self.ram[self.mar & ADDR_MASK] = self.mbr

    def set_flags(self, result: int, carry: bool = False, overflow: bool = False):
        self.flags = 0

        if result == 0:
            self.flags |= FLAG_ZERO
        if carry:
            self.flags |= FLAG_CARRY
        if overflow:
            self.flags |= FLAG_OVERFLOW
        if result & SIGN_BIT:
            self.flags |= FLAG_NEGATIVE

    def memory_alu(self, pulse: int, op: Callable[[int, int], int]):
        match pulse:
            case 0:
                self.mar = self.operand()
            case 1:
                self.mbr = self.read_memory()
            case 2:
                self.z = self.a
            case 3:
                self.a = op(self.z, self.mbr) & WORD_MASK
                self.set_flags(self.a)

    # - Fetch - #

    def fetch(self, pulse: int):
        match pulse:
            case 0:
                self.overflow = None
                self.mar = self.pc & ADDR_MASK
            case 1:
                self.mbr = self.read_memory()
            case 2:
                self.ir = self.mbr
                lg.debug(f'{self.mar:03X}: {ops.disassemble(self.ir)}')
            case 3:
                self.pc = (self.pc + 1) & ADDR_MASK

    # - Operations - #

    def hlt(self, pulse: int):
        if pulse == PULSES - 1:
            self.halted = True
            lg.info(f'Halted at {(self.pc - 1) & ADDR_MASK:03X}')

    def add(self, pulse: int):
        self.memory_alu(pulse, lambda z, m: z + m)

        if pulse == 3:
            carry = self.z + self.mbr > WORD_MASK
            same_sign = not (self.z ^ self.mbr) & SIGN_BIT
            overflow = same_sign and bool((self.z ^ self.a) & SIGN_BIT)
            self.set_flags(self.a, carry, overflow)

            if overflow:
                self.overflow = ArithmeticOverflow(
                    (self.pc - 1) & ADDR_MASK, self.z, self.mbr, self.a
                )
                lg.warning(str(self.overflow))

    def xor(self, pulse: int):
        self.memory_alu(pulse, lambda z, m: z ^ m)

    def band(self, pulse: int):
        self.memory_alu(pulse, lambda z, m: z & m)

    def ior(self, pulse: int):
        self.memory_alu(pulse, lambda z, m: z | m)

    def inv(self, pulse: int):
        match pulse:
            case 0:
                self.z = self.a
            case 1:
                self.a = ~self.z & WORD_MASK
                self.set_flags(self.a)

    def lda(self, pulse: int):
        match pulse:
            case 0:
                self.mar = self.operand()
            case 1:
                self.mbr = self.read_memory()
            case 2:
                self.a = self.mbr

    def sta(self, pulse: int):
        match pulse:
            case 0:
                self.mar = self.operand()
            case 1:
                self.mbr = self.a
            case 2:
                self.write_memory()

    def srj(self, pulse: int):
        match pulse:
            case 0:
                self.mar = self.operand()
            case 1:
                self.mbr = self.pc & ADDR_MASK
            case 2:
                self.write_memory()
            case 3:
                self.pc = (self.operand() + 1) & ADDR_MASK

    def jma(self, pulse: int):
        if pulse == 0 and self.a & SIGN_BIT:
            self.pc = self.operand()

    def jmp(self, pulse: int):
        if pulse == 0:
            self.pc = self.operand()

    def inp(self, pulse: int):
        match pulse:
            case 0:
                self.dsl = self.operand()
            case 1:
                self.raise_transfer('input')
            case 2:
                if not self.io.ready:
                    if self.settings.manual_input:
                        return Status.AWAITING_INPUT
                    self.service(Status.AWAITING_INPUT, self.device)

                self.a = (self.dil << 8) & WORD_MASK
                self.io.transfer_active = False

    def out(self, pulse: int):
        match pulse:
            case 0:
                self.dsl = self.operand()
            case 1:
                self.dol = (self.a >> 8) & BYTE_MASK
                self.raise_transfer('output')
            case 2:
                if not self.io.ready:
                    if self.settings.manual_input:
                        return Status.AWAITING_OUTPUT
                    self.service(Status.AWAITING_OUTPUT, self.device)

                self.io.transfer_active = False

    def ral(self, pulse: int):
        match pulse:
            case 0:
                self.z = self.a
            case 1:
                self.a = ((self.z << 1) | (self.z >> 15)) & WORD_MASK
                self.set_flags(self.a)

    def csa(self, pulse: int):
        if pulse == 0:
            self.a = self.sr

    def nop(self, pulse: int):
        pass

    HANDLERS = {
        ops.HLT: hlt,
        ops.ADD: add,
        ops.XOR: xor,
        ops.AND: band,
        ops.IOR: ior,
        ops.NOT: inv,
        ops.LDA: lda,
        ops.STA: sta,
        ops.SRJ: srj,
        ops.JMA: jma,
        ops.JMP: jmp,
        ops.INP: inp,
        ops.OUT: out,
        ops.RAL: ral,
        ops.CSA: csa,
        ops.NOP: nop,
    }

    # - I/O handshake - #

    def raise_transfer(self, direction: str):
        self.io.transfer_active = True
        self.io.direction = direction
        self.io.ready = False
        lg.debug(f'Device {self.dsl:03X}: {direction} transfer')

    def pending(self, direction: str) -> bool:
        return (
            self.io.transfer_active
            and self.io.direction == direction
            and not self.io.ready
        )

    def complete_input(self, value: int):
        if not self.pending('input'):
            raise IOHandshakeError('No input transfer pending')

        if not 0 <= value <= BYTE_MASK:
            raise ValueError(f'Input {value} is not a byte')

        self.dil = value
        self.io.ready = True

    def complete_output(self) -> int:
        if not self.pending('output'):
            raise IOHandshakeError('No output transfer pending')

        self.io.ready = True
        return self.dol

    def service(self, status: Status, device: Device | None):
        if device is None:
            raise IOHandshakeIncomplete(
                f'Device {self.dsl:03X}: {status.value} with no device attached'
            )

        if status == Status.AWAITING_INPUT:
            self.complete_input(device.read_byte(self.dsl))
        elif status == Status.AWAITING_OUTPUT:
            device.write_byte(self.dsl, self.complete_output())

    # -- Implementation -- #

    def step_pulse(self) -> Status:
        if not self.power or self.halted:
            return Status.HALTED

        pulse = self.pulse

        if self.state == State.FETCH:
            if pulse == 0:
                self.acknowledged = None
            self.fetch(pulse)
        else:
            handler = self.HANDLERS[ops.opcode(self.ir)]
            stalled = handler(self, pulse)

            if stalled is not None:
                return stalled

        if lg.getLogger().isEnabledFor(lg.DEBUG):
            lg.debug(f'{self.state.name} {pulse}: {self.format_registers()}')

        self.pulse += 1

        if self.pulse == PULSES:
            self.pulse = 0
            self.state = State.EXECUTE if self.state == State.FETCH else State.FETCH

        return Status.HALTED if self.halted else Status.CONTINUING

    def at_boundary(self) -> bool:
        return self.state == State.FETCH and self.pulse == 0

    def breakpoint_reached(self) -> bool:
        pc = self.pc & ADDR_MASK

        if not self.settings.enabled or pc not in self.breakpoints:
            self.acknowledged = None
            return False

        if self.acknowledged == pc:
            self.acknowledged = None
            return False

        self.acknowledged = pc
        return True

    def trace_cycle(self):
        if self.settings.enabled and self.settings.print_registers:
            print(self.format_registers())

    def run_cycle(self) -> CycleResult:
        if not self.power or self.halted:
            return CycleResult(Status.HALTED)

        if self.at_boundary() and self.breakpoint_reached():
            lg.info(f'Stopped at breakpoint {self.pc & ADDR_MASK:03X}')
            return CycleResult(Status.BREAKPOINT_HIT, address=self.pc & ADDR_MASK)

        while True:
            status = self.step_pulse()

            if status in AWAITING:
                return CycleResult(status)

            if self.at_boundary():
                break

        self.trace_cycle()
        return CycleResult(status, overflow=self.overflow)

    def run(self, device: Device | None = None) -> CycleResult:
        # A device given here stands in for the attached one until the run returns
        attached = self.device

        if device is not None:
            self.device = device

        try:
            while True:
                result = self.run_cycle()

                match result.status:
                    case Status.CONTINUING:
                        continue
                    case Status.AWAITING_INPUT | Status.AWAITING_OUTPUT:
                        self.service(result.status, self.device)
                    case _:
                        return result
        finally:
            self.device = attached

    def run_program(self, words: Iterable[int], device: Device | None = None) -> CycleResult:
        self.load_program(words)
        return self.run(device)

    # -- Public surface -- #

    def load_program(self, words: Iterable[int]):
        program = list(words)

        if len(program) > RAM_LENGTH:
            raise ProgramTooLarge(len(program))

        for addr, word in enumerate(program):
            if not 0 <= word <= WORD_MASK:
                raise ValueError(f'Word {word} at {addr:03X} is not a 16-bit value')

        self.ram[:] = program + [0] * (RAM_LENGTH - len(program))
        lg.info(f'Loaded {len(program)} words')

    def register_attr(self, name: str) -> str:
        key = name.upper()

        if key not in REGISTERS:
            raise UnknownRegister(name)

        return key.lower()

    def read_register(self, name: str) -> int:
        return getattr(self, self.register_attr(name))

    def write_register(self, name: str, value: int):
        setattr(self, self.register_attr(name), value & WORD_MASK)

    def dump_memory(self) -> MemoryDump:
        return MemoryDump(self.ram)

    def set_breakpoint(self, addr: int):
        if not 0 <= addr <= ADDR_MASK:
            raise InvalidBreakpointAddress(addr)

        self.breakpoints.add(addr)

    def clear_breakpoints(self):
        self.breakpoints.clear()
        self.acknowledged = None

    def resume(self):
        if self.power and self.halted:
            lg.info('Resumed')
        self.halted = False

    def power_off(self):
        lg.info('Pressed OFF')
        self.power = False
