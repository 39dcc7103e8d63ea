import re
import logging as lg
from typing import Any

import blue.common.ops as ops
from blue.common.hwconf import ADDR_MASK, WORD_MASK, RAM_LENGTH
from blue.common.words import parse_number

Tokens = list[Any]

NUMBER = re.compile(r'0[xX][0-9a-fA-F]+|[+-]?[0-9]+')


class AsmError(Exception):
    pass


class FPP:
    ''' First pass processor '''
    cmd_list: list[tuple[str, Any]]
    label_dict: dict[str, int]

    def __init__(self):
        self.cmd_list = list()
        self.offset = 0
        self.label_dict = dict()

    def emit(self, kind: str, data: Any):
        if self.offset >= RAM_LENGTH:
            raise AsmError(f'Program exceeds {RAM_LENGTH} words')

        self.cmd_list.append((kind, data))
        self.offset += 1

    # Handlers
    def issue_op(self, op: int):
        lg.debug(f'Issuing {ops.MNEMONICS[op]} @ 0x{self.offset:03X}')
        self.emit('word', ops.encode(op))

    def on_addr(self, tokens: Tokens):
        addr = parse_number(tokens[0])

        if not 0 <= addr <= ADDR_MASK:
            raise AsmError(f'Address {tokens[0]} out of range')

        (_, word) = self.cmd_list[-1]
        self.cmd_list[-1] = ('word', word | addr)

    def on_ref(self, tokens: Tokens):
        (_, word) = self.cmd_list[-1]
        self.cmd_list[-1] = ('ref', (word, tokens[0]))
        lg.debug(f'Ref {tokens[0]}')

    def on_label(self, tokens: Tokens):
        labelname = tokens[0]

        if labelname in self.label_dict:
            raise AsmError(f'Duplicate label {labelname}')

        self.label_dict[labelname] = self.offset
        lg.debug(f'Label {labelname} @ 0x{self.offset:03X}')

    def issue_dw(self, tokens: Tokens):
        value = tokens[0]

        if not NUMBER.fullmatch(value):
            self.emit('ref', (0, value))
            return

        word = parse_number(value)

        if not -0x8000 <= word <= WORD_MASK:
            raise AsmError(f'Data word {value} out of range')

        self.emit('word', word & WORD_MASK)

    def on_org(self, tokens: Tokens):
        addr = parse_number(tokens[0])

        if addr < self.offset or addr > ADDR_MASK:
            raise AsmError(f'Cannot move origin from 0x{self.offset:03X} to {tokens[0]}')

        while self.offset < addr:
            self.emit('word', 0)

    def on_fail(self, rest: Tokens):
        raise AsmError(f'Unknown command {rest[0]}')
