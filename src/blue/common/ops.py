HLT = 0x0  # halt
ADD = 0x1  # A + M[X] -> A
XOR = 0x2  # A ^ M[X] -> A
AND = 0x3  # A & M[X] -> A
IOR = 0x4  # A | M[X] -> A
NOT = 0x5  # ~A -> A
LDA = 0x6  # M[X] -> A
STA = 0x7  # A -> M[X]
SRJ = 0x8  # PC -> M[X]; X + 1 -> PC
JMA = 0x9  # if A < 0 jmp X
JMP = 0xA  # jmp X
INP = 0xB  # X -> DSL; DIL -> A[15:8]
OUT = 0xC  # X -> DSL; A[15:8] -> DOL
RAL = 0xD  # rotate A left
CSA = 0xE  # SR -> A
NOP = 0xF  # no operation

MNEMONICS = {
    HLT: 'HLT',
    ADD: 'ADD',
    XOR: 'XOR',
    AND: 'AND',
    IOR: 'IOR',
    NOT: 'NOT',
    LDA: 'LDA',
    STA: 'STA',
    SRJ: 'SRJ',
    JMA: 'JMA',
    JMP: 'JMP',
    INP: 'INP',
    OUT: 'OUT',
    RAL: 'RAL',
    CSA: 'CSA',
    NOP: 'NOP',
}

OPCODES = {name: op for op, name in MNEMONICS.items()}

# Instructions whose address field is not used
NO_OPERAND = {HLT, NOT, RAL, CSA, NOP}


def opcode(word: int) -> int:
    return (word >> 12) & 0xF


def address(word: int) -> int:
    return word & 0x0FFF


def encode(op: int, addr: int = 0) -> int:
    return ((op & 0xF) << 12) | (addr & 0x0FFF)


def disassemble(word: int) -> str:
    op = opcode(word)

    if op in NO_OPERAND:
        return MNEMONICS[op]

    return f'{MNEMONICS[op]} {address(word):03X}'
