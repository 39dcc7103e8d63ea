RAM_LENGTH = 4096       # Words of core memory
WORD_BITS = 16
WORD_MASK = 0xFFFF
SIGN_BIT = 0x8000
ADDR_MASK = 0x0FFF      # 12-bit address field / effective PC
OPCODE_SHIFT = 12
BYTE_MASK = 0x00FF

PULSES = 8              # Clock pulses per fetch or execute phase

# Status flags
FLAG_ZERO = 0b0001
FLAG_CARRY = 0b0010
FLAG_OVERFLOW = 0b0100
FLAG_NEGATIVE = 0b1000

REGISTERS = ('PC', 'A', 'Z', 'SR', 'MAR', 'MBR', 'IR', 'DSL', 'DIL', 'DOL')
