import struct
from typing import Iterable

from blue.common.hwconf import WORD_MASK


def parse_hex_words(text: str) -> list[int]:
    words = []

    for token in text.split():
        word = int(token, 16)

        if not 0 <= word <= WORD_MASK:
            raise ValueError(f'{token} is not a 16-bit word')

        words.append(word)

    return words


def parse_raw_words(data: bytes) -> list[int]:
    # Little-endian; an odd trailing byte becomes the low byte of the last word
    if len(data) % 2:
        data = data + b'\x00'

    return [word for (word,) in struct.iter_unpack('<H', data)]


def format_hex_words(words: Iterable[int], width: int = 8) -> str:
    words = list(words)
    lines = [
        ' '.join(f'{word:04x}' for word in words[base:base + width])
        for base in range(0, len(words), width)
    ]
    return '\n'.join(lines) + '\n'


def parse_number(text: str) -> int:
    ''' Decimal, or hex with a 0x prefix '''
    if text.lower().startswith('0x'):
        return int(text, 16)

    return int(text, 10)
