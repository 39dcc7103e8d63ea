import logging as lg
from pathlib import Path

from blue.common.hwconf import RAM_LENGTH
from blue.common.words import parse_hex_words, parse_raw_words
from blue.runtime.cpu import ProgramTooLarge
from blue.sasm.asm import assemble_file

PROGS_DIR = Path(__file__).parent.parent / 'progs'

RAW_SUFFIXES = {'.bin', '.img'}
ASM_SUFFIX = '.basm'


def bundled_programs() -> dict[str, Path]:
    return {path.stem: path for path in sorted(PROGS_DIR.glob(f'*{ASM_SUFFIX}'))}


def load_program_file(path: Path) -> list[int]:
    suffix = path.suffix.lower()

    if suffix == ASM_SUFFIX:
        words = assemble_file(path)
    elif suffix in RAW_SUFFIXES:
        words = parse_raw_words(path.read_bytes())
    else:
        words = parse_hex_words(path.read_text())

    if len(words) > RAM_LENGTH:
        raise ProgramTooLarge(len(words))

    lg.debug(f'Read {len(words)} words from {path.name}')
    return words


def resolve_program(name: str) -> Path:
    programs = bundled_programs()

    if name in programs:
        lg.info(f'Running bundled program: {name}')
        return programs[name]

    return Path(name)
