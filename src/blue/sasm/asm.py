import logging as lg
from pathlib import Path

import click

import blue.sasm.grammar as grammar
from blue.sasm.fpp import FPP, AsmError
from blue.common.words import format_hex_words


def assemble(source: str) -> list[int]:
    # First pass
    first_pass = FPP()
    actions = grammar.program.parse_string(source, parse_all=True)

    for (func, arg) in actions:  # type: ignore
        func(first_pass, arg)

    # Second pass
    words = []

    for (t, d) in first_pass.cmd_list:
        if t == 'word':
            words.append(d)

        if t == 'ref':
            (word, labelname) = d

            if labelname not in first_pass.label_dict:
                raise AsmError(f'Unknown label {labelname}')

            words.append(word | first_pass.label_dict[labelname])

    return words


def assemble_file(filepath: str | Path) -> list[int]:
    if isinstance(filepath, str):
        filepath = Path(filepath)

    lg.debug(f'Assembling file {filepath}')
    return assemble(filepath.read_text())


@click.command()
@click.option('-v', '--verbose', is_flag=True, help='Sets logging level to debug')
@click.argument('source', type=Path)
@click.argument('output', type=Path, required=False)
def compile(verbose: bool, source: Path, output: Path | None):
    lg.basicConfig(level=lg.DEBUG if verbose else lg.INFO)
    lg.info("BLUE ASM")

    if not output:
        output = source.with_suffix('.hex')

    try:
        words = assemble_file(source)
    except AsmError as e:
        raise click.ClickException(str(e))

    lg.info(f'Assembled {len(words)} words into {output.name}')
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(format_hex_words(words))


if __name__ == "__main__":
    compile()
