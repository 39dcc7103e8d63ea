import pytest

import blue.runtime.loader as loader
from blue.common.hwconf import RAM_LENGTH
from blue.runtime.cpu import ProgramTooLarge

from unit_utils import find_file


def test_hex_file():
    words = loader.load_program_file(find_file('testdata/example.hex'))

    assert words[:3] == [0x6010, 0x1011, 0x0000]
    assert words[0x10:0x12] == [5, 3]


def test_assembly_file():
    words = loader.load_program_file(find_file('testdata/add.basm'))
    assert words == [0x6003, 0x1004, 0x0000, 0x0005, 0x0003]


def test_raw_file(tmp_path):
    image = tmp_path / 'add.bin'
    image.write_bytes(bytes([0x03, 0x60, 0x04, 0x10, 0x00, 0x00, 0x05, 0x00, 0x03]))

    assert loader.load_program_file(image) == [0x6003, 0x1004, 0x0000, 0x0005, 0x0003]


def test_too_large(tmp_path):
    image = tmp_path / 'big.hex'
    image.write_text('f000\n' * (RAM_LENGTH + 1))

    with pytest.raises(ProgramTooLarge):
        loader.load_program_file(image)


def test_bad_hex_file(tmp_path):
    image = tmp_path / 'bad.hex'
    image.write_text('6010 xyz\n')

    with pytest.raises(ValueError):
        loader.load_program_file(image)


def test_bundled_programs():
    programs = loader.bundled_programs()

    assert {'add', 'io', 'logic', 'jump', 'shift', 'subroutine'} <= set(programs)
    assert all(path.exists() for path in programs.values())


def test_resolve_program():
    assert loader.resolve_program('add') == loader.bundled_programs()['add']
    assert str(loader.resolve_program('some/file.hex')) == 'some/file.hex'
