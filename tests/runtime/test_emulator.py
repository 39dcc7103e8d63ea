from click.testing import CliRunner

import blue.runtime.emulator as emulator

from unit_utils import find_file


def invoke(*args: str, input: str | None = None):
    return CliRunner().invoke(emulator.cli, list(args), input=input)


def test_run_without_debugger():
    result = invoke('run', '--no-debug', 'add')

    assert result.exit_code == emulator.EXIT_HALT
    assert 'Halted' not in result.output


def test_run_with_register_trace():
    result = invoke('run', '--print-registers', 'add', input='q\n')

    assert result.exit_code == emulator.EXIT_HALT
    assert 'PC: 0003 A: 0008' in result.output
    assert 'Halted' in result.output
    assert 'Stopping...' in result.output


def test_run_with_breakpoint():
    result = invoke('run', '-b', '1', 'add', input='r\nc\nq\n')

    assert result.exit_code == emulator.EXIT_HALT
    assert 'Stopped at line 1' in result.output
    assert 'PC: 0001 A: 0005' in result.output
    assert 'Halted' in result.output


def test_invalid_breakpoint_option():
    result = invoke('run', '-b', '0x1000', 'add')
    assert result.exit_code == 2


def test_auto_input():
    result = invoke('run', '--no-debug', '--auto-input', '2a', 'io')

    assert result.exit_code == emulator.EXIT_HALT
    assert '2a .' in result.output


def test_console_input():
    result = invoke('run', '--no-debug', 'io', input='2a\n')

    assert result.exit_code == emulator.EXIT_HALT
    assert '2a .' in result.output


def test_console_input_retries_bad_byte():
    result = invoke('run', '--no-debug', 'io', input='zz\n100\n2a\n')

    assert result.exit_code == emulator.EXIT_HALT
    assert result.output.count('Input byte') == 3
    assert '2a .' in result.output


def test_auto_input_exhausted():
    program = str(find_file('testdata/echo_twice.basm'))
    result = invoke('run', '--no-debug', '--auto-input', '01', program)

    assert result.exit_code == emulator.EXIT_IO_ERROR
    assert '01 .' in result.output


def test_hex_image():
    program = str(find_file('testdata/example.hex'))
    result = invoke('run', '--print-registers', program)

    assert result.exit_code == emulator.EXIT_HALT
    assert 'PC: 0003 A: 0008' in result.output


def test_missing_program():
    result = invoke('run', '--no-debug', 'no_such_program.hex')
    assert result.exit_code == emulator.EXIT_LOAD_ERROR


def test_config_file():
    config = str(find_file('testdata/debug.toml'))
    result = invoke('run', '--config', config, 'add')

    assert result.exit_code == emulator.EXIT_HALT
    # Debugger disabled, so no session and no trace
    assert 'Halted' not in result.output
    assert 'PC:' not in result.output


def test_command_line_overrides_config():
    config = str(find_file('testdata/debug.toml'))
    result = invoke('run', '--config', config, '--debug', 'add')

    assert result.exit_code == emulator.EXIT_HALT
    assert 'Halted' in result.output
    assert 'PC: 0003 A: 0008' in result.output


def test_list_programs():
    result = invoke('list')

    assert result.exit_code == 0
    names = result.output.split()
    assert {'add', 'io', 'logic', 'jump', 'shift', 'subroutine'} <= set(names)
