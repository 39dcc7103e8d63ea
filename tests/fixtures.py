# type: ignore
import pytest

from blue.runtime.devices import ScriptedDevice

import unit_utils


@pytest.fixture
def with_add_program():
    yield unit_utils.assemble_cpu(unit_utils.load_file('testdata/add.basm'))


@pytest.fixture
def with_echo_device():
    yield ScriptedDevice([0x2A])
