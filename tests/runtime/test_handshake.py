import pytest

import blue.common.ops as ops
import blue.runtime.cpu as cpu
from blue.runtime.devices import ScriptedDevice

from unit_utils import make_cpu, step
from fixtures import with_echo_device  # noqa: F401

ECHO = [ops.encode(ops.INP, 0x001), ops.encode(ops.OUT, 0x002), ops.encode(ops.HLT)]


def test_input_output_round_trip():
    proc = make_cpu(ECHO)

    assert proc.run_cycle().status == cpu.Status.AWAITING_INPUT
    proc.complete_input(0x2A)
    assert proc.run_cycle().status == cpu.Status.CONTINUING
    assert proc.a >> 8 == 0x2A

    assert proc.run_cycle().status == cpu.Status.AWAITING_OUTPUT
    assert proc.complete_output() == 0x2A
    assert proc.run_cycle().status == cpu.Status.CONTINUING
    assert proc.run_cycle().status == cpu.Status.HALTED


def test_input_stalls_without_completion():
    proc = make_cpu(ECHO)
    proc.run_cycle()
    position = (proc.state, proc.pulse)

    assert position == (cpu.State.EXECUTE, 2)
    assert proc.step_pulse() == cpu.Status.AWAITING_INPUT
    assert proc.run_cycle().status == cpu.Status.AWAITING_INPUT
    assert (proc.state, proc.pulse) == position
    assert proc.io.transfer_active
    assert proc.io.direction == 'input'
    assert not proc.io.ready


def test_input_can_be_supplied_before_gate():
    proc = make_cpu(ECHO)
    step(proc, 10)

    assert proc.io.transfer_active
    proc.complete_input(0x7E)

    assert proc.run_cycle().status == cpu.Status.CONTINUING
    assert proc.a == 0x7E00


def test_output_waits_for_acknowledge():
    proc = make_cpu([ops.encode(ops.OUT, 0x003)])
    proc.write_register('A', 0x4100)

    assert proc.run_cycle().status == cpu.Status.AWAITING_OUTPUT
    assert proc.run_cycle().status == cpu.Status.AWAITING_OUTPUT
    assert proc.dol == 0x41
    assert proc.dsl == 0x003


def test_complete_without_transfer():
    proc = make_cpu(ECHO)

    with pytest.raises(cpu.IOHandshakeError):
        proc.complete_input(0x01)

    with pytest.raises(cpu.IOHandshakeError):
        proc.complete_output()


def test_complete_wrong_direction():
    proc = make_cpu(ECHO)
    proc.run_cycle()

    with pytest.raises(cpu.IOHandshakeError):
        proc.complete_output()


def test_complete_input_twice():
    proc = make_cpu(ECHO)
    proc.run_cycle()
    proc.complete_input(0x01)

    with pytest.raises(cpu.IOHandshakeError):
        proc.complete_input(0x02)


def test_input_must_be_a_byte():
    proc = make_cpu(ECHO)
    proc.run_cycle()

    with pytest.raises(ValueError):
        proc.complete_input(0x100)


def test_run_program_services_device(with_echo_device):  # noqa: F811
    proc = cpu.CPU()
    result = proc.run_program(ECHO, with_echo_device)

    assert result.status == cpu.Status.HALTED
    assert with_echo_device.outputs == [0x2A]
    assert proc.a == 0x2A00


def test_run_program_uses_attached_device():
    device = ScriptedDevice([0x2A])
    proc = cpu.CPU(device=device)

    assert proc.run_program(ECHO).status == cpu.Status.HALTED
    assert device.outputs == [0x2A]
    assert proc.a == 0x2A00


def test_automatic_input_from_run_device(with_echo_device):  # noqa: F811
    proc = make_cpu(ECHO, manual_input=False)

    assert proc.run(with_echo_device).status == cpu.Status.HALTED
    assert with_echo_device.outputs == [0x2A]
    assert proc.device is None


def test_run_program_without_device():
    proc = cpu.CPU()

    with pytest.raises(cpu.IOHandshakeIncomplete):
        proc.run_program(ECHO)


def test_automatic_input(with_echo_device):  # noqa: F811
    proc = make_cpu(ECHO, device=with_echo_device, manual_input=False)

    # The gate never stalls when the engine drives the device itself
    statuses = [proc.run_cycle().status for _ in range(3)]

    assert statuses == [cpu.Status.CONTINUING, cpu.Status.CONTINUING, cpu.Status.HALTED]
    assert with_echo_device.outputs == [0x2A]


def test_automatic_input_exhausted():
    device = ScriptedDevice([0x01])
    proc = make_cpu(ECHO[:2] * 2 + ECHO[2:], device=device, manual_input=False)

    with pytest.raises(cpu.IOHandshakeIncomplete):
        proc.run()

    assert device.outputs == [0x01]


def test_automatic_input_without_device():
    proc = make_cpu(ECHO, manual_input=False)

    with pytest.raises(cpu.IOHandshakeIncomplete):
        proc.run_cycle()
