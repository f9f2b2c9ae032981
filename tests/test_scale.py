import asyncio

import pytest

from posperipherals.core.diagnostics import RemediationCategory
from posperipherals.core.models import ConnectionState
from posperipherals.core.settings import ScaleSettings
from posperipherals.devices.scale import Scale
from posperipherals.serial.simulated import SimulatedDevice, SimulatedPlatform


async def wait_until(predicate, timeout=1.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.001)


def make_scale(**settings):
    device = SimulatedDevice("SIM-SCALE", "Simulated Toledo scale")
    scale = Scale(SimulatedPlatform(device), ScaleSettings(**settings))
    return scale, device


async def connected_scale(**settings):
    scale, device = make_scale(**settings)
    await scale.connect("SIM-SCALE")
    await wait_until(lambda: scale.is_reading)
    return scale, device


def test_reading_starts_on_connect():
    async def scenario():
        scale, device = await connected_scale()
        return scale.state, device.last_config.baud_rate

    assert asyncio.run(scenario()) == (ConnectionState.READING, 4800)


def test_request_stable_weight():
    async def scenario():
        scale, device = await connected_scale()
        task = asyncio.create_task(scale.request_stable_weight(1.0))
        await asyncio.sleep(0)
        device.feed(b"US,GS,+001.100kg\r\nUS,GS,+001.240kg\r\n")
        device.feed(b"ST,GS,+001.250kg\r\n")
        return await task

    reading = asyncio.run(scenario())
    assert reading.stable
    assert reading.value == pytest.approx(1.25)


def test_current_weight_tracks_latest_frame():
    async def scenario():
        scale, device = await connected_scale()
        device.feed(b"US,GS,+000.500kg\r\n")
        await wait_until(lambda: scale.get_current_weight() is not None)
        return scale.get_current_weight()

    reading = asyncio.run(scenario())
    assert reading.stable is False
    assert reading.value == pytest.approx(0.5)


def test_stable_weight_timeout_returns_last_known():
    async def scenario():
        scale, device = await connected_scale()
        device.feed(b"US,GS,+000.500kg\r\n")
        await wait_until(lambda: scale.get_current_weight() is not None)
        unstable = await scale.request_stable_weight(0.02)
        scale.decoder.reset()
        nothing = await scale.request_stable_weight(0.02)
        return unstable, nothing

    unstable, nothing = asyncio.run(scenario())
    assert unstable.stable is False
    assert nothing is None


def test_default_timeout_comes_from_settings():
    async def scenario():
        scale, _ = await connected_scale(stable_weight_timeout=0.02)
        return await scale.request_stable_weight()

    assert asyncio.run(scenario()) is None


def test_simulated_weight_without_hardware():
    async def scenario():
        scale = Scale(SimulatedPlatform())
        scale.simulate_weight(2.5)
        return await scale.request_stable_weight(10)

    reading = asyncio.run(scenario())
    assert reading.value == pytest.approx(2.5)
    assert reading.stable


def test_disconnect_stops_reading():
    async def scenario():
        scale, device = await connected_scale()
        device.feed(b"ST,GS,+001.000kg\r\n")
        await wait_until(lambda: scale.get_current_weight() is not None)
        await scale.disconnect()
        return scale, device

    scale, device = asyncio.run(scenario())
    assert scale.state is ConnectionState.DISCONNECTED
    assert not scale.is_reading
    assert not device.is_open
    assert scale.get_current_weight() is None


def test_end_of_stream_leaves_port_open():
    async def scenario():
        scale, device = await connected_scale()
        device.end_stream()
        await wait_until(lambda: scale.state is ConnectionState.OPEN)
        return scale

    scale = asyncio.run(scenario())
    assert scale.is_connected
    assert not scale.is_reading


def test_transient_read_error_reconnects_and_resumes():
    async def scenario():
        scale, device = await connected_scale(retry_delay=0)
        device.fail_read()
        await wait_until(lambda: scale.recovery_task is not None)
        recovered = await scale.recovery_task
        await wait_until(lambda: scale.is_reading)

        task = asyncio.create_task(scale.request_stable_weight(1.0))
        await asyncio.sleep(0)
        device.feed(b"ST,GS,+003.000kg\r\n")
        return recovered, await task, device.open_count

    recovered, reading, opens = asyncio.run(scenario())
    assert recovered is True
    assert reading.value == pytest.approx(3.0)
    assert opens == 2


def test_lost_device_is_terminal():
    async def scenario():
        scale, device = await connected_scale(retry_delay=0)
        device.unplug()
        await wait_until(lambda: scale.state is ConnectionState.FAULTED)
        await asyncio.sleep(0.01)
        return scale, device

    scale, device = asyncio.run(scenario())
    assert scale.state is ConnectionState.FAULTED
    assert scale.recovery_task is None
    assert device.open_count == 1
    assert scale.last_error.device_lost
    assert scale.last_diagnosis.category is RemediationCategory.DEVICE_ABSENT


def test_reconnect_after_fault_needs_explicit_connect():
    async def scenario():
        scale, device = await connected_scale()
        device.unplug()
        await wait_until(lambda: scale.state is ConnectionState.FAULTED)
        await scale.connect("SIM-SCALE")
        await wait_until(lambda: scale.is_reading)
        return scale.state, device.open_count

    state, opens = asyncio.run(scenario())
    assert state is ConnectionState.READING
    assert opens == 2
