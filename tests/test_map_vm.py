from __future__ import annotations

import asyncio
import threading

from conftest import FakeSpotRepository, make_spot, settle
import pytest

from app.viewmodels.map_vm import (
    MSG_CAMERA_CLOSED,
    MSG_HARDWARE_ERROR,
    MSG_NO_LOCATION,
    MSG_STORAGE_ERROR,
    MSG_UNKNOWN_CAPTURE_ERROR,
    MapVM,
)
from core.models import (
    CameraClosed,
    CaptureRequest,
    HardwareError,
    InvalidCoordinates,
    LatLng,
    Location,
    NoLocation,
    PhotoCaptureFailed,
    StorageError,
    Success,
    UnknownCaptureError,
)
from core.scope import TaskScope


def _make_vm(repo: FakeSpotRepository, stop_timeout: float = 5.0) -> MapVM:
    return MapVM(repo, TaskScope(asyncio.get_running_loop(), "test"), stop_timeout)


def _record(field) -> list:
    values: list = []
    field.subscribe(values.append)
    return values


def _record_new(field) -> list:
    values: list = []
    field.subscribe(values.append, emit_current=False)
    return values


def test_load_user_location_stores_location_and_resets_loading() -> None:
    async def scenario() -> None:
        repo = FakeSpotRepository()
        repo.location_gate = asyncio.Event()
        vm = _make_vm(repo)

        task = vm.load_user_location()
        await settle()
        assert vm.is_loading.value is True
        assert vm.user_location.value is None

        repo.location_gate.set()
        await task
        assert vm.user_location.value == LatLng(14.6349, -90.5069)
        assert vm.is_loading.value is False
        assert vm.error_message.value is None
        vm.close()

    asyncio.run(scenario())


def test_load_user_location_failure_sets_prefixed_error() -> None:
    async def scenario() -> None:
        repo = FakeSpotRepository()
        repo.location_error = RuntimeError("gps off")
        vm = _make_vm(repo)
        loading = _record(vm.is_loading)

        await vm.load_user_location()

        assert vm.error_message.value == "Error obteniendo ubicación: gps off"
        assert vm.user_location.value is None
        assert loading == [False, True, False]
        vm.close()

    asyncio.run(scenario())


def test_load_user_location_without_reading_keeps_location_empty() -> None:
    async def scenario() -> None:
        repo = FakeSpotRepository()
        repo.location = None
        vm = _make_vm(repo)

        await vm.load_user_location()

        assert vm.user_location.value is None
        assert vm.error_message.value is None
        assert vm.is_loading.value is False
        vm.close()

    asyncio.run(scenario())


def test_create_spot_success_sets_capture_result_true() -> None:
    async def scenario() -> None:
        repo = FakeSpotRepository()
        repo.create_result = Success(make_spot(1))
        vm = _make_vm(repo)
        request = CaptureRequest("/tmp/photo.jpg")

        await vm.create_spot(request)

        assert repo.create_calls == [request]
        assert vm.capture_result.value is True
        assert vm.error_message.value is None
        assert vm.is_loading.value is False
        vm.close()

    asyncio.run(scenario())


@pytest.mark.parametrize(
    "result, expected",
    [
        (NoLocation(), MSG_NO_LOCATION),
        (InvalidCoordinates("bad coords"), "bad coords"),
        (PhotoCaptureFailed(CameraClosed()), MSG_CAMERA_CLOSED),
        (PhotoCaptureFailed(HardwareError("sensor")), MSG_HARDWARE_ERROR),
        (PhotoCaptureFailed(StorageError("disk full")), MSG_STORAGE_ERROR),
        (PhotoCaptureFailed(UnknownCaptureError()), MSG_UNKNOWN_CAPTURE_ERROR),
    ],
)
def test_create_spot_failures_map_to_messages(result, expected: str) -> None:
    async def scenario() -> None:
        repo = FakeSpotRepository()
        repo.create_result = result
        vm = _make_vm(repo)

        await vm.create_spot(CaptureRequest("/tmp/photo.jpg"))

        assert vm.capture_result.value is False
        assert vm.error_message.value == expected
        assert vm.is_loading.value is False
        vm.close()

    asyncio.run(scenario())


def test_storage_error_message_mentions_storage() -> None:
    async def scenario() -> None:
        repo = FakeSpotRepository()
        repo.create_result = PhotoCaptureFailed(StorageError())
        vm = _make_vm(repo)

        await vm.create_spot(CaptureRequest("x.jpg"))

        assert "almacenamiento" in vm.error_message.value
        vm.close()

    asyncio.run(scenario())


def test_create_spot_unexpected_exception_is_converted() -> None:
    async def scenario() -> None:
        repo = FakeSpotRepository()
        repo.create_error = ValueError("kaput")
        repo.create_gate = asyncio.Event()
        vm = _make_vm(repo)

        task = vm.create_spot(CaptureRequest("x.jpg"))
        await settle()
        assert vm.is_loading.value is True
        repo.create_gate.set()
        await task

        assert vm.error_message.value == "Error al capturar: kaput"
        assert vm.capture_result.value is False
        assert vm.is_loading.value is False
        vm.close()

    asyncio.run(scenario())


def test_delete_spot_calls_repository_once_and_leaves_list_alone() -> None:
    async def scenario() -> None:
        repo = FakeSpotRepository()
        vm = _make_vm(repo)
        seen: list = []
        vm.spots.subscribe(seen.append)
        spots = [make_spot(42), make_spot(7)]
        repo.spot_emissions.put_nowait(spots)
        await settle()
        assert vm.spots.value == spots

        await vm.delete_spot(42)

        assert repo.delete_calls == [42]
        assert vm.spots.value == spots
        assert seen == [[], spots]
        assert vm.is_loading.value is False
        vm.close()

    asyncio.run(scenario())


def test_delete_spot_failure_sets_error() -> None:
    async def scenario() -> None:
        repo = FakeSpotRepository()
        repo.delete_error = OSError("locked")
        vm = _make_vm(repo)

        await vm.delete_spot(3)

        assert vm.error_message.value == "Error al eliminar el spot: locked"
        assert vm.is_loading.value is False
        vm.close()

    asyncio.run(scenario())


def test_clear_error_and_capture_result_are_idempotent() -> None:
    async def scenario() -> None:
        repo = FakeSpotRepository()
        repo.create_result = NoLocation()
        vm = _make_vm(repo)
        await vm.create_spot(CaptureRequest("x.jpg"))
        assert vm.error_message.value is not None
        assert vm.capture_result.value is False

        vm.clear_error()
        vm.clear_error()
        vm.clear_capture_result()
        vm.clear_capture_result()

        assert vm.error_message.value is None
        assert vm.capture_result.value is None
        vm.close()

    asyncio.run(scenario())


def test_loading_never_left_true_across_mixed_outcomes() -> None:
    async def scenario() -> None:
        repo = FakeSpotRepository()
        vm = _make_vm(repo)
        loading = _record(vm.is_loading)

        repo.create_result = Success(make_spot(1))
        await vm.create_spot(CaptureRequest("a.jpg"))
        repo.create_error = RuntimeError("boom")
        await vm.create_spot(CaptureRequest("b.jpg"))
        repo.delete_error = RuntimeError("nope")
        await vm.delete_spot(1)
        repo.location_error = RuntimeError("no gps")
        await vm.load_user_location()

        assert loading == [False, True, False, True, False, True, False, True, False]
        assert vm.is_loading.value is False
        vm.close()

    asyncio.run(scenario())


def test_location_updates_overwrite_location_until_stopped() -> None:
    async def scenario() -> None:
        repo = FakeSpotRepository()
        repo.location_updates = [Location(1.0, 2.0), Location(3.0, 4.0)]
        vm = _make_vm(repo)

        handle = vm.start_location_updates()
        assert vm.start_location_updates() is handle
        await settle(10)
        assert vm.user_location.value == LatLng(3.0, 4.0)
        assert not handle.done()

        vm.stop_location_updates()
        await settle()
        assert handle.cancelled()
        vm.close()

    asyncio.run(scenario())


def test_close_cancels_screen_tasks() -> None:
    async def scenario() -> None:
        repo = FakeSpotRepository()
        repo.location_gate = asyncio.Event()
        vm = _make_vm(repo)
        updates = vm.start_location_updates()
        pending = vm.load_user_location()
        vm.spots.subscribe(lambda _: None)
        await settle()
        assert repo.active_spot_collectors == 1

        vm.close()
        await settle()

        assert updates.cancelled()
        assert pending.cancelled()
        assert repo.active_spot_collectors == 0
        assert vm.load_user_location() is None

    asyncio.run(scenario())


def test_spot_list_collects_only_while_subscribed_with_retention() -> None:
    async def scenario() -> None:
        repo = FakeSpotRepository()
        vm = _make_vm(repo, stop_timeout=0.05)
        assert vm.spots.value == []
        assert repo.spot_subscriptions == 0

        first = vm.spots.subscribe(lambda _: None)
        second = vm.spots.subscribe(lambda _: None)
        await settle()
        assert repo.spot_subscriptions == 1
        assert vm.spots.is_collecting

        first.dispose()
        second.dispose()
        await asyncio.sleep(0.01)
        # Still inside the retention window; resubscribing reuses the collector
        third = vm.spots.subscribe(lambda _: None)
        await asyncio.sleep(0.1)
        assert vm.spots.is_collecting
        assert repo.spot_subscriptions == 1

        repo.spot_emissions.put_nowait([make_spot(5)])
        await settle()
        third.dispose()
        await asyncio.sleep(0.1)
        assert not vm.spots.is_collecting
        assert repo.active_spot_collectors == 0
        # Last value survives the stop
        assert vm.spots.value == [make_spot(5)]
        vm.close()

    asyncio.run(scenario())


def test_unconsumed_outcome_does_not_hide_identical_next_outcome() -> None:
    async def scenario() -> None:
        repo = FakeSpotRepository()
        repo.create_result = NoLocation()
        vm = _make_vm(repo)
        await vm.create_spot(CaptureRequest("a.jpg"))
        assert vm.capture_result.value is False

        # A new capture screen only listens for outcomes of its own attempt
        seen = _record_new(vm.capture_result)
        await vm.create_spot(CaptureRequest("b.jpg"))

        assert seen == [None, False]
        assert vm.error_message.value == MSG_NO_LOCATION
        vm.close()

    asyncio.run(scenario())


def test_clears_from_another_thread_are_written_on_loop_thread() -> None:
    async def scenario() -> None:
        repo = FakeSpotRepository()
        repo.create_result = NoLocation()
        vm = _make_vm(repo)
        await vm.create_spot(CaptureRequest("x.jpg"))
        loop_thread = threading.get_ident()
        writers: list[int] = []
        vm.error_message.subscribe(
            lambda _: writers.append(threading.get_ident()), emit_current=False
        )
        vm.capture_result.subscribe(
            lambda _: writers.append(threading.get_ident()), emit_current=False
        )

        def gui_thread() -> None:
            vm.clear_error()
            vm.clear_capture_result()

        worker = threading.Thread(target=gui_thread)
        worker.start()
        await asyncio.to_thread(worker.join)
        await settle()

        assert vm.error_message.value is None
        assert vm.capture_result.value is None
        assert writers == [loop_thread, loop_thread]
        vm.close()

    asyncio.run(scenario())
