"""ViewModel for the map screen: location, spot list and spot actions."""

from __future__ import annotations

import asyncio
import concurrent.futures

from loguru import logger

from core.models import (
    CameraCaptureError,
    CameraClosed,
    CaptureRequest,
    CreateSpotResult,
    HardwareError,
    InvalidCoordinates,
    LatLng,
    NoLocation,
    PhotoCaptureFailed,
    Spot,
    StorageError,
    Success,
)
from core.reactive import ReadOnlyField, SharedState, StateField
from core.scope import TaskScope
from core.services.interfaces import SpotRepository

MSG_NO_LOCATION = "No se pudo obtener la ubicación. Verifica que el GPS esté activado."
MSG_CAMERA_CLOSED = "La cámara se cerró inesperadamente."
MSG_HARDWARE_ERROR = "Error de hardware en la captura."
MSG_STORAGE_ERROR = "Error de almacenamiento: ¿Espacio lleno?"
MSG_UNKNOWN_CAPTURE_ERROR = "Error desconocido al capturar foto."

DEFAULT_SPOTS_STOP_TIMEOUT_S = 5.0

TaskHandle = asyncio.Task | concurrent.futures.Future | None


def capture_error_message(error: CameraCaptureError) -> str:
    """Return the user-facing text for a camera capture error."""
    if isinstance(error, CameraClosed):
        return MSG_CAMERA_CLOSED
    if isinstance(error, HardwareError):
        return MSG_HARDWARE_ERROR
    if isinstance(error, StorageError):
        return MSG_STORAGE_ERROR
    return MSG_UNKNOWN_CAPTURE_ERROR


class MapVM:
    """Map screen view-model.

    Owns the screen's reactive fields and forwards user actions to a
    `SpotRepository`. Every action runs as a task in the screen scope; all
    failures end up in `error_message` and `is_loading` always resolves to
    False.
    """

    def __init__(
        self,
        repo: SpotRepository,
        scope: TaskScope,
        spots_stop_timeout: float = DEFAULT_SPOTS_STOP_TIMEOUT_S,
    ) -> None:
        """Create a MapVM.

        Args:
            repo: Repository providing spots, location and photo capture.
            scope: Screen scope the actions are launched in.
            spots_stop_timeout: Seconds the spot list keeps collecting after
                its last subscriber leaves.
        """
        self._repo = repo
        self._scope = scope

        self._user_location: StateField[LatLng | None] = StateField(None, "user_location")
        self._is_loading: StateField[bool] = StateField(False, "is_loading")
        self._error_message: StateField[str | None] = StateField(None, "error_message")
        self._capture_result: StateField[bool | None] = StateField(None, "capture_result")

        self.user_location: ReadOnlyField[LatLng | None] = self._user_location.as_read_only()
        self.is_loading: ReadOnlyField[bool] = self._is_loading.as_read_only()
        self.error_message: ReadOnlyField[str | None] = self._error_message.as_read_only()
        self.capture_result: ReadOnlyField[bool | None] = self._capture_result.as_read_only()
        self.spots: SharedState[list[Spot]] = SharedState(
            repo.get_all_spots,
            scope,
            initial=[],
            stop_timeout=spots_stop_timeout,
            name="spots",
        )

        self._location_updates: TaskHandle = None

    # Actions

    def load_user_location(self) -> TaskHandle:
        """Fetch the current location once and store it."""
        return self._scope.launch(self._load_user_location())

    async def _load_user_location(self) -> None:
        try:
            self._is_loading.value = True
            location = await self._repo.get_current_location()
            if location is not None:
                self._user_location.value = location.to_latlng()
                logger.info(
                    "User location: {:.5f}, {:.5f}", location.latitude, location.longitude
                )
            else:
                logger.info("Location provider returned no reading")
        except Exception as ex:
            logger.exception("Load user location failed: {}", ex)
            self._error_message.value = f"Error obteniendo ubicación: {ex}"
        finally:
            self._is_loading.value = False

    def start_location_updates(self) -> TaskHandle:
        """Follow live location updates until stopped or the scope closes."""
        if self._location_updates is not None and not self._location_updates.done():
            return self._location_updates
        self._location_updates = self._scope.launch(self._collect_location_updates())
        return self._location_updates

    async def _collect_location_updates(self) -> None:
        logger.info("Location updates started")
        try:
            async for location in self._repo.get_location_updates():
                self._user_location.value = location.to_latlng()
        finally:
            logger.info("Location updates stopped")

    def stop_location_updates(self) -> None:
        """Cancel the live location subscription, if any."""
        handle = self._location_updates
        self._location_updates = None
        if handle is None or handle.done():
            return
        if isinstance(handle, asyncio.Task):
            self._scope.run_on_loop(handle.cancel)
        else:
            handle.cancel()

    def create_spot(self, request: CaptureRequest) -> TaskHandle:
        """Capture a photo at the current location and persist it as a spot."""
        return self._scope.launch(self._create_spot(request))

    async def _create_spot(self, request: CaptureRequest) -> None:
        # A result nobody consumed must not hide an identical outcome
        self._capture_result.value = None
        try:
            self._is_loading.value = True
            result: CreateSpotResult = await self._repo.create_spot(request)
            if isinstance(result, Success):
                logger.info("Spot created: id={} title={}", result.spot.id, result.spot.title)
                self._capture_result.value = True
            elif isinstance(result, NoLocation):
                logger.warning("Create spot: no location available")
                self._error_message.value = MSG_NO_LOCATION
                self._capture_result.value = False
            elif isinstance(result, InvalidCoordinates):
                logger.warning("Create spot: invalid coordinates ({})", result.message)
                self._error_message.value = result.message
                self._capture_result.value = False
            elif isinstance(result, PhotoCaptureFailed):
                logger.warning("Create spot: photo capture failed ({})", result.error)
                self._error_message.value = capture_error_message(result.error)
                self._capture_result.value = False
            else:
                raise TypeError(f"Unexpected create result: {result!r}")
        except Exception as ex:
            logger.exception("Create spot failed: {}", ex)
            self._error_message.value = f"Error al capturar: {ex}"
            self._capture_result.value = False
        finally:
            self._is_loading.value = False

    def delete_spot(self, spot_id: int) -> TaskHandle:
        """Delete a spot; the spot list refreshes through the repository stream."""
        return self._scope.launch(self._delete_spot(spot_id))

    async def _delete_spot(self, spot_id: int) -> None:
        try:
            self._is_loading.value = True
            await self._repo.delete_spot(spot_id)
            logger.info("Spot deleted: id={}", spot_id)
        except Exception as ex:
            logger.exception("Delete spot {} failed: {}", spot_id, ex)
            self._error_message.value = f"Error al eliminar el spot: {ex}"
        finally:
            self._is_loading.value = False

    def clear_capture_result(self) -> None:
        """Reset the capture result after it has been consumed.

        Safe to call from any thread; the write happens on the loop thread.
        """
        self._scope.run_on_loop(self._capture_result.set, None)

    def clear_error(self) -> None:
        """Reset the error message after it has been shown (any thread)."""
        self._scope.run_on_loop(self._error_message.set, None)

    def close(self) -> None:
        """Cancel every task of this screen."""
        self._location_updates = None
        self._scope.cancel_all()
