"""Toolkit-free controller for the map screen.

The controller owns the view-local state (selection, pending deletion,
centre-once flag) and binds `MapVM` fields to a `MapScreenView`. Qt or any
other toolkit only has to implement the view protocol and provide a
dispatcher that runs callbacks on its rendering thread.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

from loguru import logger

from core.models import LatLng, Spot
from core.reactive import Subscription

USER_LOCATION_ZOOM: float = 15.0


class MapScreenView(Protocol):
    """Rendering surface driven by `MapScreenController`."""

    def render_spots(self, spots: list[Spot]) -> None:
        ...

    def animate_camera(self, target: LatLng, zoom: float) -> None:
        ...

    def set_loading(self, loading: bool) -> None:
        ...

    def show_message(self, message: str) -> None:
        ...

    def show_spot_card(self, spot: Spot | None) -> None:
        """Show the detail card for `spot`, or hide it when None."""
        ...

    def show_delete_prompt(self, spot: Spot | None) -> None:
        """Open the delete confirmation for `spot`, or close it when None."""
        ...


@dataclass
class MapScreenState:
    """View-local UI state.

    `selected_spot` and `spot_to_delete` are independent; both may be set.
    """

    selected_spot: Spot | None = None
    spot_to_delete: Spot | None = None
    has_centered_map: bool = False


def _immediate(callback: Callable[[], Any]) -> None:
    callback()


class MapScreenController:
    """Binds a `MapVM` to a `MapScreenView`."""

    def __init__(
        self,
        vm: Any,
        view: MapScreenView,
        on_navigate_to_capture: Callable[[], None],
        prefetch_image: Callable[[str], None] | None = None,
        dispatch: Callable[[Callable[[], Any]], None] | None = None,
        user_zoom: float = USER_LOCATION_ZOOM,
    ) -> None:
        """Create a controller.

        Args:
            vm: The map view-model.
            view: Rendering surface.
            on_navigate_to_capture: Navigation trigger for the capture screen.
            prefetch_image: Fire-and-forget image warm-up for a spot image path.
            dispatch: Runs a callback on the rendering thread; defaults to
                calling it inline.
            user_zoom: Zoom level used when centring on the user.
        """
        self._vm = vm
        self._view = view
        self._navigate = on_navigate_to_capture
        self._prefetch = prefetch_image
        self._dispatch = dispatch or _immediate
        self._user_zoom = float(user_zoom)
        self.state = MapScreenState()
        self._subscriptions: list[Subscription] = []
        self._initial_load_done = False

    # Lifecycle

    def attach(self) -> None:
        """Subscribe to the view-model and trigger the initial location load."""
        if self._subscriptions:
            return
        vm = self._vm
        self._subscriptions = [
            vm.spots.subscribe(self._post(self._on_spots)),
            vm.user_location.subscribe(self._post(self._on_user_location)),
            vm.is_loading.subscribe(self._post(self._view.set_loading)),
            vm.error_message.subscribe(self._post(self._on_error)),
        ]
        if not self._initial_load_done:
            self._initial_load_done = True
            vm.load_user_location()

    def detach(self) -> None:
        for sub in self._subscriptions:
            sub.dispose()
        self._subscriptions = []

    def _post(self, handler: Callable[[Any], None]) -> Callable[[Any], None]:
        def _deliver(value: Any) -> None:
            self._dispatch(lambda: handler(value))

        return _deliver

    # View-model field handlers

    def _on_spots(self, spots: list[Spot]) -> None:
        self._view.render_spots(spots)
        if self._prefetch is None:
            return
        for spot in spots:
            self._prefetch(spot.image_uri)

    def _on_user_location(self, location: LatLng | None) -> None:
        if location is None or self.state.has_centered_map:
            return
        self._view.animate_camera(location, self._user_zoom)
        self.state.has_centered_map = True

    def _on_error(self, message: str | None) -> None:
        if not message:
            return
        self._view.show_message(message)
        self._vm.clear_error()

    # User gestures

    def on_spot_clicked(self, spot: Spot) -> None:
        self.state.selected_spot = spot
        self._view.show_spot_card(spot)

    def on_map_clicked(self) -> None:
        self.state.selected_spot = None
        self._view.show_spot_card(None)

    def on_spot_long_pressed(self, spot: Spot) -> None:
        self.state.spot_to_delete = spot
        self._view.show_delete_prompt(spot)

    def on_card_delete(self) -> None:
        """Delete button of the detail card: ask for confirmation and hide the card."""
        spot = self.state.selected_spot
        if spot is None:
            return
        self.state.spot_to_delete = spot
        self.state.selected_spot = None
        self._view.show_spot_card(None)
        self._view.show_delete_prompt(spot)

    def confirm_delete(self) -> None:
        spot = self.state.spot_to_delete
        if spot is not None:
            logger.info("Delete confirmed for spot {}", spot.id)
            self._vm.delete_spot(spot.id)
        self.state.spot_to_delete = None
        self._view.show_delete_prompt(None)

    def cancel_delete(self) -> None:
        self.state.spot_to_delete = None
        self._view.show_delete_prompt(None)

    def navigate_to_capture(self) -> None:
        self._navigate()
