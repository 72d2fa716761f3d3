from __future__ import annotations

from conftest import make_spot

from app.viewmodels.map_screen import USER_LOCATION_ZOOM, MapScreenController
from core.models import LatLng
from core.reactive import StateField


class StubVM:
    def __init__(self) -> None:
        self._spots = StateField([], "spots")
        self._location = StateField(None, "user_location")
        self._loading = StateField(False, "is_loading")
        self._error = StateField(None, "error_message")
        self.spots = self._spots.as_read_only()
        self.user_location = self._location.as_read_only()
        self.is_loading = self._loading.as_read_only()
        self.error_message = self._error.as_read_only()
        self.load_calls = 0
        self.deleted: list[int] = []

    def load_user_location(self) -> None:
        self.load_calls += 1

    def delete_spot(self, spot_id: int) -> None:
        self.deleted.append(spot_id)

    def clear_error(self) -> None:
        self._error.value = None


class RecordingView:
    def __init__(self) -> None:
        self.rendered: list = []
        self.camera: list = []
        self.loading: list = []
        self.messages: list = []
        self.cards: list = []
        self.prompts: list = []

    def render_spots(self, spots) -> None:
        self.rendered.append(list(spots))

    def animate_camera(self, target, zoom) -> None:
        self.camera.append((target, zoom))

    def set_loading(self, loading) -> None:
        self.loading.append(loading)

    def show_message(self, message) -> None:
        self.messages.append(message)

    def show_spot_card(self, spot) -> None:
        self.cards.append(spot)

    def show_delete_prompt(self, spot) -> None:
        self.prompts.append(spot)


def _controller(vm=None, dispatch=None):
    vm = vm or StubVM()
    view = RecordingView()
    navigations: list = []
    prefetched: list = []
    controller = MapScreenController(
        vm,
        view,
        on_navigate_to_capture=lambda: navigations.append(True),
        prefetch_image=prefetched.append,
        dispatch=dispatch,
    )
    return controller, vm, view, navigations, prefetched


def test_attach_triggers_exactly_one_location_load() -> None:
    controller, vm, _, _, _ = _controller()

    controller.attach()
    controller.attach()
    controller.detach()
    controller.attach()

    assert vm.load_calls == 1


def test_map_centers_only_on_first_location() -> None:
    controller, vm, view, _, _ = _controller()
    controller.attach()
    assert view.camera == []

    vm._location.value = LatLng(14.60, -90.50)
    vm._location.value = LatLng(14.70, -90.40)

    assert view.camera == [(LatLng(14.60, -90.50), USER_LOCATION_ZOOM)]
    assert controller.state.has_centered_map is True


def test_null_location_does_not_consume_centering() -> None:
    controller, vm, view, _, _ = _controller()
    controller.attach()

    vm._location.value = None
    assert view.camera == []
    vm._location.value = LatLng(1.0, 2.0)

    assert view.camera == [(LatLng(1.0, 2.0), 15.0)]


def test_error_is_shown_once_then_cleared() -> None:
    controller, vm, view, _, _ = _controller()
    controller.attach()

    vm._error.value = "Error al capturar: x"

    assert view.messages == ["Error al capturar: x"]
    assert vm.error_message.value is None

    vm._error.value = "Error al capturar: x"
    assert view.messages == ["Error al capturar: x", "Error al capturar: x"]


def test_each_spot_list_change_renders_and_prefetches() -> None:
    controller, vm, view, _, prefetched = _controller()
    controller.attach()
    a, b = make_spot(1), make_spot(2)

    vm._spots.value = [a, b]
    vm._spots.value = [a]

    assert view.rendered == [[], [a, b], [a]]
    assert prefetched == [a.image_uri, b.image_uri, a.image_uri]


def test_loading_flag_is_forwarded() -> None:
    controller, vm, view, _, _ = _controller()
    controller.attach()

    vm._loading.value = True
    vm._loading.value = False

    assert view.loading == [False, True, False]


def test_click_selects_and_map_click_deselects() -> None:
    controller, _, view, _, _ = _controller()
    spot = make_spot(1)

    controller.on_spot_clicked(spot)
    assert controller.state.selected_spot == spot
    controller.on_map_clicked()

    assert controller.state.selected_spot is None
    assert view.cards == [spot, None]


def test_long_press_on_other_spot_keeps_selection_independent() -> None:
    controller, _, view, _, _ = _controller()
    first, second = make_spot(1), make_spot(2)

    controller.on_spot_clicked(first)
    controller.on_spot_long_pressed(second)

    assert controller.state.spot_to_delete == second
    assert controller.state.selected_spot == first
    assert view.prompts == [second]


def test_card_delete_moves_selection_to_pending_deletion() -> None:
    controller, vm, view, _, _ = _controller()
    spot = make_spot(9)
    controller.on_spot_clicked(spot)

    controller.on_card_delete()

    assert controller.state.selected_spot is None
    assert controller.state.spot_to_delete == spot
    assert view.cards == [spot, None]
    assert view.prompts == [spot]
    assert vm.deleted == []


def test_confirm_delete_calls_vm_and_clears_pending() -> None:
    controller, vm, _, _, _ = _controller()
    controller.on_spot_long_pressed(make_spot(42))

    controller.confirm_delete()

    assert vm.deleted == [42]
    assert controller.state.spot_to_delete is None


def test_cancel_delete_has_no_side_effect() -> None:
    controller, vm, view, _, _ = _controller()
    controller.on_spot_long_pressed(make_spot(42))

    controller.cancel_delete()

    assert vm.deleted == []
    assert controller.state.spot_to_delete is None
    assert view.prompts[-1] is None


def test_navigate_to_capture_uses_trigger() -> None:
    controller, _, _, navigations, _ = _controller()

    controller.navigate_to_capture()

    assert navigations == [True]


def test_field_updates_go_through_dispatcher() -> None:
    queued: list = []
    controller, vm, view, _, _ = _controller(dispatch=queued.append)
    controller.attach()
    vm._location.value = LatLng(1.0, 1.0)

    assert view.camera == []
    for callback in queued:
        callback()

    assert view.camera == [(LatLng(1.0, 1.0), 15.0)]
    assert view.rendered == [[]]
