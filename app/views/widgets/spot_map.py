"""SpotMapView: map surface with one marker per spot.

Tile imagery is out of scope; the surface is a Web-Mercator plane with a
coordinate grid. Markers keep a constant on-screen size at every zoom.
"""

from __future__ import annotations

from PySide6.QtCore import QPointF, QRectF, Qt, QTimer, QVariantAnimation, Signal
from PySide6.QtGui import QBrush, QPainter, QPen, QTransform
from PySide6.QtWidgets import (
    QGraphicsEllipseItem,
    QGraphicsItem,
    QGraphicsScene,
    QGraphicsView,
    QWidget,
)
from loguru import logger

from app.viewmodels.spot_vm import SpotVM
from app.views.constants import (
    CAMERA_ANIMATION_MS,
    CLICK_SLOP_PX,
    DEFAULT_CENTER_LAT,
    DEFAULT_CENTER_LNG,
    DEFAULT_ZOOM,
    GRID_COLOR,
    GRID_TARGET_PX,
    LONG_PRESS_MS,
    MAP_BACKGROUND_COLOR,
    MARKER_BORDER_COLOR,
    MARKER_COLOR,
    MARKER_RADIUS_PX,
    MAX_ZOOM,
    MIN_ZOOM,
    TILE_SIZE_PX,
    WHEEL_ZOOM_STEP,
)
from core.models import LatLng, Spot
from core.projection import clamp, grid_step, latlng_to_world, world_size_px, world_to_latlng


class _MarkerItem(QGraphicsEllipseItem):
    def __init__(self, spot: Spot) -> None:
        r = MARKER_RADIUS_PX
        super().__init__(-r, -r, 2 * r, 2 * r)
        self.spot = spot
        vm = SpotVM(spot)
        x, y = latlng_to_world(vm.position.latitude, vm.position.longitude)
        self.setPos(x, y)
        self.setFlag(QGraphicsItem.ItemIgnoresTransformations, True)
        self.setBrush(QBrush(MARKER_COLOR))
        self.setPen(QPen(MARKER_BORDER_COLOR, 2))
        self.setToolTip(f"{vm.title}\n{vm.coordinates_text}")
        self.setCursor(Qt.PointingHandCursor)
        self.setZValue(1)


class SpotMapView(QGraphicsView):
    """Pannable, zoomable map with clickable spot markers."""

    spotClicked = Signal(object)
    spotLongPressed = Signal(object)
    mapClicked = Signal()

    def __init__(
        self,
        parent: QWidget | None = None,
        center: LatLng | None = None,
        zoom: float = DEFAULT_ZOOM,
    ) -> None:
        super().__init__(parent)
        self._scene = QGraphicsScene(QRectF(0.0, 0.0, 1.0, 1.0), self)
        self.setScene(self._scene)
        self.setRenderHint(QPainter.Antialiasing, True)
        self.setDragMode(QGraphicsView.ScrollHandDrag)
        self.setHorizontalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        self.setVerticalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        self.setTransformationAnchor(QGraphicsView.NoAnchor)
        self.setViewportUpdateMode(QGraphicsView.FullViewportUpdate)

        self._markers: dict[int, _MarkerItem] = {}
        self._zoom = float(zoom)
        start = center or LatLng(DEFAULT_CENTER_LAT, DEFAULT_CENTER_LNG)
        self._center_world = QPointF(*latlng_to_world(start.latitude, start.longitude))
        self._animation: QVariantAnimation | None = None

        self._press_pos = None
        self._pressed_marker: _MarkerItem | None = None
        self._long_press_timer = QTimer(self)
        self._long_press_timer.setSingleShot(True)
        self._long_press_timer.setInterval(LONG_PRESS_MS)
        self._long_press_timer.timeout.connect(self._on_long_press)

        self._apply_camera()

    # Camera

    @property
    def zoom(self) -> float:
        return self._zoom

    def camera_center(self) -> LatLng:
        lat, lng = world_to_latlng(self._center_world.x(), self._center_world.y())
        return LatLng(lat, lng)

    def set_camera(self, center: LatLng, zoom: float) -> None:
        x, y = latlng_to_world(center.latitude, center.longitude)
        self._center_world = QPointF(x, y)
        self._zoom = clamp(float(zoom), MIN_ZOOM, MAX_ZOOM)
        self._apply_camera()

    def animate_to(self, target: LatLng, zoom: float) -> None:
        """Animate the camera from its current position to `target` at `zoom`."""
        if self._animation is not None:
            self._animation.stop()
        start_center = QPointF(self._center_world)
        start_zoom = self._zoom
        tx, ty = latlng_to_world(target.latitude, target.longitude)
        end_zoom = clamp(float(zoom), MIN_ZOOM, MAX_ZOOM)

        anim = QVariantAnimation(self)
        anim.setStartValue(0.0)
        anim.setEndValue(1.0)
        anim.setDuration(CAMERA_ANIMATION_MS)

        def _step(t: float) -> None:
            t = float(t)
            self._center_world = QPointF(
                start_center.x() + (tx - start_center.x()) * t,
                start_center.y() + (ty - start_center.y()) * t,
            )
            self._zoom = start_zoom + (end_zoom - start_zoom) * t
            self._apply_camera()

        anim.valueChanged.connect(_step)
        anim.start()
        self._animation = anim
        logger.debug(
            "Camera animating to {:.4f}, {:.4f} z{}", target.latitude, target.longitude, end_zoom
        )

    def _apply_camera(self) -> None:
        scale = world_size_px(self._zoom, TILE_SIZE_PX)
        self.setTransform(QTransform.fromScale(scale, scale))
        self.centerOn(self._center_world)

    def _sync_center_from_view(self) -> None:
        self._center_world = self.mapToScene(self.viewport().rect().center())

    # Markers

    def render_spots(self, spots: list[Spot]) -> None:
        """Replace markers so there is exactly one per spot in `spots`."""
        wanted = {spot.id: spot for spot in spots}
        for spot_id in list(self._markers):
            marker = self._markers[spot_id]
            if spot_id not in wanted or marker.spot != wanted[spot_id]:
                self._scene.removeItem(marker)
                del self._markers[spot_id]
        for spot_id, spot in wanted.items():
            if spot_id not in self._markers:
                marker = _MarkerItem(spot)
                self._scene.addItem(marker)
                self._markers[spot_id] = marker

    def marker_count(self) -> int:
        return len(self._markers)

    def _marker_at(self, pos) -> _MarkerItem | None:
        for item in self.items(pos):
            if isinstance(item, _MarkerItem):
                return item
        return None

    # Input

    def mousePressEvent(self, event) -> None:  # type: ignore[override]
        self._press_pos = event.position().toPoint()
        marker = self._marker_at(self._press_pos) if event.button() == Qt.LeftButton else None
        if marker is not None:
            self._pressed_marker = marker
            self._long_press_timer.start()
            event.accept()
            return
        self._pressed_marker = None
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event) -> None:  # type: ignore[override]
        if self._pressed_marker is not None:
            if self._moved_beyond_slop(event.position().toPoint()):
                self._long_press_timer.stop()
            event.accept()
            return
        super().mouseMoveEvent(event)
        if event.buttons() & Qt.LeftButton:
            self._sync_center_from_view()

    def mouseReleaseEvent(self, event) -> None:  # type: ignore[override]
        release_pos = event.position().toPoint()
        if self._pressed_marker is not None:
            marker = self._pressed_marker
            self._pressed_marker = None
            still_pending = self._long_press_timer.isActive()
            self._long_press_timer.stop()
            if still_pending and not self._moved_beyond_slop(release_pos):
                self.spotClicked.emit(marker.spot)
            event.accept()
            return
        super().mouseReleaseEvent(event)
        self._sync_center_from_view()
        if event.button() == Qt.LeftButton and not self._moved_beyond_slop(release_pos):
            self.mapClicked.emit()

    def _moved_beyond_slop(self, pos) -> bool:
        if self._press_pos is None:
            return False
        return (pos - self._press_pos).manhattanLength() > CLICK_SLOP_PX

    def _on_long_press(self) -> None:
        marker = self._pressed_marker
        if marker is None:
            return
        self.spotLongPressed.emit(marker.spot)

    def wheelEvent(self, event) -> None:  # type: ignore[override]
        steps = event.angleDelta().y() / 120.0
        if not steps:
            return
        if self._animation is not None:
            self._animation.stop()
        self._zoom = clamp(self._zoom + steps * WHEEL_ZOOM_STEP, MIN_ZOOM, MAX_ZOOM)
        self._apply_camera()
        event.accept()

    def resizeEvent(self, event) -> None:  # type: ignore[override]
        super().resizeEvent(event)
        self.centerOn(self._center_world)

    # Painting

    def drawBackground(self, painter: QPainter, rect: QRectF) -> None:  # type: ignore[override]
        painter.fillRect(rect, MAP_BACKGROUND_COLOR)
        step = grid_step(self._zoom, GRID_TARGET_PX, TILE_SIZE_PX)
        pen = QPen(GRID_COLOR)
        pen.setCosmetic(True)
        painter.setPen(pen)
        left = max(0.0, rect.left())
        right = min(1.0, rect.right())
        top = max(0.0, rect.top())
        bottom = min(1.0, rect.bottom())
        x = (left // step) * step
        while x <= right:
            painter.drawLine(QPointF(x, top), QPointF(x, bottom))
            x += step
        y = (top // step) * step
        while y <= bottom:
            painter.drawLine(QPointF(left, y), QPointF(right, y))
            y += step
