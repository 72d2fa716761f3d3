"""
UI/view constants centralized for reuse across view modules.
"""

from __future__ import annotations

from PySide6.QtGui import QColor

# Map camera
DEFAULT_CENTER_LAT: float = 14.6349
DEFAULT_CENTER_LNG: float = -90.5069
DEFAULT_ZOOM: float = 12.0
MIN_ZOOM: float = 2.0
MAX_ZOOM: float = 19.0
TILE_SIZE_PX: int = 256
CAMERA_ANIMATION_MS: int = 800
WHEEL_ZOOM_STEP: float = 0.5

# Markers
MARKER_RADIUS_PX: float = 9.0
MARKER_COLOR = QColor(220, 53, 69)
MARKER_BORDER_COLOR = QColor(255, 255, 255)
LONG_PRESS_MS: int = 600
CLICK_SLOP_PX: int = 4

# Background grid
MAP_BACKGROUND_COLOR = QColor(232, 236, 226)
GRID_COLOR = QColor(200, 206, 194)
GRID_TARGET_PX: int = 120

# Overlays
CARD_IMAGE_WIDTH_PX: int = 280
CARD_IMAGE_HEIGHT_PX: int = 160
CARD_MARGIN_PX: int = 16
SNACKBAR_TIMEOUT_MS: int = 4000
FAB_SIZE_PX: int = 56
DEFAULT_THUMB_SIZE: int = 512
