"""Viewport updates driven by keyboard and scroll input."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional

from .viewport import ViewportParameters, validate_viewport

ZOOM_IN_KEYS = frozenset({"=", "+"})
ZOOM_OUT_KEYS = frozenset({"-"})
QUIT_KEYS = frozenset({"escape", "q"})

# Pan direction in pixels for each key, before scaling by pan_step.
PAN_KEYS = {
    "w": (0, -1),
    "up": (0, -1),
    "s": (0, 1),
    "down": (0, 1),
    "a": (-1, 0),
    "left": (-1, 0),
    "d": (1, 0),
    "right": (1, 0),
}


@dataclass(frozen=True)
class NavigationSettings:
    zoom_factor: float = 0.9
    pan_step: int = 40

    def __post_init__(self) -> None:
        if not 0.0 < self.zoom_factor < 1.0:
            raise ValueError(f"zoom_factor must lie in (0, 1), got {self.zoom_factor}.")
        if self.pan_step <= 0:
            raise ValueError(f"pan_step must be positive, got {self.pan_step}.")


def apply_zoom(viewport: ViewportParameters, factor: float) -> ViewportParameters:
    return validate_viewport(replace(viewport, zoom=viewport.zoom * factor))


def apply_pan(viewport: ViewportParameters, dx_pixels: float, dy_pixels: float) -> ViewportParameters:
    """Move the center by a pixel offset at the current zoom."""

    return validate_viewport(
        replace(
            viewport,
            center_x=viewport.center_x + dx_pixels * viewport.zoom,
            center_y=viewport.center_y + dy_pixels * viewport.zoom,
        )
    )


def is_quit_key(key: Optional[str]) -> bool:
    return key is not None and key.lower() in QUIT_KEYS


@dataclass
class Navigator:
    """Track the current viewport and whether it still has to be rendered."""

    viewport: ViewportParameters
    settings: NavigationSettings = field(default_factory=NavigationSettings)
    needs_render: bool = True

    def __post_init__(self) -> None:
        validate_viewport(self.viewport)

    def zoom_in(self) -> None:
        self._update(apply_zoom(self.viewport, self.settings.zoom_factor))

    def zoom_out(self) -> None:
        self._update(apply_zoom(self.viewport, 1.0 / self.settings.zoom_factor))

    def pan(self, dx: int, dy: int) -> None:
        step = self.settings.pan_step
        self._update(apply_pan(self.viewport, dx * step, dy * step))

    def handle_key(self, key: Optional[str]) -> bool:
        """Apply ``key`` and report whether it changed the viewport."""

        if key is None:
            return False
        key = key.lower()
        if key in ZOOM_IN_KEYS:
            self.zoom_in()
        elif key in ZOOM_OUT_KEYS:
            self.zoom_out()
        elif key in PAN_KEYS:
            self.pan(*PAN_KEYS[key])
        else:
            return False
        return True

    def handle_scroll(self, step: float) -> bool:
        if step > 0:
            self.zoom_in()
        elif step < 0:
            self.zoom_out()
        else:
            return False
        return True

    def consume(self) -> Optional[ViewportParameters]:
        """Return the viewport to render next, or ``None`` if nothing changed."""

        if not self.needs_render:
            return None
        self.needs_render = False
        return self.viewport

    def _update(self, viewport: ViewportParameters) -> None:
        self.viewport = viewport
        self.needs_render = True
