"""ScaleBarCalculator: a "nice" branch-length distance for the current zoom."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..renderer.base import TreeRenderer


logger = logging.getLogger(__name__)

TARGET_BAR_PIXELS = 100.0
NICE_STEPS = (1, 2, 5)


@dataclass(frozen=True)
class ScaleBarState:
    """Scale bar value (branch-length units) and its on-screen length."""

    value: float
    pixel_length: float

    @property
    def label(self) -> str:
        return format_scale_label(self.value)

    def to_dict(self) -> dict:
        return {
            "value": self.value,
            "pixelLength": self.pixel_length,
            "label": self.label,
        }


FALLBACK_SCALE_BAR = ScaleBarState(value=0.1, pixel_length=100.0)


def nice_distance(distance: float) -> float:
    """Snap a distance up to 1, 2, 5 or 10 times its power of ten."""
    magnitude = 10 ** math.floor(math.log10(distance))
    normalized = distance / magnitude
    for step in NICE_STEPS:
        if normalized <= step:
            return step * magnitude
    return 10 * magnitude


def compute_scale_bar(branch_scale, zoom) -> ScaleBarState:
    """Scale bar for a renderer's branch scale and base-2 zoom level.

    Targets a TARGET_BAR_PIXELS-long bar, then snaps the distance to a
    nice number. Unusable inputs give FALLBACK_SCALE_BAR.
    """
    try:
        current_scale = float(branch_scale) * 2 ** float(zoom)
    except (TypeError, ValueError, OverflowError):
        logger.debug("Unusable renderer scale (%r, %r); using fallback", branch_scale, zoom)
        return FALLBACK_SCALE_BAR
    if not math.isfinite(current_scale) or current_scale <= 0:
        logger.debug("Non-positive renderer scale %r; using fallback", current_scale)
        return FALLBACK_SCALE_BAR

    actual_distance = TARGET_BAR_PIXELS / current_scale
    if not math.isfinite(actual_distance) or actual_distance <= 0:
        return FALLBACK_SCALE_BAR
    value = nice_distance(actual_distance)
    return ScaleBarState(value=value, pixel_length=value * current_scale)


def format_scale_label(value: float) -> str:
    """Human-readable scale value: millionths, thousandths or 3 decimals."""
    if value < 0.001:
        return f"{value * 1e6:g}e-6"
    if value < 1:
        return f"{value * 1e3:g}e-3"
    return f"{value:.3f}"


class ScaleBarCalculator:
    """Reads zoom state from a renderer and computes the scale bar."""

    @staticmethod
    def from_renderer(renderer: TreeRenderer | None) -> ScaleBarState:
        """Scale bar for the renderer's current state.

        Never raises: a missing renderer or a failing state query gives
        FALLBACK_SCALE_BAR.
        """
        if renderer is None:
            return FALLBACK_SCALE_BAR
        try:
            branch_scale = renderer.get_branch_scale()
            zoom = renderer.get_zoom()
        except Exception:
            logger.debug("Renderer state unavailable; using fallback scale bar", exc_info=True)
            return FALLBACK_SCALE_BAR
        return compute_scale_bar(branch_scale, zoom)
