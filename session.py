#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Filter session controller.

Holds the picked image, the active filter and its slider values, and
re-renders the filtered image every time one of them changes.  Every setter
runs to completion synchronously, so listeners only ever see a derived image
that matches the current state.
"""

import logging
from typing import Callable, Optional

import numpy as np
from PySide6.QtCore import QObject, Signal

from effects import (
    INTENSITY,
    RADIUS,
    SCALE,
    FilterKind,
    FilterSpec,
    render,
    spec_for,
)
from photo_store import PhotoStore

logger = logging.getLogger(__name__)

DEFAULT_FILTER = FilterKind.SEPIA_TONE
DEFAULT_INTENSITY = 0.5
DEFAULT_RADIUS = 100.0
RADIUS_MAX = 200.0
# Scale-style filters take intensity multiplied by this
SCALE_FACTOR = 10.0


class FilterSession(QObject):
    """Owns the filter state and the source/derived image pair."""

    # Derived image (np.ndarray) or None when there is nothing to show
    image_changed = Signal(object)
    # (show intensity slider, show radius slider)
    sliders_changed = Signal(bool, bool)

    def __init__(
        self,
        store: Optional[PhotoStore] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._store = store if store is not None else PhotoStore()
        self._spec: FilterSpec = spec_for(DEFAULT_FILTER)
        self._intensity = DEFAULT_INTENSITY
        self._radius = DEFAULT_RADIUS
        self._show_intensity = False
        self._show_radius = False
        self._source: Optional[np.ndarray] = None
        self._derived: Optional[np.ndarray] = None
        self._update_slider_flags()

    # -----------------------------------------------------------------
    # State accessors
    # -----------------------------------------------------------------

    @property
    def kind(self) -> FilterKind:
        return self._spec.kind

    @property
    def spec(self) -> FilterSpec:
        return self._spec

    @property
    def intensity(self) -> float:
        return self._intensity

    @property
    def radius(self) -> float:
        return self._radius

    @property
    def show_intensity(self) -> bool:
        return self._show_intensity

    @property
    def show_radius(self) -> bool:
        return self._show_radius

    @property
    def source(self) -> Optional[np.ndarray]:
        return self._source

    @property
    def derived(self) -> Optional[np.ndarray]:
        return self._derived

    @property
    def has_source(self) -> bool:
        return self._source is not None

    # -----------------------------------------------------------------
    # Commands
    # -----------------------------------------------------------------

    def select_filter(self, kind: FilterKind) -> None:
        """Switch filters.  Intensity and radius carry over to the new filter."""
        self._spec = spec_for(kind)
        self._show_intensity = False
        self._show_radius = False
        logger.info(f"Filter changed to {self._spec.title}")
        self.reprocess()

    def set_intensity(self, value: float) -> None:
        self._intensity = min(1.0, max(0.0, float(value)))
        self.reprocess()

    def set_radius(self, value: float) -> None:
        self._radius = min(RADIUS_MAX, max(0.0, float(value)))
        self.reprocess()

    def load_source(self, image: Optional[np.ndarray]) -> None:
        """Replace the picked image.  None clears it."""
        self._source = image
        if image is None:
            logger.info("Source image cleared")
        else:
            logger.info(f"Source image loaded: {image.shape[1]}x{image.shape[0]}")
        self.reprocess()

    def parameters(self) -> dict:
        """Map the slider values onto the inputs the active filter accepts."""
        params = {}
        if self._spec.accepts(INTENSITY):
            params[INTENSITY] = self._intensity
        if self._spec.accepts(RADIUS):
            params[RADIUS] = self._radius
        if self._spec.accepts(SCALE):
            params[SCALE] = self._intensity * SCALE_FACTOR
        return params

    def reprocess(self) -> None:
        self._update_slider_flags()
        params = self.parameters()
        logger.debug(f"Rendering {self._spec.kind.value} with {params}")
        # No source means no output; the previous render is dropped either way
        self._derived = render(self._spec.kind, self._source, params)
        self.sliders_changed.emit(self._show_intensity, self._show_radius)
        self.image_changed.emit(self._derived)

    def save(
        self,
        on_success: Callable[[str], None],
        on_error: Callable[[str], None],
    ) -> bool:
        """
        Hand the derived image to the photo store.

        Returns False without contacting the store when there is nothing to
        save.  The outcome is reported only through the callbacks.
        """
        if self._derived is None:
            logger.debug("Save requested with no filtered image")
            return False
        self._store.save(self._derived, on_success, on_error)
        return True

    # -----------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------

    def _update_slider_flags(self) -> None:
        inputs = self._spec.inputs
        self._show_intensity = INTENSITY in inputs or SCALE in inputs
        self._show_radius = RADIUS in inputs
