#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Image Effects Module for InstaFilter

This module holds the closed set of filter kinds, the table of parameters each
kind accepts, and the OpenCV implementations the session renders through.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Mapping, Optional, Tuple

import cv2
import numpy as np

logger = logging.getLogger(__name__)

# Parameter channel names understood by the engine
INTENSITY = "intensity"
RADIUS = "radius"
SCALE = "scale"

# Seed for crystallize cell placement; keeps renders repeatable
CRYSTAL_SEED = 1729

# Blurs wider than this sigma run on a downscaled copy
BLUR_FULL_RES_SIGMA = 8.0

# ---------------------------------------------------------------------
# Utility functions
# ---------------------------------------------------------------------

def clamp_img(img: np.ndarray) -> np.ndarray:
    """Clamp image values to [0, 255] and ensure dtype uint8."""
    return np.clip(img, 0, 255).astype(np.uint8)


def read_image(path: str) -> Optional[np.ndarray]:
    """Decode an image file into a BGR array, or None if it cannot be read."""
    # Use cv2.imdecode with fromfile to handle unicode paths on Windows
    try:
        data = np.fromfile(path, dtype=np.uint8)
    except OSError as e:
        logger.warning(f"Could not read {path}: {e}")
        return None
    if data.size == 0:
        return None
    return cv2.imdecode(data, cv2.IMREAD_COLOR)

# ---------------------------------------------------------------------
# Filter kinds
# ---------------------------------------------------------------------

class FilterKind(enum.Enum):
    CRYSTALLIZE = "crystallize"
    EDGES = "edges"
    GAUSSIAN_BLUR = "gaussian_blur"
    PIXELLATE = "pixellate"
    SEPIA_TONE = "sepia_tone"
    UNSHARP_MASK = "unsharp_mask"
    VIGNETTE = "vignette"


@dataclass(frozen=True)
class FilterSpec:
    """Declares which parameter channels a filter kind accepts."""

    kind: FilterKind
    title: str
    # (channel, default value) pairs; a tuple keeps the spec hashable
    params: Tuple[Tuple[str, float], ...] = ()

    @property
    def defaults(self) -> Dict[str, float]:
        return dict(self.params)

    @property
    def inputs(self) -> FrozenSet[str]:
        return frozenset(key for key, _ in self.params)

    def accepts(self, key: str) -> bool:
        return key in self.inputs


FILTER_SPECS: Dict[FilterKind, FilterSpec] = {
    FilterKind.CRYSTALLIZE: FilterSpec(
        FilterKind.CRYSTALLIZE, "Crystallize", ((RADIUS, 20.0),)
    ),
    FilterKind.EDGES: FilterSpec(FilterKind.EDGES, "Edges", ((INTENSITY, 1.0),)),
    FilterKind.GAUSSIAN_BLUR: FilterSpec(
        FilterKind.GAUSSIAN_BLUR, "Gaussian Blur", ((RADIUS, 10.0),)
    ),
    FilterKind.PIXELLATE: FilterSpec(FilterKind.PIXELLATE, "Pixellate", ((SCALE, 8.0),)),
    FilterKind.SEPIA_TONE: FilterSpec(
        FilterKind.SEPIA_TONE, "Sepia Tone", ((INTENSITY, 1.0),)
    ),
    FilterKind.UNSHARP_MASK: FilterSpec(
        FilterKind.UNSHARP_MASK, "Unsharp Mask", ((INTENSITY, 0.5), (RADIUS, 2.5))
    ),
    FilterKind.VIGNETTE: FilterSpec(
        FilterKind.VIGNETTE, "Vignette", ((INTENSITY, 0.0), (RADIUS, 1.0))
    ),
}


def spec_for(kind: FilterKind) -> FilterSpec:
    return FILTER_SPECS[kind]


def filter_for_title(title: str) -> Optional[FilterKind]:
    """Look up a filter kind by its menu title."""
    for spec in FILTER_SPECS.values():
        if spec.title == title:
            return spec.kind
    return None

# ---------------------------------------------------------------------
# Filter implementations
# ---------------------------------------------------------------------

def _crystallize(src_bgr: np.ndarray, radius: float) -> np.ndarray:
    cell = max(1, int(round(radius)))
    h, w = src_bgr.shape[:2]
    rows = h // cell + 1
    cols = w // cell + 1

    # One jittered seed point per grid cell
    rng = np.random.default_rng(CRYSTAL_SEED)
    jitter = rng.random((rows, cols, 2))
    gy, gx = np.mgrid[0:rows, 0:cols]
    seed_y = np.clip((gy + jitter[..., 0]) * cell, 0, h - 1).astype(np.int32)
    seed_x = np.clip((gx + jitter[..., 1]) * cell, 0, w - 1).astype(np.int32)

    ys, xs = np.mgrid[0:h, 0:w]
    cy = ys // cell
    cx = xs // cell
    best_d = np.full((h, w), np.inf, dtype=np.float64)
    best_y = np.zeros((h, w), dtype=np.int32)
    best_x = np.zeros((h, w), dtype=np.int32)

    # The nearest seed is always within the 3x3 neighbourhood of cells
    for dy in (-1, 0, 1):
        for dx in (-1, 0, 1):
            ny = np.clip(cy + dy, 0, rows - 1)
            nx = np.clip(cx + dx, 0, cols - 1)
            py = seed_y[ny, nx]
            px = seed_x[ny, nx]
            d = (ys - py).astype(np.float64) ** 2 + (xs - px).astype(np.float64) ** 2
            closer = d < best_d
            best_d[closer] = d[closer]
            best_y[closer] = py[closer]
            best_x[closer] = px[closer]

    return src_bgr[best_y, best_x]


def _edges(src_bgr: np.ndarray, intensity: float) -> np.ndarray:
    src = src_bgr.astype(np.float32)
    gx = cv2.Sobel(src, cv2.CV_32F, 1, 0, ksize=3)
    gy = cv2.Sobel(src, cv2.CV_32F, 0, 1, ksize=3)
    magnitude = np.sqrt(gx * gx + gy * gy)
    return clamp_img(magnitude * float(intensity))


def _blur(src_bgr: np.ndarray, sigma: float) -> np.ndarray:
    """Gaussian blur whose cost stays bounded for large sigmas."""
    sigma = float(sigma)
    if sigma <= BLUR_FULL_RES_SIGMA:
        return cv2.GaussianBlur(src_bgr, (0, 0), sigmaX=sigma)

    # Shrink so the remaining sigma is BLUR_FULL_RES_SIGMA, blur, scale back up
    h, w = src_bgr.shape[:2]
    factor = sigma / BLUR_FULL_RES_SIGMA
    small_w = max(1, int(round(w / factor)))
    small_h = max(1, int(round(h / factor)))
    small = cv2.resize(src_bgr, (small_w, small_h), interpolation=cv2.INTER_AREA)
    small = cv2.GaussianBlur(small, (0, 0), sigmaX=BLUR_FULL_RES_SIGMA)
    return cv2.resize(small, (w, h), interpolation=cv2.INTER_LINEAR)


def _gaussian_blur(src_bgr: np.ndarray, radius: float) -> np.ndarray:
    if radius <= 0:
        return src_bgr.copy()
    return _blur(src_bgr, radius)


def _pixellate(src_bgr: np.ndarray, scale: float) -> np.ndarray:
    block = max(1, int(round(scale)))
    if block == 1:
        return src_bgr.copy()
    h, w = src_bgr.shape[:2]
    gh = max(1, h // block)
    gw = max(1, w // block)
    small = cv2.resize(src_bgr, (gw, gh), interpolation=cv2.INTER_AREA)
    return cv2.resize(small, (w, h), interpolation=cv2.INTER_NEAREST)


# Sepia matrix in BGR channel order
_SEPIA_BGR = np.array(
    [
        [0.131, 0.534, 0.272],
        [0.168, 0.686, 0.349],
        [0.189, 0.769, 0.393],
    ],
    dtype=np.float32,
)


def _sepia_tone(src_bgr: np.ndarray, intensity: float) -> np.ndarray:
    t = float(np.clip(intensity, 0.0, 1.0))
    sepia = clamp_img(cv2.transform(src_bgr.astype(np.float32), _SEPIA_BGR))
    return cv2.addWeighted(sepia, t, src_bgr, 1.0 - t, 0.0)


def _unsharp_mask(src_bgr: np.ndarray, intensity: float, radius: float) -> np.ndarray:
    if radius <= 0 or intensity == 0:
        return src_bgr.copy()
    blurred = _blur(src_bgr, radius)
    amount = float(intensity)
    out = src_bgr.astype(np.float32) * (1.0 + amount) - blurred.astype(np.float32) * amount
    return clamp_img(out)


def _vignette(src_bgr: np.ndarray, intensity: float, radius: float) -> np.ndarray:
    h, w = src_bgr.shape[:2]
    # Radius 100 puts the falloff sigma at half the longer side
    sigma = max(1.0, max(h, w) * 0.5 * float(radius) / 100.0)
    kernel_x = cv2.getGaussianKernel(w, sigma)
    kernel_y = cv2.getGaussianKernel(h, sigma)
    mask = kernel_y * kernel_x.T
    mask = mask / mask.max()
    strength = float(np.clip(intensity, 0.0, 1.0))
    vignette_mask = (1.0 - strength) + strength * mask
    out = src_bgr.astype(np.float32) * vignette_mask[..., None]
    return clamp_img(out)


_RENDERERS: Dict[FilterKind, Callable[[np.ndarray, Mapping[str, float]], np.ndarray]] = {
    FilterKind.CRYSTALLIZE: lambda img, p: _crystallize(img, p[RADIUS]),
    FilterKind.EDGES: lambda img, p: _edges(img, p[INTENSITY]),
    FilterKind.GAUSSIAN_BLUR: lambda img, p: _gaussian_blur(img, p[RADIUS]),
    FilterKind.PIXELLATE: lambda img, p: _pixellate(img, p[SCALE]),
    FilterKind.SEPIA_TONE: lambda img, p: _sepia_tone(img, p[INTENSITY]),
    FilterKind.UNSHARP_MASK: lambda img, p: _unsharp_mask(img, p[INTENSITY], p[RADIUS]),
    FilterKind.VIGNETTE: lambda img, p: _vignette(img, p[INTENSITY], p[RADIUS]),
}

# ---------------------------------------------------------------------
# Engine entry point
# ---------------------------------------------------------------------

def render(
    kind: FilterKind,
    image: Optional[np.ndarray],
    params: Optional[Mapping[str, float]] = None,
) -> Optional[np.ndarray]:
    """
    Render ``image`` through the filter ``kind``.

    ``params`` maps channel names to scalar values. Channels the filter does
    not accept are ignored; accepted channels that are missing fall back to
    the filter's own default. Returns None when there is no image.
    """
    if image is None:
        return None
    spec = FILTER_SPECS[kind]
    resolved = dict(spec.defaults)
    for key, value in (params or {}).items():
        if spec.accepts(key):
            resolved[key] = float(value)
    return _RENDERERS[kind](image, resolved)
