#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Writes filtered images into the user's Pictures folder.
"""

import logging
import os
from datetime import datetime
from typing import Callable, Optional

import cv2
import numpy as np
from PySide6.QtCore import QStandardPaths

logger = logging.getLogger(__name__)

SAVE_SUBDIR = "InstaFilter"
SAVE_EXTENSION = ".png"


def default_directory() -> str:
    pictures = QStandardPaths.writableLocation(QStandardPaths.PicturesLocation)
    if not pictures:
        pictures = os.path.join(os.path.expanduser("~"), "Pictures")
    return os.path.join(pictures, SAVE_SUBDIR)


class PhotoStore:
    """Persists images and reports the outcome through a pair of callbacks."""

    def __init__(self, directory: Optional[str] = None) -> None:
        self.directory = directory or default_directory()

    def _next_path(self) -> str:
        stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        path = os.path.join(self.directory, f"instafilter-{stamp}{SAVE_EXTENSION}")
        n = 1
        while os.path.exists(path):
            path = os.path.join(
                self.directory, f"instafilter-{stamp}-{n}{SAVE_EXTENSION}"
            )
            n += 1
        return path

    def save(
        self,
        image: np.ndarray,
        on_success: Callable[[str], None],
        on_error: Callable[[str], None],
    ) -> None:
        try:
            os.makedirs(self.directory, exist_ok=True)
        except OSError as e:
            logger.error(f"Cannot create {self.directory}: {e}")
            on_error(f"Failed to create folder: {e}")
            return

        try:
            success, buf = cv2.imencode(SAVE_EXTENSION, image)
        except cv2.error as e:
            logger.error(f"PNG encoding raised: {e}")
            success = False
        if not success:
            logger.error("PNG encoding failed")
            on_error("Failed to encode image.")
            return

        out_path = self._next_path()
        try:
            buf.tofile(out_path)
        except OSError as e:
            logger.error(f"Writing {out_path} failed: {e}")
            on_error(f"Failed to save image: {e}")
            return

        logger.info(f"Saved image to {out_path}")
        on_success(out_path)
