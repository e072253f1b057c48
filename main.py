#!/usr/bin/env python3
# -*- coding: utf-8 -*-


import logging
import sys
from typing import Optional

import cv2
import numpy as np

from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QAction, QColor, QImage, QKeySequence, QPalette, QPixmap
from PySide6.QtWidgets import (
    QApplication,
    QFileDialog,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QMenu,
    QMessageBox,
    QPushButton,
    QSizePolicy,
    QSlider,
    QStyleFactory,
    QVBoxLayout,
    QWidget,
)

from effects import FILTER_SPECS, filter_for_title, read_image
from session import RADIUS_MAX, FilterSession

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------
# Theme constants
# ---------------------------------------------------------------------

COLORS = {
    "SUCCESS": "#4CAF50",
    "ERROR": "#F44336",
    "BACKGROUND": "#1e1e1e",
    "SECONDARY_BACKGROUND": "#252526",
    "PLACEHOLDER": "#5a5a5a",
    "TEXT": "#ffffff",
    "SECONDARY_TEXT": "#cccccc",
}

IMAGE_FILE_TYPES = (
    "Images (*.png *.jpg *.jpeg *.bmp *.webp *.tif *.tiff);;All Files (*)"
)

# Intensity slider resolution: 0..INTENSITY_STEPS maps to 0.0..1.0
INTENSITY_STEPS = 100

# ---------------------------------------------------------------------
# Utility functions
# ---------------------------------------------------------------------

def np_to_qimage(img_bgr: np.ndarray) -> QImage:
    """Convert a BGR image in NumPy format to a QImage in RGB888 format."""
    if img_bgr is None:
        return QImage()
    if img_bgr.ndim == 2:
        img_rgb = cv2.cvtColor(img_bgr, cv2.COLOR_GRAY2RGB)
    else:
        img_rgb = cv2.cvtColor(img_bgr, cv2.COLOR_BGR2RGB)
    h, w, ch = img_rgb.shape
    bytes_per_line = ch * w
    return QImage(img_rgb.data, w, h, bytes_per_line, QImage.Format.Format_RGB888).copy()

# ---------------------------------------------------------------------
# Image view widget
# ---------------------------------------------------------------------

class ImageView(QLabel):
    """
    Shows the filtered image scaled to fit, or a prompt to pick one.
    Clicking anywhere on the view asks for a new picture.
    """

    clicked = Signal()

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setAlignment(Qt.AlignCenter)
        self.setSizePolicy(QSizePolicy.Ignored, QSizePolicy.Ignored)
        self.setCursor(Qt.PointingHandCursor)
        self.setStyleSheet(
            f"background: {COLORS['PLACEHOLDER']}; border-radius: 15px; "
            f"color: {COLORS['TEXT']}; font-weight: bold;"
        )
        self._pixmap: Optional[QPixmap] = None
        self._show_placeholder()

    def set_image(self, img_bgr: Optional[np.ndarray]) -> None:
        if img_bgr is None:
            self._pixmap = None
            self._show_placeholder()
            return
        self._pixmap = QPixmap.fromImage(np_to_qimage(img_bgr))
        self._update_scaled()

    def mousePressEvent(self, event) -> None:
        if event.button() == Qt.MouseButton.LeftButton:
            self.clicked.emit()
        super().mousePressEvent(event)

    def resizeEvent(self, event) -> None:
        super().resizeEvent(event)
        self._update_scaled()

    def _show_placeholder(self) -> None:
        self.clear()
        self.setText("Tap to select a picture")

    def _update_scaled(self) -> None:
        if not self._pixmap:
            return
        scaled = self._pixmap.scaled(
            self.size(), Qt.KeepAspectRatio, Qt.SmoothTransformation
        )
        self.setPixmap(scaled)

# ---------------------------------------------------------------------
# Main application window
# ---------------------------------------------------------------------

class MainWindow(QMainWindow):
    def __init__(self, session: Optional[FilterSession] = None) -> None:
        super().__init__()
        self.setWindowTitle("Insta Filter")
        self.resize(480, 720)
        self.session = session if session is not None else FilterSession(parent=self)

        self._setup_dark_mode()
        self._init_ui()

        self.session.image_changed.connect(self.image_view.set_image)
        self.session.sliders_changed.connect(self._on_sliders_changed)
        self._on_sliders_changed(self.session.show_intensity, self.session.show_radius)
        self.image_view.set_image(self.session.derived)

    # -----------------------------------------------------------------
    # Theme configuration
    # -----------------------------------------------------------------

    def _setup_dark_mode(self) -> None:
        QApplication.setStyle(QStyleFactory.create("Fusion"))

        palette = QPalette()
        palette.setColor(QPalette.Window, QColor(COLORS["BACKGROUND"]))
        palette.setColor(QPalette.WindowText, QColor(COLORS["TEXT"]))
        palette.setColor(QPalette.Base, QColor(COLORS["SECONDARY_BACKGROUND"]))
        palette.setColor(QPalette.Text, QColor(COLORS["TEXT"]))
        palette.setColor(QPalette.Button, QColor(COLORS["SECONDARY_BACKGROUND"]))
        palette.setColor(QPalette.ButtonText, QColor(COLORS["TEXT"]))
        palette.setColor(QPalette.Highlight, QColor(COLORS["SUCCESS"]))
        self.setPalette(palette)

        self.setStyleSheet(
            f"""
            QWidget {{ color: {COLORS['TEXT']}; background-color: {COLORS['BACKGROUND']}; }}
            QPushButton {{
                background-color: {COLORS['SECONDARY_BACKGROUND']};
                border: 1px solid #3a3a3a;
                border-radius: 6px;
                padding: 6px 10px;
            }}
            QPushButton:hover {{
                border-color: #5a5a5a;
            }}
            QPushButton:pressed {{
                background-color: #1b1b1b;
            }}
            QSlider::groove:horizontal {{
                height: 6px;
                background: {COLORS['SECONDARY_BACKGROUND']};
                border: 1px solid #333333;
                border-radius: 3px;
            }}
            QSlider::handle:horizontal {{
                width: 14px;
                height: 14px;
                margin: -5px 0;
                border-radius: 7px;
                background: {COLORS['SUCCESS']};
            }}
            QLabel {{
                background: transparent;
            }}
            """
        )

    # -----------------------------------------------------------------
    # UI construction
    # -----------------------------------------------------------------

    def _init_ui(self) -> None:
        """
        Image area on top, one row per parameter slider, then the filter
        and save buttons.
        """
        central_widget = QWidget()
        layout = QVBoxLayout(central_widget)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.setSpacing(8)
        self.setCentralWidget(central_widget)

        self.image_view = ImageView()
        self.image_view.clicked.connect(self.open_image_dialog)
        layout.addWidget(self.image_view, 1)

        self.intensity_row, self.intensity_slider = self._slider_row(
            "Intensity", INTENSITY_STEPS, round(self.session.intensity * INTENSITY_STEPS)
        )
        self.intensity_slider.valueChanged.connect(self._on_intensity_changed)
        layout.addWidget(self.intensity_row)

        self.radius_row, self.radius_slider = self._slider_row(
            "Radius", int(RADIUS_MAX), round(self.session.radius)
        )
        self.radius_slider.valueChanged.connect(self._on_radius_changed)
        layout.addWidget(self.radius_row)

        buttons = QHBoxLayout()
        self.btn_filter = QPushButton("Change Filter")
        self.btn_filter.clicked.connect(self.show_filter_menu)
        buttons.addWidget(self.btn_filter)
        buttons.addStretch(1)
        self.btn_save = QPushButton("Save")
        self.btn_save.clicked.connect(self.save_image)
        buttons.addWidget(self.btn_save)
        layout.addLayout(buttons)

        self._create_actions()

    def _slider_row(self, title: str, maximum: int, value: int):
        row = QWidget()
        row_layout = QHBoxLayout(row)
        row_layout.setContentsMargins(0, 0, 0, 0)
        label = QLabel(title)
        label.setFixedWidth(70)
        row_layout.addWidget(label)
        slider = QSlider(Qt.Horizontal)
        slider.setRange(0, maximum)
        slider.setValue(value)
        # Every value change re-renders; commit drags on release only
        slider.setTracking(False)
        row_layout.addWidget(slider, 1)
        return row, slider

    def _create_actions(self) -> None:
        """Register keyboard shortcuts for common actions."""
        open_act = QAction("Open…", self)
        open_act.setShortcut(QKeySequence.Open)
        open_act.triggered.connect(self.open_image_dialog)

        save_act = QAction("Save…", self)
        save_act.setShortcut(QKeySequence.Save)
        save_act.triggered.connect(self.save_image)

        self.addAction(open_act)
        self.addAction(save_act)

    def _build_filter_menu(self) -> QMenu:
        menu = QMenu("Select a filter", self)
        for kind, spec in FILTER_SPECS.items():
            action = menu.addAction(spec.title)
            action.setCheckable(True)
            action.setChecked(kind == self.session.kind)
        menu.addSeparator()
        menu.addAction("Cancel")
        menu.triggered.connect(self._on_filter_action)
        return menu

    def _on_filter_action(self, action: QAction) -> None:
        kind = filter_for_title(action.text())
        if kind is None:
            # Cancel
            return
        self.session.select_filter(kind)

    # -----------------------------------------------------------------
    # File operations
    # -----------------------------------------------------------------

    def open_image_dialog(self) -> None:
        """
        Prompt the user to select an image file and load it into the session.
        """
        path, _ = QFileDialog.getOpenFileName(self, "Open Image", "", IMAGE_FILE_TYPES)
        if not path:
            return
        img = read_image(path)
        if img is None:
            QMessageBox.warning(self, "Open Image", "Failed to open image.")
            return
        logger.info(f"Picked {path}")
        self.session.load_source(img)

    def save_image(self) -> None:
        """Save the filtered image to the Pictures folder."""
        if not self.session.save(self._on_save_success, self._on_save_error):
            QMessageBox.information(self, "Save", "No image to save yet.")

    def _on_save_success(self, path: str) -> None:
        QMessageBox.information(self, "Saved!", f"Image saved to:\n{path}")

    def _on_save_error(self, message: str) -> None:
        QMessageBox.warning(self, "Save error", message)

    # -----------------------------------------------------------------
    # Editing workflow
    # -----------------------------------------------------------------

    def show_filter_menu(self) -> None:
        menu = self._build_filter_menu()
        menu.exec(self.btn_filter.mapToGlobal(self.btn_filter.rect().bottomLeft()))

    def _on_intensity_changed(self, value: int) -> None:
        self.session.set_intensity(value / INTENSITY_STEPS)

    def _on_radius_changed(self, value: int) -> None:
        self.session.set_radius(float(value))

    def _on_sliders_changed(self, show_intensity: bool, show_radius: bool) -> None:
        self.intensity_row.setVisible(show_intensity)
        self.radius_row.setVisible(show_radius)


# ---------------------------------------------------------------------
# Application entry point
# ---------------------------------------------------------------------

def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = QApplication(sys.argv)
    win = MainWindow()
    win.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
