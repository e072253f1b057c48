import numpy as np
import pytest


@pytest.fixture
def noise_image() -> np.ndarray:
    """A 48x64 BGR image of reproducible random pixels."""
    rng = np.random.default_rng(7)
    return rng.integers(0, 256, size=(48, 64, 3), dtype=np.uint8)


@pytest.fixture
def flat_image() -> np.ndarray:
    """A uniform mid-grey 40x40 BGR image."""
    return np.full((40, 40, 3), 128, dtype=np.uint8)


class RecordingStore:
    """Stands in for PhotoStore and remembers what it was asked to save."""

    def __init__(self) -> None:
        self.saved = []

    def save(self, image, on_success, on_error) -> None:
        self.saved.append(image)
        on_success("/tmp/fake.png")


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()
