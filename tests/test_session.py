import numpy as np
import pytest

from effects import INTENSITY, RADIUS, SCALE, FilterKind, render
from session import DEFAULT_INTENSITY, DEFAULT_RADIUS, RADIUS_MAX, FilterSession


@pytest.fixture
def session(store) -> FilterSession:
    return FilterSession(store=store)


def test_starts_with_sepia_and_no_image(session):
    assert session.kind is FilterKind.SEPIA_TONE
    assert session.intensity == DEFAULT_INTENSITY
    assert session.radius == DEFAULT_RADIUS
    assert session.derived is None
    assert not session.has_source
    assert session.show_intensity and not session.show_radius


@pytest.mark.parametrize(
    "kind, show_intensity, show_radius",
    [
        (FilterKind.CRYSTALLIZE, False, True),
        (FilterKind.EDGES, True, False),
        (FilterKind.GAUSSIAN_BLUR, False, True),
        (FilterKind.PIXELLATE, True, False),
        (FilterKind.SEPIA_TONE, True, False),
        (FilterKind.UNSHARP_MASK, True, True),
        (FilterKind.VIGNETTE, True, True),
    ],
)
def test_slider_flags_follow_filter(session, noise_image, kind, show_intensity, show_radius):
    seen = []
    session.sliders_changed.connect(lambda i, r: seen.append((i, r)))
    session.load_source(noise_image)
    session.select_filter(kind)
    assert (session.show_intensity, session.show_radius) == (show_intensity, show_radius)
    assert seen[-1] == (show_intensity, show_radius)


def test_parameters_map_onto_accepted_inputs(session):
    session.set_intensity(0.4)
    session.set_radius(30)

    session.select_filter(FilterKind.PIXELLATE)
    assert session.parameters() == {SCALE: pytest.approx(4.0)}

    session.select_filter(FilterKind.GAUSSIAN_BLUR)
    assert session.parameters() == {RADIUS: 30.0}

    session.select_filter(FilterKind.UNSHARP_MASK)
    assert session.parameters() == {INTENSITY: 0.4, RADIUS: 30.0}


def test_derived_matches_engine(session, noise_image):
    session.load_source(noise_image)
    session.select_filter(FilterKind.GAUSSIAN_BLUR)
    session.set_radius(4)
    expected = render(FilterKind.GAUSSIAN_BLUR, noise_image, {RADIUS: 4.0})
    assert np.array_equal(session.derived, expected)


def test_cleared_source_stays_empty(session, noise_image):
    session.load_source(noise_image)
    assert session.derived is not None

    session.load_source(None)
    assert session.derived is None
    session.set_intensity(0.9)
    session.set_radius(12)
    session.select_filter(FilterKind.EDGES)
    session.reprocess()
    assert session.derived is None


def test_image_changed_reports_each_render(session, noise_image):
    images = []
    session.image_changed.connect(images.append)
    session.load_source(noise_image)
    session.load_source(None)
    assert len(images) == 2
    assert images[0] is not None
    assert images[1] is None


def test_repeated_intensity_gives_same_image(session, noise_image):
    session.load_source(noise_image)
    session.set_intensity(0.3)
    once = session.derived.copy()
    session.set_intensity(0.3)
    assert np.array_equal(session.derived, once)


def test_values_survive_filter_switches(session, noise_image):
    session.load_source(noise_image)
    session.set_intensity(0.2)
    session.set_radius(50)
    session.select_filter(FilterKind.GAUSSIAN_BLUR)
    session.select_filter(FilterKind.PIXELLATE)
    session.select_filter(FilterKind.SEPIA_TONE)
    assert session.intensity == 0.2
    assert session.radius == 50


def test_setters_clamp_to_slider_range(session):
    session.set_intensity(1.7)
    session.set_radius(-3)
    assert session.intensity == 1.0
    assert session.radius == 0.0
    session.set_radius(RADIUS_MAX * 2)
    assert session.radius == RADIUS_MAX


def test_new_source_replaces_old(session, noise_image, flat_image):
    session.load_source(noise_image)
    session.load_source(flat_image)
    assert session.source is flat_image
    assert session.derived.shape == flat_image.shape


def test_save_without_image_skips_store(session, store):
    results = []
    assert session.save(results.append, results.append) is False
    assert store.saved == []
    assert results == []


def test_save_hands_derived_image_to_store(session, store, noise_image):
    session.load_source(noise_image)
    saved_paths = []
    errors = []
    assert session.save(saved_paths.append, errors.append) is True
    assert len(store.saved) == 1
    assert store.saved[0] is session.derived
    assert saved_paths == ["/tmp/fake.png"]
    assert errors == []
