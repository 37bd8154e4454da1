import pytest

from mandelview import EngineConfig, FractalEngine, PlaneBounds


@pytest.fixture
def small_engine():
    """A quick engine over the default bounds on a 64x48 canvas."""

    return FractalEngine(64, 48, config=EngineConfig(max_iterations=50, downsample=2, band_rows=8))


@pytest.fixture
def symmetric_engine():
    return FractalEngine(200, 200, PlaneBounds(-1.0, 1.0, -1.0, 1.0), EngineConfig(max_iterations=100))
