"""Shared fixtures for course generation tests."""

import pytest
from shapely import box

from fieldwork.context import FieldworkContextBuilder


def make_builder(**overrides):
    """Build a context builder for a 2 vehicle group, with any setting overridden."""
    settings = dict(
        n_vehicles=2,
        n_headlands=4,
        working_width=6,
        position_in_group=-1,
        headland_first=True,
        bypass_islands=False,
        start_location=(0, 0),
        turning_radius=5,
    )
    settings.update(overrides)
    return FieldworkContextBuilder(**settings)


@pytest.fixture
def builder_factory():
    return make_builder


@pytest.fixture
def field():
    """A 200 m x 120 m rectangular field with its corner at the origin."""
    return box(0, 0, 200, 120)
