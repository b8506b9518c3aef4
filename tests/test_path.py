from math import pi

import pytest
from shapely import LineString

from fieldwork.geometry import (
    get_arc_between,
    interpolate_coords_at_interval,
    loop_from,
)
from fieldwork.path import Path, Waypoint, WaypointAttributes


def make_path(coords):
    return Path([Waypoint(x, y) for x, y in coords])


class TestPath:
    def test_properties(self):
        path = make_path([(0, 0), (10, 0), (10, 10)])
        path.calculate_properties()

        assert [wp.index for wp in path] == [0, 1, 2]
        assert [wp.distance for wp in path] == pytest.approx([0, 10, 20])
        assert [wp.yaw for wp in path] == pytest.approx([0, pi / 2, pi / 2])
        assert path.length == pytest.approx(20)

    def test_single_waypoint(self):
        path = make_path([(5, 5)])
        path.calculate_properties()
        assert path[0].distance == 0
        assert path[0].yaw == 0

    def test_append_many_copies(self):
        original = make_path([(0, 0), (1, 0)])
        path = Path()
        path.append_many(original)
        path[0].attributes.island_bypass = True
        path.calculate_properties()

        assert not original[0].attributes.island_bypass
        assert original[0].distance is None
        assert path[0] is not original[0]

    def test_start_and_end(self):
        assert Path().start() is None
        assert Path().end() is None
        path = make_path([(0, 0), (1, 0), (2, 0)])
        assert path.start().coords == (0, 0)
        assert path.end().coords == (2, 0)

    def test_attributes_as_dict(self):
        attributes = WaypointAttributes(headland_number=2, is_connecting=True)
        assert attributes.is_headland()
        assert not attributes.is_center()
        assert attributes.as_dict() == {
            "headlandNumber": 2,
            "rowNumber": None,
            "rowStart": False,
            "rowEnd": False,
            "isConnecting": True,
            "islandBypass": False,
            "islandCircleId": None,
        }


class TestRingFunctions:
    square = LineString([(0, 0), (0, 10), (10, 10), (10, 0), (0, 0)])

    def test_loop_from_point_on_ring(self):
        loop = loop_from(self.square, (0, 5))
        assert loop[0] == pytest.approx((0, 5))
        assert loop[-1] == pytest.approx((0, 5))
        assert LineString(loop).length == pytest.approx(40)

    def test_loop_from_ring_start(self):
        assert loop_from(self.square, (0, 0)) == list(self.square.coords)

    def test_arc_takes_shorter_way(self):
        arc = get_arc_between(self.square, (0, 5), (5, 10))
        assert LineString(arc).length == pytest.approx(10)

        # against the ring direction
        arc = get_arc_between(self.square, (5, 10), (0, 5))
        assert LineString(arc).length == pytest.approx(10)
        assert arc[0] == pytest.approx((5, 10))
        assert arc[-1] == pytest.approx((0, 5))

    def test_interpolate_at_interval(self):
        coords = interpolate_coords_at_interval([(0, 0), (250, 0), (250, 10)], 100)
        assert len(coords) == 5
        assert coords[1] == pytest.approx((250 / 3, 0))
        assert coords[-1] == (250, 10)
