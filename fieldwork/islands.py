import logging
from copy import copy
from math import dist as dist_2d

from shapely import LineString, Point, Polygon
from shapely.geometry.polygon import orient

from fieldwork.errors import Error, ErrorType, GenerationError
from fieldwork.geometry import (
    approx_equals,
    get_arc_between,
    loop_from,
    split_off_largest,
    to_line_string,
)
from fieldwork.headlands import Headland
from fieldwork.path import Path, Waypoint, WaypointAttributes

logger = logging.getLogger(__name__)

"""
Island Config
"""


# an island is too big to simply drive around in a short detour if it's wider than this many working widths
# big islands get their own circuit driven around them instead
max_rows_to_bypass_island = 5


class Island:
    def __init__(self, island_id, polygon, width, quad_segs):
        self.id = island_id
        self.polygon = polygon

        # the vehicle path can come no closer than half a working width to the island
        # holes inside an island can't be reached, so only the exterior counts
        outline = polygon.buffer(width / 2, quad_segs=quad_segs)
        self.outline = orient(Polygon(outline.exterior.coords))
        self.ring = LineString(self.outline.exterior.coords)
        self.is_big = self.is_too_big_to_bypass(width)

    def is_too_big_to_bypass(self, width):
        rectangle = self.polygon.minimum_rotated_rectangle
        if not isinstance(rectangle, Polygon):
            return False
        coords = rectangle.exterior.coords
        short_side = min(dist_2d(coords[0], coords[1]), dist_2d(coords[1], coords[2]))
        return short_side > max_rows_to_bypass_island * width

    def __repr__(self):
        return f"Island({self.id}, {'big' if self.is_big else 'small'})"


# keep only the obstacles within the field and number them from the largest down
def setup_and_sort_islands(field_boundary, obstacles, width, quad_segs):
    inside = [obstacle for obstacle in obstacles if field_boundary.intersects(obstacle)]
    inside = sorted(inside, key=lambda obstacle: obstacle.area, reverse=True)
    return [
        Island(island_id, polygon, width, quad_segs)
        for island_id, polygon in enumerate(inside, start=1)
    ]


"""
Path Detour Functions
-
A path is diverted around an island by replacing each stretch within the island outline with the shorter way around the outline.
"""


# get all points of an intersection result, for collinear overlaps this is both ends of the overlap
def get_points(geometry):
    if geometry.is_empty:
        return list()
    if isinstance(geometry, Point):
        return [geometry.coords[0]]
    if isinstance(geometry, LineString):
        return [geometry.coords[0], geometry.coords[-1]]
    points = list()
    for geom in geometry.geoms:
        points = points + get_points(geom)
    return points


def bypass_attributes(attributes):
    bypass = copy(attributes)
    bypass.island_bypass = True
    bypass.row_start = False
    bypass.row_end = False
    return bypass


# insert a waypoint everywhere the path crosses the ring, so every segment afterwards is either entirely inside or outside
def insert_crossings(path, ring):
    new_path = Path()
    for i, waypoint in enumerate(path):
        if i > 0:
            previous = path[i - 1]
            segment = LineString([previous.coords, waypoint.coords])
            if segment.length > 0:
                crossings = sorted(
                    get_points(segment.intersection(ring)),
                    key=lambda coord: segment.project(Point(coord)),
                )
                for coord in crossings:
                    dist = segment.project(Point(coord))
                    if approx_equals(dist, 0) or approx_equals(dist, segment.length):
                        continue
                    attributes = copy(previous.attributes)
                    attributes.row_start = False
                    attributes.row_end = False
                    new_path.append(Waypoint(coord[0], coord[1], attributes))
        new_path.append(waypoint)
    return new_path


# returns the diverted path, the indices in it where each detour begins, and whether any stretch could not be diverted
def detour_around(path, island):
    path = insert_crossings(path, island.ring)
    n = len(path)
    inside = list()
    for i in range(n - 1):
        midpoint = LineString([path[i].coords, path[i + 1].coords]).interpolate(
            0.5, normalized=True
        )
        inside.append(island.outline.contains(midpoint))

    result = Path()
    detour_starts = list()
    failed = False
    if n > 0:
        result.append(path[0])

    i = 0
    while i < n - 1:
        if not inside[i]:
            result.append(path[i + 1])
            i = i + 1
            continue

        # find the whole stretch within the island, from entry waypoint i to exit waypoint j
        j = i
        while j < n - 1 and inside[j]:
            j = j + 1

        if i == 0 or j == n - 1:
            # path begins or ends within the island, there is no way around from here
            failed = True
            for k in range(i + 1, j + 1):
                result.append(path[k])
            i = j
            continue

        detour_starts.append(len(result) - 1)
        arc = get_arc_between(island.ring, path[i].coords, path[j].coords)
        for coord in arc[1:-1]:
            result.append(
                Waypoint(coord[0], coord[1], bypass_attributes(path[i].attributes))
            )
        result.append(path[j])
        i = j

    return result, detour_starts, failed


class IslandRouter:
    def __init__(self, islands, clockwise=True):
        self.islands = islands
        self.clockwise = clockwise
        self.errors = list()

    def big_islands(self):
        return [island for island in self.islands if island.is_big]

    def small_islands(self):
        return [island for island in self.islands if not island.is_big]

    def record_failed_bypass(self, island, description):
        logger.warning("Could not bypass island %d on %s", island.id, description)
        self.errors.append(
            Error(
                ErrorType.ISLAND_WARNING,
                f"WARNING: {description} begins or ends within island {island.id} and could not be diverted around it.",
                geometry=[island.polygon],
            )
        )

    # cut each ring touched by a big island back to the island outline, keeping ring numbers
    def route_headlands_around_big_islands(self, headlands):
        routed = list()
        for headland in headlands:
            ring = headland.ring
            for island in self.big_islands():
                if not island.outline.intersects(ring):
                    continue
                remaining = Polygon(ring.coords).difference(island.outline)
                if remaining.is_empty:
                    raise GenerationError(
                        ErrorType.INNER_HEADLAND_FAILURE,
                        f"Headland {headland.number} lies entirely within island {island.id}.",
                    )
                largest, _ = split_off_largest(remaining)
                ring = to_line_string(largest, self.clockwise)
                logger.debug(
                    "Routed headland %d around big island %d", headland.number, island.id
                )
            routed.append(Headland(headland.number, ring))
        return routed

    def bypass_islands(self, path, islands, description):
        for island in islands:
            path, _, failed = detour_around(path, island)
            if failed:
                self.record_failed_bypass(island, description)
        return path

    def route_paths_around_small_islands(self, paths):
        return [
            self.bypass_islands(path, self.small_islands(), f"headland path {v}")
            for v, path in enumerate(paths, start=1)
        ]

    def bypass_small_islands_in_center(self, path):
        return self.bypass_islands(path, self.small_islands(), "center path")

    # divert the center around big islands, and the first time the path reaches each one, drive a full circuit around it
    def circle_big_islands(self, path):
        for island in self.big_islands():
            path, detour_starts, failed = detour_around(path, island)
            if failed:
                self.record_failed_bypass(island, "center path")
            if len(detour_starts) == 0:
                logger.debug("Center path does not reach big island %d", island.id)
                continue

            entry_idx = detour_starts[0]
            entry = path[entry_idx]
            circuit = [
                Waypoint(
                    coord[0],
                    coord[1],
                    WaypointAttributes(island_circle_id=island.id),
                )
                for coord in loop_from(island.ring, entry.coords)[1:]
            ]
            path = Path(
                path.waypoints[: entry_idx + 1]
                + circuit
                + path.waypoints[entry_idx + 1 :]
            )
            logger.debug(
                "Circling big island %d, %d waypoints", island.id, len(circuit)
            )
        return path
