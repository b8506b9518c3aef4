import logging

from shapely import Point, Polygon

from fieldwork.errors import AlgorithmError, Error, ErrorType, GenerationError
from fieldwork.geometry import (
    get_dubins_path,
    get_ring_heading_at,
    loop_from,
    point_approx_equals,
    split_off_largest,
    to_line_string,
)
from fieldwork.path import Path, Waypoint, WaypointAttributes

logger = logging.getLogger(__name__)

"""
Headland Connection Config
"""


# when moving from one ring to the next, the transition joins the next ring this many turning radii ahead of the point closest to where it leaves
headland_transition_turn_radius_factor = 2.0


class Headland:
    def __init__(self, number, ring):
        # 1-based ring index, 1 being the outermost
        self.number = number

        # closed LineString, last coord equal to first coord
        self.ring = ring

    @property
    def polygon(self):
        return Polygon(self.ring.coords)

    @property
    def length(self):
        return self.ring.length

    def __repr__(self):
        return f"Headland({self.number})"


"""
Headland Ring Generation
-
Rings are generated by buffering in from the field boundary at a single vehicle working width.
"""


class HeadlandRingGenerator:
    def __init__(self, boundary, headland_working_width, clockwise, quad_segs):
        self.boundary = boundary
        self.width = headland_working_width
        self.clockwise = clockwise
        self.quad_segs = quad_segs
        self.headlands = list()
        self.errors = list()
        self.center_polygon = None

    # buffer in a polygon, keeping only the largest area if it breaks up into several
    def buffer_in(self, polygon, buffer_dist, description):
        buffered = polygon.buffer(-buffer_dist, quad_segs=self.quad_segs)
        if buffered.is_empty:
            return None

        largest, dropped = split_off_largest(buffered)
        if dropped:
            logger.warning(
                "%s split into %d areas, keeping only the largest",
                description,
                len(dropped) + 1,
            )
            self.errors.append(
                Error(
                    ErrorType.MALFORMED_OPERATING_AREA,
                    f"{description} is too narrow in places, {len(dropped)} area(s) cannot be reached and will not be worked.",
                    geometry=dropped,
                )
            )
        return largest

    # generate rings ordered from the outermost (number 1) to the innermost (number n)
    def generate(self, n_headlands):
        self.headlands = list()
        self.errors = list()

        # the path of the first ring is half a working width in from the boundary, every next one a full width further in
        polygon = self.boundary
        buffer_dist = self.width / 2
        for number in range(1, n_headlands + 1):
            polygon = self.buffer_in(polygon, buffer_dist, f"Headland {number}")
            if polygon is None:
                raise GenerationError(
                    ErrorType.INNER_HEADLAND_FAILURE,
                    f"No area remaining to make headland {number} of {n_headlands}.",
                )
            self.headlands.append(
                Headland(number, to_line_string(polygon, self.clockwise))
            )
            logger.debug(
                "Generated headland %d, length %.1f m",
                number,
                self.headlands[-1].length,
            )
            buffer_dist = self.width

        # the center begins where the coverage of the innermost ring ends
        if self.headlands:
            self.center_polygon = self.buffer_in(
                self.headlands[-1].polygon, self.width / 2, "Center"
            )
        else:
            self.center_polygon = self.boundary

        return self.headlands

    def get_center_polygon(self):
        return self.center_polygon


"""
Headland Connection
-
Join an ordered set of rings into a single path, driving each ring a full loop then transitioning to the next.
"""


def make_headland_waypoint(coord, headland_number, is_connecting=False):
    return Waypoint(
        coord[0],
        coord[1],
        WaypointAttributes(headland_number=headland_number, is_connecting=is_connecting),
    )


# dubins path from the current position and heading onto the next ring, arriving in the ring's direction of travel
# the landing is never less than a working width ahead
# returns the transition coords and the point on the ring where it lands
def get_transition_to(ring, from_coord, from_heading, width, turning_radius):
    closest_dist = ring.project(Point(from_coord))
    landing_offset = max(headland_transition_turn_radius_factor * turning_radius, width)
    landing_dist = (closest_dist + landing_offset) % ring.length
    landing = ring.interpolate(landing_dist).coords[0]
    landing_heading = get_ring_heading_at(ring, landing)
    transition = get_dubins_path(
        from_coord, from_heading, landing, landing_heading, turning_radius
    )
    return transition, landing


def connect_headlands(headlands, start_location, width, turning_radius):
    if len(headlands) == 0:
        raise AlgorithmError("No headlands to connect.")

    path = Path()

    # enter the first ring at the point closest to the start location
    first_ring = headlands[0].ring
    entry = first_ring.interpolate(first_ring.project(Point(start_location))).coords[0]

    for i, headland in enumerate(headlands):
        loop = loop_from(headland.ring, entry)
        for coord in loop:
            path.append(make_headland_waypoint(coord, headland.number))

        if i == len(headlands) - 1:
            break

        # leave the ring with the heading of its last segment, and join the next one
        next_headland = headlands[i + 1]
        heading = get_ring_heading_at(headland.ring, loop[-1])
        transition, entry = get_transition_to(
            next_headland.ring, loop[-1], heading, width, turning_radius
        )
        for coord in transition:
            # the first sampled coord is the point we are already on
            if point_approx_equals(coord, loop[-1]):
                continue
            path.append(
                make_headland_waypoint(coord, next_headland.number, is_connecting=True)
            )

    return path


# connect rings ordered from the outside in, starting on the outermost ring at the point closest to the start location
def connect_headlands_from_outside(headlands, start_location, width, turning_radius):
    logger.debug(
        "Connecting headlands %s from the outside, working width %.1f m",
        [headland.number for headland in headlands],
        width,
    )
    return connect_headlands(list(headlands), start_location, width, turning_radius)


# connect rings ordered from the outside in, but drive them from the innermost ring outwards starting closest to the start location
def connect_headlands_from_inside(headlands, start_location, width, turning_radius):
    logger.debug(
        "Connecting headlands %s from the inside, working width %.1f m",
        [headland.number for headland in headlands],
        width,
    )
    return connect_headlands(
        list(reversed(headlands)), start_location, width, turning_radius
    )


# list the ring numbers a path drives, in the order it first reaches them
def get_headland_numbers(path):
    numbers = list()
    for waypoint in path:
        number = waypoint.attributes.headland_number
        if number is not None and number not in numbers:
            numbers.append(number)
    return numbers

