from math import atan2, ceil, pi

import dubins
from shapely import LineString, Point, Polygon
from shapely.geometry.polygon import orient
from shapely.ops import substring

"""
General Geometric Config
"""


# tolerance allowed in all boundary tests to account for mathematical imprecision of geometric functions
geometric_precision_error_m = 0.02

# tolerance distance to simplify headland rings to during processing
processing_simplification_precision_m = 0.015

# an extra simplification done at a different tolerance before returning, to reduce output data size
final_simplification_precision_m = 0.05

# even if it can be simplified, to avoid distortions on long straight lines caused by differing projection systems, limit the min distance between points on the final output
max_point_interval_m = 100


"""
General Path Generation Config
"""


# point precision distance to generate dubins paths at, and to approximate arcs at when buffering
path_generation_precision_m = 0.5


"""
Basic Utility Functions
"""


# check if equal with tolerance to handle floating point error
def approx_equals(a, b, tol=0.001):
    if abs(a - b) <= tol:
        return True
    else:
        return False


# check if equal with tolerance to handle floating point error
def point_approx_equals(p1, p2, tol=0.001):
    return approx_equals(p1[0], p2[0], tol) and approx_equals(p1[1], p2[1], tol)


def normalise_angle(angle):
    if angle < -pi:
        angle = angle + 2 * pi
    elif angle > pi:
        angle = angle - 2 * pi
    return angle


def get_angle(p1, p2):
    return normalise_angle(atan2((p2[1] - p1[1]), (p2[0] - p1[0])))


# buffering functions are configured with the number of segments with which to approximate a circle quadrant
# calculate the lowest number required to achieve the path generation precision in the resulting arc, when buffering by the turning radius
# number of segments = (circumference / 4) / path generation precision = (pi * radius / 2) / path generation precision
def get_buffer_quad_segments(turning_radius):
    return max(1, ceil(turning_radius * (pi / 2) / path_generation_precision_m))


# orient a polygon to the requested winding and return its exterior as a closed LineString ring
def to_line_string(polygon, clockwise=True):
    polygon = orient(polygon, sign=-1.0 if clockwise else 1.0)
    return LineString(polygon.exterior.coords).simplify(
        processing_simplification_precision_m
    )


# given the result of a buffer or difference, split it into its largest polygon and the list of all other polygons
def split_off_largest(geometry):
    if isinstance(geometry, Polygon):
        return geometry, list()

    polygons = [geom for geom in geometry.geoms if isinstance(geom, Polygon)]
    polygons = sorted(polygons, key=lambda geom: geom.area, reverse=True)
    return polygons[0], polygons[1:]


"""
Ring Functions
-
Headlands and island outlines are processed as closed coordinate rings, implemented with LineStrings.
A ring should always be contiguous around, with the last coordinate equalling the first coordinate.
"""


# shuffle a ring to begin (and end) at the given point, inserting it as a new coord if it isn't already one
def loop_from(ring, point):
    dist = ring.project(Point(point))
    if approx_equals(dist, 0) or approx_equals(dist, ring.length):
        return list(ring.coords)

    # the end of the first part is the ring join coord, which is also the start of the second part, so drop the repeat
    return (
        list(substring(ring, dist, ring.length).coords)
        + list(substring(ring, 0, dist).coords)[1:]
    )


# get the coords of the shorter way around a ring between 2 points on it, in the direction p1 -> p2
def get_arc_between(ring, p1, p2):
    looped = LineString(loop_from(ring, p1))
    along = looped.project(Point(p2))
    if approx_equals(along, 0) or approx_equals(along, looped.length):
        return [tuple(p1), tuple(p2)]

    if along <= looped.length / 2:
        return list(substring(looped, 0, along).coords)

    # the other way around is shorter, which is the tail of the loop travelled backwards
    backwards = list(substring(looped, along, looped.length).coords)
    backwards.reverse()
    return backwards


# get the heading of a ring at the given point, in the ring's direction of travel
def get_ring_heading_at(ring, point):
    dist = ring.project(Point(point))
    ahead = min(dist + path_generation_precision_m, ring.length)
    behind = ahead - path_generation_precision_m
    return get_angle(
        ring.interpolate(behind).coords[0],
        ring.interpolate(ahead).coords[0],
    )


# add interpolated points to a line such that the distance between any 2 consecutive points is no greater than the specified max interval
def interpolate_coords_at_interval(coords, max_interval):
    if len(coords) < 2:
        return [tuple(coord) for coord in coords]

    new_points = [tuple(coords[0])]
    for i in range(1, len(coords)):
        segment = LineString([coords[i - 1], coords[i]])

        # split each original segment evenly into as many pieces as needed to stay within the interval
        pieces = ceil(segment.length / max_interval)
        for piece in range(1, pieces):
            new_points.append(
                segment.interpolate(piece / pieces, normalized=True).coords[0]
            )
        new_points.append(tuple(coords[i]))

    return new_points


"""
Dubins Functions
"""


# sample a dubins path between 2 poses, the destination point is not included
def get_dubins_path(p1, angle1, p2, angle2, radius):
    path = dubins.shortest_path(
        (
            *p1,
            angle1,
        ),
        (
            *p2,
            angle2,
        ),
        radius,
    )
    path_coords, _ = path.sample_many(path_generation_precision_m)
    return [(coord[0], coord[1]) for coord in path_coords]
