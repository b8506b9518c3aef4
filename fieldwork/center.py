import logging
from math import ceil, cos, degrees, radians, sin
from math import dist as dist_2d

from shapely import LineString, Polygon
from shapely.affinity import rotate

from fieldwork.geometry import geometric_precision_error_m, get_angle
from fieldwork.path import Path, Waypoint, WaypointAttributes

logger = logging.getLogger(__name__)

"""
Center Generation
-
The center is covered by parallel up/down rows. For a group of vehicles the rows are laid out once at the combined
width of the group, so the row pattern is the same regardless of how many vehicles work the field.
"""


# rotate a single coord around an origin
def rotate_coord(coord, angle, origin):
    dx = coord[0] - origin[0]
    dy = coord[1] - origin[1]
    return (
        origin[0] + dx * cos(angle) - dy * sin(angle),
        origin[1] + dx * sin(angle) + dy * cos(angle),
    )


# collect the LineStrings of an intersection result, which may also hold points where a scan line only touches a corner
def get_lines(geometry):
    if geometry.is_empty:
        return list()
    if isinstance(geometry, LineString):
        return [geometry] if geometry.length > 0 else list()
    lines = list()
    if hasattr(geometry, "geoms"):
        for geom in geometry.geoms:
            lines = lines + get_lines(geom)
    return lines


class CenterGenerator:
    def __init__(self, context):
        self.context = context
        self.row_spacing = context.center_row_spacing
        self.row_width = context.center_row_width_for_adjustment

    # rows run along the configured angle, or along the longest side of the smallest rectangle around the center
    def get_row_angle(self, polygon):
        if self.context.row_angle_deg is not None:
            return radians(float(self.context.row_angle_deg))

        rectangle = polygon.minimum_rotated_rectangle
        if not isinstance(rectangle, Polygon):
            return 0

        coords = rectangle.exterior.coords
        sides = [
            (dist_2d(coords[i], coords[i + 1]), get_angle(coords[i], coords[i + 1]))
            for i in range(2)
        ]
        return max(sides)[1]

    # distances of each row from the bottom of the area, first and last rows are half a width in from the edges
    # if the rows don't fit exactly, the spacing is reduced so the overlap is spread evenly between all rows
    def get_row_offsets(self, height):
        if height - self.row_width <= geometric_precision_error_m:
            return [height / 2]

        n_rows = (
            ceil((height - self.row_width - geometric_precision_error_m) / self.row_spacing)
            + 1
        )
        spacing = (height - self.row_width) / (n_rows - 1)
        return [self.row_width / 2 + i * spacing for i in range(n_rows)]

    # get rows as pairs of (left, right) coords in the rotated frame, in scan order
    def get_rows(self, rotated):
        minx, miny, maxx, maxy = rotated.bounds
        rows = list()
        for offset in self.get_row_offsets(maxy - miny):
            y = miny + offset
            scan_line = LineString([(minx - 1, y), (maxx + 1, y)])

            # a concave center can give more than one row on a single scan line
            pieces = get_lines(scan_line.intersection(rotated))
            pieces = sorted(pieces, key=lambda piece: min(c[0] for c in piece.coords))
            for piece in pieces:
                xs = [coord[0] for coord in piece.coords]
                rows.append(((min(xs), y), (max(xs), y)))
        return rows

    def make_row_coords(self, rows, reverse_order, first_left_to_right):
        ordered = list(reversed(rows)) if reverse_order else list(rows)
        row_coords = list()
        left_to_right = first_left_to_right
        for left, right in ordered:
            row_coords.append((left, right) if left_to_right else (right, left))
            left_to_right = not left_to_right
        return row_coords

    # generate the center path, starting at the row end closest to the start location if one is given
    # returns the path and the point where it ends
    def generate(self, center_polygon, start_location=None):
        if center_polygon is None or center_polygon.is_empty:
            logger.warning("No area left in the center for up/down rows")
            return Path(), start_location

        angle = self.get_row_angle(center_polygon)
        origin = center_polygon.centroid.coords[0]
        rotated = rotate(center_polygon, -angle, origin=origin, use_radians=True)
        rows = self.get_rows(rotated)
        if len(rows) == 0:
            logger.warning("Center is too narrow for any up/down rows")
            return Path(), start_location

        candidates = [
            self.make_row_coords(rows, reverse_order, first_left_to_right)
            for reverse_order in (False, True)
            for first_left_to_right in (True, False)
        ]
        if start_location is None:
            row_coords = candidates[0]
        else:
            row_coords = min(
                candidates,
                key=lambda candidate: dist_2d(
                    rotate_coord(candidate[0][0], angle, origin), start_location
                ),
            )

        path = Path()
        for row_number, (row_start, row_end) in enumerate(row_coords, start=1):
            start_coord = rotate_coord(row_start, angle, origin)
            end_coord = rotate_coord(row_end, angle, origin)
            path.append(
                Waypoint(
                    *start_coord,
                    WaypointAttributes(row_number=row_number, row_start=True),
                )
            )
            path.append(
                Waypoint(
                    *end_coord,
                    WaypointAttributes(row_number=row_number, row_end=True),
                )
            )

        logger.debug(
            "Generated %d rows at %.1f m spacing, angle %.1f°",
            len(row_coords),
            self.row_spacing,
            degrees(angle),
        )
        return path, path.end().coords
