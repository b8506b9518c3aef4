from copy import copy
from math import dist as dist_2d

from shapely import LineString

from fieldwork.geometry import get_angle

"""
Path Structures
-
A course is a sequence of waypoints. Each waypoint carries attributes describing which part of the course it belongs to,
and once the properties of the whole path are calculated, its distance along the path and its heading.
"""


class WaypointAttributes:
    def __init__(
        self,
        headland_number=None,
        row_number=None,
        row_start=False,
        row_end=False,
        is_connecting=False,
        island_bypass=False,
        island_circle_id=None,
    ):
        # 1-based ring index, ring 1 being the outermost
        self.headland_number = headland_number
        self.row_number = row_number
        self.row_start = row_start
        self.row_end = row_end

        # part of a transition from one headland ring to the next
        self.is_connecting = is_connecting

        self.island_bypass = island_bypass
        self.island_circle_id = island_circle_id

    def is_headland(self):
        return self.headland_number is not None

    def is_center(self):
        return self.row_number is not None

    def as_dict(self):
        return {
            "headlandNumber": self.headland_number,
            "rowNumber": self.row_number,
            "rowStart": self.row_start,
            "rowEnd": self.row_end,
            "isConnecting": self.is_connecting,
            "islandBypass": self.island_bypass,
            "islandCircleId": self.island_circle_id,
        }


class Waypoint:
    def __init__(self, x, y, attributes=None):
        self.x = x
        self.y = y
        self.attributes = attributes if attributes is not None else WaypointAttributes()

        # set by Path.calculate_properties()
        self.index = None
        self.distance = None
        self.yaw = None

    @property
    def coords(self):
        return (self.x, self.y)

    # copy with independent attributes, so that the copy can be altered without touching the original path
    def clone(self):
        return Waypoint(self.x, self.y, copy(self.attributes))

    def __repr__(self):
        return f"Waypoint({self.x:.2f}, {self.y:.2f})"


class Path:
    def __init__(self, waypoints=None):
        self.waypoints = list(waypoints) if waypoints is not None else list()

    def __len__(self):
        return len(self.waypoints)

    def __iter__(self):
        return iter(self.waypoints)

    def __getitem__(self, i):
        return self.waypoints[i]

    def append(self, waypoint):
        self.waypoints.append(waypoint)

    # append copies of all waypoints of another path, the other path is never changed
    def append_many(self, other):
        for waypoint in other:
            self.waypoints.append(waypoint.clone())

    def start(self):
        return self.waypoints[0] if self.waypoints else None

    def end(self):
        return self.waypoints[-1] if self.waypoints else None

    def coords(self):
        return [waypoint.coords for waypoint in self.waypoints]

    def to_line_string(self):
        return LineString(self.coords())

    @property
    def length(self):
        total = 0
        for i in range(1, len(self.waypoints)):
            total = total + dist_2d(self.waypoints[i - 1].coords, self.waypoints[i].coords)
        return total

    # calculate the navigation properties of every waypoint over the whole path, once the path is complete
    def calculate_properties(self):
        distance = 0
        for i, waypoint in enumerate(self.waypoints):
            if i > 0:
                distance = distance + dist_2d(self.waypoints[i - 1].coords, waypoint.coords)
            waypoint.index = i
            waypoint.distance = distance

            if i < len(self.waypoints) - 1:
                waypoint.yaw = get_angle(waypoint.coords, self.waypoints[i + 1].coords)
            elif i > 0:
                # last waypoint keeps the heading it was approached with
                waypoint.yaw = self.waypoints[i - 1].yaw
            else:
                waypoint.yaw = 0
