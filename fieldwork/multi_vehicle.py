"""
A fieldwork course for multiple vehicles working a field together as a group.

The center is generated once with the combined working width of all vehicles, the same way for any size of group, and
that row pattern is shared by the group.

Headlands are generated at the working width of a single vehicle, then distributed between the vehicles: each vehicle
gets every n-th ring, and its rings are connected into a single continuous headland path for that vehicle.
"""
import logging
from math import ceil

from fieldwork.context import valid_positions
from fieldwork.course import FieldworkCourse
from fieldwork.errors import ErrorType, GenerationError
from fieldwork.headlands import (
    connect_headlands_from_inside,
    connect_headlands_from_outside,
)
from fieldwork.path import Path


# the number of headlands must be a multiple of the number of vehicles, with at least one ring for every vehicle
def normalise_headland_count(n_headlands, n_vehicles):
    if n_headlands % n_vehicles == 0 and n_headlands >= n_vehicles:
        return n_headlands
    if n_headlands < n_vehicles:
        return n_vehicles
    return ceil(n_headlands / n_vehicles) * n_vehicles


# round robin the rings between the vehicles: vehicle v gets rings v, v + n, v + 2n... keeping their original order
def partition_headlands(headlands, n_vehicles):
    return [list(headlands[v::n_vehicles]) for v in range(n_vehicles)]


# map the signed position of a vehicle in the group to the 1-based index of its set of headlands
# negative positions are to the left, positive to the right. For example, -2 is the second vehicle to the left (so there
# are at least 4 vehicles in the group) and 0 is the vehicle in the middle of a group with an odd number of vehicles
def position_to_headland_index(position, n_vehicles):
    if position not in valid_positions(n_vehicles):
        raise GenerationError(
            ErrorType.BAD_INPUT_DATA,
            f"Position {position} is not valid for a group of {n_vehicles} vehicles.",
        )
    if n_vehicles % 2 == 0:
        # even number of vehicles, there is no 0 position
        if position < 0:
            return position + n_vehicles // 2 + 1
        else:
            return position + n_vehicles // 2
    else:
        return position + n_vehicles // 2 + 1


class FieldworkCourseMultiVehicle:
    def __init__(self, context_builder, boundary, obstacles=(), logger=None):
        self.logger = logger if logger is not None else logging.getLogger(__name__)

        n_vehicles = context_builder.n_vehicles
        context_builder.set_center_row_spacing(context_builder.working_width * n_vehicles)
        context_builder.set_center_row_width_for_adjustment(
            context_builder.working_width * n_vehicles
        )

        # invalid counts are left as they are to be rejected when the context is built
        if n_vehicles >= 1 and context_builder.n_headlands >= 0:
            n_headlands = normalise_headland_count(context_builder.n_headlands, n_vehicles)
            if n_headlands != context_builder.n_headlands:
                self.logger.debug(
                    "Number of headlands (%d) adjusted to %d, to be a multiple of the number of vehicles (%d)",
                    context_builder.n_headlands,
                    n_headlands,
                    n_vehicles,
                )
                context_builder.set_headlands(n_headlands)

        # nothing is generated before the settings are validated and frozen
        self.context = context_builder.build()

        self.course = FieldworkCourse(self.context, boundary, obstacles, self.logger)

        # headland path of each vehicle, the path for headland index v is at v - 1
        self.headland_paths = [None] * self.context.n_vehicles
        self.path = None

        self.logger.debug("### Generating headlands around the field perimeter ###")
        self.course.generate_headlands()
        self.logger.debug("### Setting up islands ###")
        self.course.setup_and_sort_islands()

        if self.context.bypass_islands:
            self.course.route_headlands_around_big_islands()

        if self.context.headland_first:
            # connect the headlands first as the center needs to start where the headlands finish
            self.logger.debug(
                "### Connecting headlands (%d) from the outside towards the inside ###",
                self.course.n_headlands,
            )
            for v, headlands in enumerate(self.get_partitions()):
                self.headland_paths[v] = connect_headlands_from_outside(
                    headlands,
                    self.context.start_location,
                    self.context.get_headland_working_width(),
                    self.context.turning_radius,
                )
            self.headland_paths = self.course.route_headlands_around_small_islands(
                self.headland_paths
            )
            self.logger.debug("### Generating up/down rows ###")
            self.course.generate_center(self.headland_paths[0].end().coords)
        else:
            # here, make the center first as we want to start on the headlands where the center was finished
            self.logger.debug("### Generating up/down rows ###")
            end_of_last_row = self.course.generate_center()
            if end_of_last_row is None:
                end_of_last_row = self.context.start_location
            self.logger.debug(
                "### Connecting headlands (%d) from the inside towards the outside ###",
                self.course.n_headlands,
            )
            for v, headlands in enumerate(self.get_partitions()):
                self.headland_paths[v] = connect_headlands_from_inside(
                    headlands,
                    end_of_last_row,
                    self.context.get_headland_working_width(),
                    self.context.turning_radius,
                )
            self.headland_paths = self.course.route_headlands_around_small_islands(
                self.headland_paths
            )

        if self.context.bypass_islands:
            self.course.bypass_small_islands_in_center()
            self.logger.debug(
                "### Bypassing big islands in the center: create path around them ###"
            )
            self.course.circle_big_islands()

    @property
    def headlands(self):
        return self.course.headlands

    @property
    def errors(self):
        return self.course.errors

    def get_partitions(self):
        return partition_headlands(self.course.headlands, self.context.n_vehicles)

    def position_to_headland_index(self, position):
        return position_to_headland_index(position, self.context.n_vehicles)

    def get_headland_path(self, position):
        headland_ix = self.position_to_headland_index(position)
        self.logger.debug("Getting headland %d for position %d", headland_ix, position)
        return self.headland_paths[headland_ix - 1]

    def get_center_path(self):
        return self.course.get_center_path()

    # a continuous path covering the entire field, that the vehicle at context.position_in_group follows to complete
    # its work. The waypoints of the path carry attributes with additional navigation information for the vehicle.
    def get_path(self):
        if self.path is None:
            self.path = Path()
            if self.context.headland_first:
                self.path.append_many(self.get_headland_path(self.context.position_in_group))
                self.path.append_many(self.get_center_path())
            else:
                self.path.append_many(self.get_center_path())
                self.path.append_many(self.get_headland_path(self.context.position_in_group))
            self.path.calculate_properties()
        return self.path
