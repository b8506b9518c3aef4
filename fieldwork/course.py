import logging

from fieldwork.center import CenterGenerator
from fieldwork.geometry import get_buffer_quad_segments
from fieldwork.headlands import HeadlandRingGenerator
from fieldwork.islands import IslandRouter, setup_and_sort_islands

"""
Single Vehicle Fieldwork Course
-
The building blocks of a course on one field: headland rings around the perimeter, up/down rows in the center, and the
routing of both around islands. A course for a group of vehicles is assembled from these building blocks.
"""


class FieldworkCourse:
    def __init__(self, context, boundary, obstacles=(), logger=None):
        self.context = context
        self.boundary = boundary
        self.obstacles = list(obstacles)
        self.logger = logger if logger is not None else logging.getLogger(__name__)

        self.quad_segs = get_buffer_quad_segments(context.turning_radius)
        self.headlands = list()
        self.islands = list()
        self.center_path = None
        self.errors = list()

        self.ring_generator = HeadlandRingGenerator(
            boundary,
            context.get_headland_working_width(),
            context.headland_clockwise,
            self.quad_segs,
        )
        self.island_router = IslandRouter(list(), context.headland_clockwise)

    @property
    def n_headlands(self):
        return len(self.headlands)

    def generate_headlands(self):
        self.headlands = self.ring_generator.generate(self.context.n_headlands)
        self.errors = self.errors + self.ring_generator.errors
        return self.headlands

    def setup_and_sort_islands(self):
        self.islands = setup_and_sort_islands(
            self.boundary,
            self.obstacles,
            self.context.working_width,
            self.quad_segs,
        )
        self.island_router.islands = self.islands
        self.logger.debug(
            "Found %d island(s), %d big",
            len(self.islands),
            len(self.island_router.big_islands()),
        )
        return self.islands

    def route_headlands_around_big_islands(self):
        self.headlands = self.island_router.route_headlands_around_big_islands(
            self.headlands
        )

    # small islands on the headlands are always bypassed, whatever bypass_islands is set to
    def route_headlands_around_small_islands(self, paths):
        routed = self.island_router.route_paths_around_small_islands(paths)
        self.collect_router_errors()
        return routed

    # returns the point where the center path ends
    def generate_center(self, start_location=None):
        generator = CenterGenerator(self.context)
        self.center_path, end_point = generator.generate(
            self.ring_generator.get_center_polygon(), start_location
        )
        return end_point

    def get_center_path(self):
        return self.center_path

    def bypass_small_islands_in_center(self):
        self.center_path = self.island_router.bypass_small_islands_in_center(
            self.center_path
        )
        self.collect_router_errors()

    def circle_big_islands(self):
        self.center_path = self.island_router.circle_big_islands(self.center_path)
        self.collect_router_errors()

    def collect_router_errors(self):
        self.errors = self.errors + self.island_router.errors
        self.island_router.errors = list()
