from dataclasses import dataclass

from pyproj import Proj

from fieldwork.errors import ErrorType, GenerationError


# the signed lateral slots vehicles can take within a group, negative numbers are to the left, positives to the right
# an even number of vehicles has no centre slot, so there is no slot 0
def valid_positions(n_vehicles):
    half = n_vehicles // 2
    if n_vehicles % 2 == 0:
        return list(range(-half, 0)) + list(range(1, half + 1))
    else:
        return list(range(-half, half + 1))


@dataclass(frozen=True)
class FieldworkContext:
    n_vehicles: int
    n_headlands: int
    working_width: float
    position_in_group: int
    headland_first: bool
    bypass_islands: bool
    start_location: tuple
    turning_radius: float
    headland_clockwise: bool = True
    headland_overlap_percent: float = 0
    # None to use the direction of the longest side of the field
    row_angle_deg: float = None
    center_row_spacing: float = None
    center_row_width_for_adjustment: float = None

    def get_headland_working_width(self):
        return self.working_width * (1 - self.headland_overlap_percent / 100)

    def valid_positions(self):
        return valid_positions(self.n_vehicles)


# payload flags must be JSON booleans, a string like "false" is rejected rather than read as true
def get_bool_setting(settings, key, default=None):
    value = settings[key] if default is None else settings.get(key, default)
    if not isinstance(value, bool):
        raise GenerationError(
            ErrorType.BAD_INPUT_DATA,
            f"Setting '{key}' must be true or false, got {value!r}.",
        )
    return value


# collects the settings for a course, then produces an immutable, validated context before any generation begins
class FieldworkContextBuilder:
    def __init__(
        self,
        n_vehicles,
        n_headlands,
        working_width,
        position_in_group,
        headland_first,
        bypass_islands,
        start_location,
        turning_radius,
        headland_clockwise=True,
        headland_overlap_percent=0,
        row_angle_deg=None,
    ):
        self.n_vehicles = n_vehicles
        self.n_headlands = n_headlands
        self.working_width = working_width
        self.position_in_group = position_in_group
        self.headland_first = headland_first
        self.bypass_islands = bypass_islands
        self.start_location = tuple(start_location)
        self.turning_radius = turning_radius
        self.headland_clockwise = headland_clockwise
        self.headland_overlap_percent = headland_overlap_percent
        self.row_angle_deg = row_angle_deg

        # by default the center is laid out for a single vehicle
        self.center_row_spacing = working_width
        self.center_row_width_for_adjustment = working_width

    # read the camelCase settings of an input payload, with the start location already converted to x/y
    @classmethod
    def from_settings(cls, settings, start_location):
        try:
            return cls(
                n_vehicles=int(settings["nVehicles"]),
                n_headlands=int(settings["numHeadlands"]),
                working_width=float(settings["workingWidth"]),
                position_in_group=int(settings["positionInGroup"]),
                headland_first=get_bool_setting(settings, "headlandFirst"),
                bypass_islands=get_bool_setting(settings, "bypassIslands"),
                start_location=start_location,
                turning_radius=float(settings["minPathTurnRadius"]),
                headland_clockwise=get_bool_setting(
                    settings, "headlandClockwise", default=True
                ),
                headland_overlap_percent=float(
                    settings.get("headlandOverlapPercent", 0)
                ),
                row_angle_deg=settings.get("rowAngleDeg"),
            )
        except KeyError as e:
            raise GenerationError(
                ErrorType.BAD_INPUT_DATA, f"Missing setting {e} in payload."
            ) from e

    def set_center_row_spacing(self, spacing):
        self.center_row_spacing = spacing

    def set_center_row_width_for_adjustment(self, width):
        self.center_row_width_for_adjustment = width

    def set_headlands(self, n_headlands):
        self.n_headlands = n_headlands

    def build(self):
        if self.n_vehicles < 1:
            raise GenerationError(
                ErrorType.BAD_INPUT_DATA,
                f"Number of vehicles must be at least 1, got {self.n_vehicles}.",
            )
        if self.n_headlands < 0:
            raise GenerationError(
                ErrorType.BAD_INPUT_DATA,
                f"Number of headlands cannot be negative, got {self.n_headlands}.",
            )
        if self.working_width <= 0:
            raise GenerationError(
                ErrorType.BAD_INPUT_DATA,
                f"Working width must be positive, got {self.working_width}.",
            )
        if self.turning_radius <= 0:
            raise GenerationError(
                ErrorType.BAD_INPUT_DATA,
                f"Turning radius must be positive, got {self.turning_radius}.",
            )
        if not 0 <= self.headland_overlap_percent < 100:
            raise GenerationError(
                ErrorType.BAD_INPUT_DATA,
                f"Headland overlap must be at least 0% and less than 100%, got {self.headland_overlap_percent}%.",
            )
        if self.center_row_spacing <= 0 or self.center_row_width_for_adjustment <= 0:
            raise GenerationError(
                ErrorType.BAD_INPUT_DATA, "Center row spacing must be positive."
            )

        # a slot outside of the group can't be mapped to a set of headlands, so fail here instead of on lookup
        if self.position_in_group not in valid_positions(self.n_vehicles):
            raise GenerationError(
                ErrorType.BAD_INPUT_DATA,
                f"Position in group {self.position_in_group} is not valid for {self.n_vehicles} vehicles, must be one of {valid_positions(self.n_vehicles)}.",
            )

        return FieldworkContext(
            n_vehicles=self.n_vehicles,
            n_headlands=self.n_headlands,
            working_width=self.working_width,
            position_in_group=self.position_in_group,
            headland_first=self.headland_first,
            bypass_islands=self.bypass_islands,
            start_location=self.start_location,
            turning_radius=self.turning_radius,
            headland_clockwise=self.headland_clockwise,
            headland_overlap_percent=self.headland_overlap_percent,
            row_angle_deg=self.row_angle_deg,
            center_row_spacing=self.center_row_spacing,
            center_row_width_for_adjustment=self.center_row_width_for_adjustment,
        )


# initialise gps to cartesian converter from the payload projection settings
def make_proj_converter(projection):
    project_type = projection["type"].lower()
    if project_type == "topcon":
        zone = projection["zone"]
        hemisphere = projection["hemisphere"]
        return Proj(
            f"+proj=utm +ellps=WGS84 +datum=WGS84 +units=m +no_defs +zone={zone} +{hemisphere.lower()}"
        )
    elif project_type == "john_deere":
        reference_point = projection["referencePoint"]
        return Proj(
            "+proj=merc +ellps=WGS84 +lat_ts="
            + str(reference_point["coordinates"][1])
            + " +lon_0="
            + str(reference_point["coordinates"][0])
        )
    elif project_type == "trimble":
        reference_point = projection["referencePoint"]
        elevation = projection["elevation"]

        # WGS84 ellipsoid
        major_ellipsoid = 6378137
        minor_ellipsoid = 6356752.3142

        return Proj(
            "+proj=tmerc +lat_ts="
            + str(reference_point["coordinates"][1])
            + " +lon_0="
            + str(reference_point["coordinates"][0])
            + " +a="
            + str(major_ellipsoid + int(elevation))
            + " +b="
            + str(minor_ellipsoid + int(elevation))
        )
    else:
        raise GenerationError(
            ErrorType.BAD_INPUT_DATA,
            'Projection data malformed in input payload. Projection type must be one of "TOPCON", "JOHN_DEERE", or "TRIMBLE".',
        )
