import pytest
import requests
from shapely import box

from fieldwork import creator
from fieldwork.context import make_proj_converter
from fieldwork.creator import CourseCreator, make_feature_collection
from fieldwork.errors import Error, ErrorType, GenerationError

PROJECTION = {"type": "TOPCON", "zone": 56, "hemisphere": "SOUTH"}

# a 200 m x 120 m field in utm zone 56 south
ORIGIN = (400000, 6960000)


def to_geopoints(coords):
    converter = make_proj_converter(PROJECTION)
    return [
        list(converter(ORIGIN[0] + x, ORIGIN[1] + y, inverse=True)) for x, y in coords
    ]


def make_settings(**overrides):
    settings = {
        "projection": PROJECTION,
        "nVehicles": 2,
        "numHeadlands": 3,
        "workingWidth": 6,
        "positionInGroup": 1,
        "headlandFirst": True,
        "bypassIslands": True,
        "minPathTurnRadius": 5,
        "startLocation": {"type": "Point", "coordinates": to_geopoints([(0, 0)])[0]},
    }
    settings.update(overrides)
    return settings


def make_operating_area():
    return {
        "type": "Polygon",
        "coordinates": [to_geopoints(box(0, 0, 200, 120).exterior.coords)],
    }


def make_creator(settings=None, operating_area=None, obstacles=None):
    return CourseCreator(
        settings=settings if settings is not None else make_settings(),
        operating_area=operating_area
        if operating_area is not None
        else make_operating_area(),
        obstacles=obstacles if obstacles is not None else list(),
        execution_arn="test",
        skip_progress_update=True,
    )


class TestInput:
    def test_operating_area_in_utm(self):
        course_creator = make_creator()
        assert course_creator.operating_area.area == pytest.approx(200 * 120, rel=1e-6)
        assert course_creator.start_location == pytest.approx(ORIGIN)

    def test_obstacles_in_utm(self):
        obstacle = {
            "type": "Polygon",
            "coordinates": [to_geopoints(box(90, 50, 100, 60).exterior.coords)],
        }
        course_creator = make_creator(obstacles=[obstacle])
        assert len(course_creator.obstacles) == 1
        assert course_creator.obstacles[0].area == pytest.approx(100, rel=1e-4)

    def test_missing_projection(self):
        settings = make_settings()
        del settings["projection"]
        with pytest.raises(GenerationError) as e:
            make_creator(settings=settings)
        assert e.value.error.error_type == ErrorType.BAD_INPUT_DATA

    def test_missing_start_location(self):
        settings = make_settings()
        del settings["startLocation"]
        with pytest.raises(GenerationError) as e:
            make_creator(settings=settings)
        assert e.value.error.error_type == ErrorType.BAD_INPUT_DATA

    def test_operating_area_with_hole(self):
        operating_area = make_operating_area()
        operating_area["coordinates"].append(
            to_geopoints(box(90, 50, 100, 60).exterior.coords)
        )
        with pytest.raises(GenerationError) as e:
            make_creator(operating_area=operating_area)
        assert e.value.error.error_type == ErrorType.BAD_INPUT_DATA


class TestGenerateCourse:
    def test_payload(self):
        payload, errors = make_creator().generate_course()

        assert errors == {"errors": []}

        course = payload["course"]
        assert course["type"] == "FeatureCollection"
        assert len(course["features"]) == 1
        properties = course["features"][0]["properties"]
        assert properties["nVehicles"] == 2
        assert properties["numHeadlands"] == 4
        assert properties["positionInGroup"] == 1
        assert course["features"][0]["geometry"]["type"] == "LineString"

        headland_paths = payload["headlandPaths"]["features"]
        assert [feature["properties"] for feature in headland_paths] == [
            {"vehicle": 1, "headlands": [1, 3]},
            {"vehicle": 2, "headlands": [2, 4]},
        ]

    def test_waypoints(self):
        payload, _ = make_creator().generate_course()
        waypoints = payload["waypoints"]

        assert waypoints[0]["distance"] == 0
        assert waypoints[0]["headlandNumber"] == 2
        assert waypoints[-1]["rowNumber"] is not None
        assert {"coordinates", "yaw", "islandBypass", "isConnecting"} <= set(
            waypoints[0]
        )
        # lat/long output
        longitude, latitude = waypoints[0]["coordinates"]
        assert 150 < longitude < 154
        assert -29 < latitude < -26

    def test_fatal_error_is_raised(self):
        with pytest.raises(GenerationError) as e:
            make_creator(settings=make_settings(numHeadlands=30)).generate_course()
        assert e.value.error.error_type == ErrorType.INNER_HEADLAND_FAILURE


class TestErrorReturn:
    def test_geometry_is_converted_to_latlong(self):
        course_creator = make_creator()
        error = Error(
            ErrorType.ISLAND_WARNING,
            "warning",
            geometry=[box(ORIGIN[0], ORIGIN[1], ORIGIN[0] + 10, ORIGIN[1] + 10)],
        )
        error_return = course_creator.to_error_return([error])

        returned = error_return["errors"][0]
        assert returned["errorType"] == "ISLAND_WARNING"
        feature = returned["geometry"]["features"][0]
        assert feature["geometry"]["type"] == "Polygon"
        longitude, latitude = feature["geometry"]["coordinates"][0][0]
        assert 150 < longitude < 154
        assert -29 < latitude < -26

    def test_make_feature_collection(self):
        collection = make_feature_collection(
            [{"type": "Point", "coordinates": [0, 0]}], [{"name": "a"}]
        )
        assert collection["features"][0]["properties"] == {"name": "a"}
        assert make_feature_collection([{}])["features"][0]["properties"] == {}


class FakeResponse:
    def __init__(self, status_code):
        self.status_code = status_code


class TestProgress:
    @pytest.fixture
    def posted(self, monkeypatch):
        posted = list()

        def post(url, json=None, headers=None):
            posted.append((url, json, headers))
            return FakeResponse(200)

        monkeypatch.setattr(creator, "get_api_key", lambda: "secret")
        monkeypatch.setattr(creator.requests, "post", post)
        return posted

    def test_progress_is_posted(self, posted):
        course_creator = CourseCreator(
            make_settings(), make_operating_area(), list(), "arn:test"
        )
        course_creator.update_progress()

        assert len(posted) == 1
        url, body, headers = posted[0]
        assert url == creator.progress_endpoint
        assert headers == {"apiKey": "secret"}
        assert body["filter"] == {"executionArn": "arn:test"}
        assert body["update"]["$set"]["progress"] == 25

    def test_skipped_progress_is_not_posted(self, posted):
        make_creator().update_progress()
        assert posted == []

    def test_post_failure_is_not_fatal(self, monkeypatch, caplog):
        def post(url, json=None, headers=None):
            raise requests.ConnectionError("offline")

        monkeypatch.setattr(creator, "get_api_key", lambda: "secret")
        monkeypatch.setattr(creator.requests, "post", post)
        course_creator = CourseCreator(
            make_settings(), make_operating_area(), list(), "arn:test"
        )
        course_creator.update_progress()

        assert course_creator.progress == 1
        assert "offline" in caplog.text
