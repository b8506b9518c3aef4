#!/usr/bin/env python3
import json
import logging
from math import degrees
from sys import argv, stderr
from time import time

import boto3
import requests
from botocore.exceptions import ClientError
from shapely import LineString, Point, Polygon, to_geojson

from fieldwork.context import FieldworkContextBuilder, make_proj_converter
from fieldwork.errors import (
    AlgorithmError,
    ErrorType,
    GenerationError,
    make_error_list_return,
)
from fieldwork.geometry import (
    final_simplification_precision_m,
    interpolate_coords_at_interval,
    max_point_interval_m,
)
from fieldwork.headlands import get_headland_numbers
from fieldwork.multi_vehicle import FieldworkCourseMultiVehicle

logger = logging.getLogger(__name__)

"""
Progress Config
"""


# rough number of stages posted as progress while a course is created
total_progress_steps = 4

progress_endpoint = "https://ap-southeast-2.aws.data.mongodb-api.com/app/data-ocmbd/endpoint/data/v1/action/updateOne"

progress_api_secret_name = "events!connection/course-creation-mongo-api-key"

progress_api_region_name = "ap-southeast-2"


"""
GeoJSON Functions
"""


# assemble a list of individual geojson geometry objects into a dictionary of structure that can be directly converted to a geojson feature collection object
def make_feature_collection(geojsons, properties=None):
    features = list()
    for i, geojson in enumerate(geojsons):
        feature = dict()
        feature["type"] = "Feature"
        feature["geometry"] = geojson
        feature["properties"] = properties[i] if properties is not None else dict()

        features.append(feature)

    feature_collection = dict()
    feature_collection["type"] = "FeatureCollection"
    feature_collection["features"] = features

    return feature_collection


"""
AWS Functions
"""


def get_api_key():
    session = boto3.session.Session()
    client = session.client(
        service_name="secretsmanager", region_name=progress_api_region_name
    )

    try:
        get_secret_value_response = client.get_secret_value(
            SecretId=progress_api_secret_name
        )
    except ClientError as e:
        # For a list of exceptions thrown, see
        # https://docs.aws.amazon.com/secretsmanager/latest/apireference/API_GetSecretValue.html
        raise e

    secret = get_secret_value_response["SecretString"]
    return json.loads(secret)["api_key_value"]


class CourseCreator:
    def __init__(
        self,
        settings,
        operating_area,
        obstacles,
        execution_arn,
        skip_progress_update=False,
    ):
        self.execution_arn = execution_arn
        self.progress = 0

        # when running locally, we have the option to disable progress updates which will hang if there is no internet connection
        self.skip_progress_update = skip_progress_update
        if not skip_progress_update:
            self.api_key = get_api_key()

        if "projection" not in settings:
            raise GenerationError(
                ErrorType.BAD_INPUT_DATA, "Missing 'projection' in settings."
            )
        self.proj_converter = make_proj_converter(settings["projection"])

        # operating area holes should be sent as obstacles
        if len(operating_area["coordinates"]) != 1:
            raise GenerationError(
                ErrorType.BAD_INPUT_DATA,
                "Operating area representation should not have interior borders.",
            )
        self.operating_area = Polygon(
            self.get_utm_coords(operating_area["coordinates"][0])
        )

        # obstacles within the operating area are the islands of the field
        self.obstacles = list()
        for obstacle in obstacles:
            holes = list()
            for i in range(1, len(obstacle["coordinates"])):
                holes.append(self.get_utm_coords(obstacle["coordinates"][i]))
            self.obstacles.append(
                Polygon(self.get_utm_coords(obstacle["coordinates"][0]), holes=holes)
            )

        start_location = settings.get("startLocation")
        if start_location is None:
            raise GenerationError(
                ErrorType.BAD_INPUT_DATA, "Missing 'startLocation' in settings."
            )
        self.start_location = self.get_utm_coords([start_location["coordinates"]])[0]

        self.context_builder = FieldworkContextBuilder.from_settings(
            settings, self.start_location
        )

    # roughly estimate a progress percentage and post it online, so some kind of progress bar can be updated when running in lambda
    def update_progress(self):
        if self.skip_progress_update:
            return

        self.progress = self.progress + 1

        try:
            body = {
                "dataSource": "swarmfarm-robotics",
                "database": "swarmbot-data",
                "collection": "course-creation",
                "filter": {"executionArn": self.execution_arn},
                "update": {
                    "$set": {
                        "status": "pending",
                        "progress": (self.progress / total_progress_steps) * 100,
                    }
                },
                "upsert": True,
            }
            response = requests.post(
                progress_endpoint, json=body, headers={"apiKey": self.api_key}
            )

            if response.status_code == 200:
                logger.info(
                    "Updating progress %d out of %d",
                    self.progress,
                    total_progress_steps,
                )
            else:
                logger.warning(
                    "Failed to post progress. Status code: %d", response.status_code
                )
        except requests.RequestException as e:
            logger.warning("An error occurred posting progress: %s", e)

    # convert from lat/long to utm x/y
    def get_utm_coords(self, geopoints):
        coords = list()
        for point in geopoints:
            utm = self.proj_converter(point[0], point[1])
            coords.append(utm)
        return coords

    # convert from utm x/y to lat/long
    def get_geopoints(self, coords):
        geopoints = list()
        for coord in coords:
            latlong = self.proj_converter(coord[0], coord[1], inverse=True)
            geopoints.append(latlong)
        return geopoints

    # convert utm coords to lat/long geojson
    def to_latlong_geojson(self, coords, type):
        return json.loads(to_geojson(type(self.get_geopoints(coords))))

    # simplify a path for output, and add points on long straight lines to avoid distortions caused by differing projection systems
    def path_to_latlong_geojson(self, path):
        line = path.to_line_string().simplify(final_simplification_precision_m)
        coords = interpolate_coords_at_interval(list(line.coords), max_point_interval_m)
        return self.to_latlong_geojson(coords, LineString)

    # error geometries are collected as utm shapely geometries while generating, convert them into lat/long feature collections
    def to_error_return(self, errors):
        for error in errors:
            if isinstance(error.geometry, list):
                geojsons = list()
                for geometry in error.geometry:
                    if isinstance(geometry, Polygon):
                        geojsons.append(
                            self.to_latlong_geojson(geometry.exterior.coords, Polygon)
                        )
                    elif isinstance(geometry, Point):
                        geojsons.append(
                            self.to_latlong_geojson([geometry.coords[0]], Point)
                        )
                    else:
                        geojsons.append(
                            self.to_latlong_geojson(geometry.coords, LineString)
                        )
                error.geometry = make_feature_collection(geojsons)
        return make_error_list_return(errors)

    def waypoints_as_dicts(self, path):
        waypoints = list()
        geopoints = self.get_geopoints(path.coords())
        for waypoint, geopoint in zip(path, geopoints):
            waypoint_dict = {
                "coordinates": list(geopoint),
                "distance": round(waypoint.distance, 3),
                "yaw": round(degrees(waypoint.yaw), 3),
            }
            waypoint_dict.update(waypoint.attributes.as_dict())
            waypoints.append(waypoint_dict)
        return waypoints

    def generate_course(self):
        self.start = time()
        self.update_progress()

        course = FieldworkCourseMultiVehicle(
            self.context_builder, self.operating_area, self.obstacles
        )
        self.update_progress()

        context = course.context
        path = course.get_path()
        self.update_progress()

        headland_geojsons = list()
        headland_properties = list()
        for v, headland_path in enumerate(course.headland_paths, start=1):
            headland_geojsons.append(self.path_to_latlong_geojson(headland_path))
            headland_properties.append(
                {"vehicle": v, "headlands": get_headland_numbers(headland_path)}
            )

        payload = dict()
        payload["course"] = make_feature_collection(
            [self.path_to_latlong_geojson(path)],
            [
                {
                    "nVehicles": context.n_vehicles,
                    "numHeadlands": context.n_headlands,
                    "positionInGroup": context.position_in_group,
                    "headlandFirst": context.headland_first,
                    "length": round(path.length, 3),
                }
            ],
        )
        payload["headlandPaths"] = make_feature_collection(
            headland_geojsons, headland_properties
        )
        payload["waypoints"] = self.waypoints_as_dicts(path)

        error_return = self.to_error_return(course.errors)
        self.update_progress()

        logger.info("| COURSE GENERATED in %.2f seconds", time() - self.start)

        return payload, error_return


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG, stream=stderr)

    if len(argv) < 3:
        skip_progress_update = False
    else:
        skip_progress_update = argv[2].lower() == "true"

    with open(argv[1]) as f:
        test_event = json.load(f)

    try:
        course_creator = CourseCreator(
            settings=test_event["settings"],
            operating_area=test_event["operatingArea"],
            obstacles=test_event.get("obstacles", list()),
            execution_arn="abc",
            skip_progress_update=skip_progress_update,
        )
        course, errors = course_creator.generate_course()
        print(json.dumps(course))
        print(json.dumps(errors), file=stderr)
    except (GenerationError, AlgorithmError) as e:
        print(json.dumps(make_error_list_return(e)), file=stderr)
