import json
import logging
import traceback

import boto3
from fieldwork.creator import CourseCreator
from fieldwork.errors import AlgorithmError, ErrorType, GenerationError, make_error_list_return

logger = logging.getLogger()
logger.setLevel(logging.INFO)
s3 = boto3.resource("s3")

results_bucket = "course-creation-results"


def lambda_handler(event, _):
    logging.info("Starting python multi vehicle course")
    executionArn = event.get("executionArn")
    body = event.get("body")
    try:
        logging.info("body:")
        logging.info(body)
        if body is None:
            raise GenerationError(ErrorType.BAD_INPUT_DATA, "Missing 'body' in payload")
        try:
            if isinstance(body, str):
                body = json.loads(body)
        except json.JSONDecodeError:
            return {
                "statusCode": 400,
                "executionArn": executionArn,
                "body": json.dumps({"message": "Invalid JSON format"}),
            }
        # Body is just: {'path': string, 'alias': string}
        # We need to get the payload from S3
        obj = s3.Object(results_bucket, body.get("path"))
        objContent = obj.get()["Body"].read()
        payload = json.loads(objContent)
        settings = payload.get("settings")
        if settings is None:
            raise GenerationError(
                ErrorType.BAD_INPUT_DATA,
                "Missing 'settings' in payload",
            )
        operating_area = payload.get("operatingArea")
        if operating_area is None:
            raise GenerationError(
                ErrorType.BAD_INPUT_DATA, "Missing 'operatingArea' in payload"
            )
        obstacles = payload.get("obstacles")
        if obstacles is None:
            obstacles = list()
        courseCreator = CourseCreator(
            settings=settings,
            operating_area=operating_area,
            obstacles=obstacles,
            execution_arn=executionArn,
        )
        course, errors = courseCreator.generate_course()
        logging.info("Finished python multi vehicle course")
        logging.info(errors)
        metadata = payload.get("metadata")
        resultBody = json.dumps(
            {
                "result": {
                    "success": True,
                    "payload": course,
                    "error": errors,
                },
                "input": {"metadata": metadata},
            }
        )
        s3.Bucket(results_bucket).put_object(
            Key=executionArn, Body=resultBody, ContentType="application/json"
        )
        return {"success": True, "executionArn": executionArn}
    except (GenerationError, AlgorithmError) as e:
        logger.error("Error: %s", traceback.format_exc())
        resultBody = json.dumps(
            {
                "result": {
                    "success": False,
                    "error": make_error_list_return(e),
                },
                "input": body,
            }
        )
        s3.Bucket(results_bucket).put_object(
            Key=executionArn, Body=resultBody, ContentType="application/json"
        )
        return {"success": False, "executionArn": executionArn}
