from enum import Enum

"""
Error Handling
"""


# enum for different types of errors, which should be handled differently
class ErrorType(Enum):
    # either payload missing elements or an unsupported mismatch of settings, pass onto front end
    BAD_INPUT_DATA = 0

    # unexpected logic error in algorithm, should not be passed onto front end
    ALGORITHM_ERROR = 1

    # field is shaped such that the requested number of headland rings cannot be generated, pass onto front end
    # unlike single headland generation, a multi vehicle course can't be returned with fewer rings, so this is always fatal
    INNER_HEADLAND_FAILURE = 2

    # a headland ring split into multiple areas, only the largest one is kept, pass onto front end along with the dropped areas
    MALFORMED_OPERATING_AREA = 3

    # a path could not be diverted around an island because it begins or ends within it, only a warning, the course is still returned
    ISLAND_WARNING = 4


# data struct for errors
class Error:
    def __init__(self, error_type, message, geometry=None):
        self.error_type = error_type
        self.message = message
        self.geometry = geometry  # optional

    def as_dict(self):
        error_dict = dict()
        error_dict["errorType"] = self.error_type.name
        error_dict["message"] = self.message
        if self.geometry is not None:  # optional
            error_dict["geometry"] = self.geometry
        return error_dict


# exception for course generation failure that should be passed on to the front end, along with possible extra info
class GenerationError(Exception):
    def __init__(self, error_type, message, geometry=None):
        super().__init__(message)
        self.error = Error(error_type, message, geometry)


# exception for internal logic errors that should not, if algorithm is functioning as expected, ever be raised
# if raised, they should not be passed on to the front end as they are not meaningful to the end user
class AlgorithmError(Exception):
    def __init__(self, message, geometry=None):
        super().__init__(message)
        self.error = Error(ErrorType.ALGORITHM_ERROR, message, geometry)


# function to transform error objects into a list of dictionaries in the format the lambda is expecting output
# all places constructing returns should use this for streamlining to make sure the structure is always correct
def make_error_list_return(errors):
    if isinstance(errors, Exception):
        errors = [errors.error]

    errors_dict = dict()
    error_list = list()
    for error in errors:
        error_list.append(error.as_dict())
    errors_dict["errors"] = error_list

    return errors_dict
