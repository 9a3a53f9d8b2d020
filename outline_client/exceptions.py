"""
Exceptions raised by the Outline management API client
"""

import typing


class OutlineLibraryException(Exception):
    pass


class RequestError(OutlineLibraryException):
    """
    The request could not be built or sent, or the server answered
    with a status code of 400 or above
    """

    def __init__(self, message: str, status_code: typing.Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ResponseDecodeError(OutlineLibraryException):
    pass
