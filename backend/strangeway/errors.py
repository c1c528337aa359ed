from __future__ import annotations


class StrangewayError(Exception):
    """Base class for failures that abort one filter run.

    ``status_code`` is the HTTP status the server answers with.
    """

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InputNotFound(StrangewayError):
    status_code = 404


class FetchFailed(StrangewayError):
    status_code = 502


class DecodeFailed(StrangewayError):
    status_code = 422


class EncodeFailed(StrangewayError):
    status_code = 500


class NoQueryParameters(StrangewayError):
    status_code = 400


class UnsupportedLocator(StrangewayError):
    status_code = 400
