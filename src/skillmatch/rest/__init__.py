"""REST transport for the hosted backend."""

from skillmatch.rest.client import RestClient
from skillmatch.rest.errors import ApiError, ErrorKind, MalformedResponseError, RestError, TransportError
from skillmatch.rest.query import Query

__all__ = [
    "ApiError",
    "ErrorKind",
    "MalformedResponseError",
    "Query",
    "RestClient",
    "RestError",
    "TransportError",
]
