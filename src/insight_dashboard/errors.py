from __future__ import annotations


class DashboardError(Exception):
    """Base class for failures a view reduces to a single error string."""


class NetworkError(DashboardError):
    pass


class EmptyResponse(DashboardError):
    pass


class MalformedEvent(DashboardError):
    pass


NoDataAvailable = EmptyResponse
