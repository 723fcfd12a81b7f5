class WearPlanError(Exception):
    pass


class InvalidArgumentError(WearPlanError, ValueError):
    pass


class UnknownEffortError(InvalidArgumentError):
    pass


class UnknownActivityError(InvalidArgumentError):
    pass


class GpxError(WearPlanError):
    """Uploaded track could not be turned into route points."""


class GpxTooLargeError(GpxError):
    pass


class GpxUnreadableError(GpxError):
    pass


class GpxNoRouteDataError(GpxError):
    pass


class LocationNotFoundError(WearPlanError):
    pass


class ForecastResolutionError(WearPlanError):
    """Provider payload did not contain the requested hourly slots."""
