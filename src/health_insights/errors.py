"""Exceptions raised by the insight pipeline."""


class InsightsError(Exception):
    """Base class for insight pipeline errors."""


class InvalidDateError(InsightsError, ValueError):
    """Raised when a local date cannot be parsed as a calendar date."""

    def __init__(self, value: object) -> None:
        super().__init__(f"Invalid local date {value!r}, expected YYYY-MM-DD")
        self.value = value


class InvalidTimezoneError(InsightsError, ValueError):
    """Raised when a timezone is not a recognized IANA zone id."""

    def __init__(self, value: object) -> None:
        super().__init__(f"Unknown timezone {value!r}")
        self.value = value


class UnknownFamilyError(InsightsError, KeyError):
    """Raised when a family name outside the closed family set is configured."""

    def __init__(self, family: object) -> None:
        super().__init__(f"Unknown metric family {family!r}")
        self.family = family

    def __str__(self) -> str:
        return str(self.args[0])


class InvalidScoreError(InsightsError, ValueError):
    """Raised when a rule pack emits a raw score outside [0, inf)."""

    def __init__(self, insight_id: str, metric: str, score: float) -> None:
        super().__init__(f"Insight {insight_id} for {metric} has invalid raw score {score!r}")
        self.insight_id = insight_id
        self.metric = metric
        self.score = score


class DataSourceUnavailableError(InsightsError):
    """Raised when discovery or a series read cannot reach its data source."""

    def __init__(self, operation: str, cause: BaseException | None = None) -> None:
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Data source unavailable during {operation}{detail}")
        self.operation = operation
        self.cause = cause


class PersistenceError(InsightsError):
    """Raised when the replace-day transaction fails."""

    def __init__(self, user_id: str, local_date: str, cause: BaseException) -> None:
        super().__init__(f"Failed to persist insights for {local_date}: {cause}")
        self.user_id = user_id
        self.local_date = local_date
        self.cause = cause
