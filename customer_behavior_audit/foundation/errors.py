"""Exceptions raised by the customer behavior audit engine."""

from __future__ import annotations


class DataIntegrityError(ValueError):
    """A transaction record lacks a field required by the requested analysis.

    Attributes
    ----------
    record_id:
        Identifier of the offending record (transaction id, customer id or
        input position, whichever is the most specific one available).
    """

    def __init__(self, message: str, record_id: str | None = None) -> None:
        self.record_id = record_id
        if record_id is not None:
            message = f"{message} (record={record_id})"
        super().__init__(message)


class EmptyPopulationError(ValueError):
    """A percentile or average was requested over zero eligible records."""

    def __init__(self, metric_name: str) -> None:
        self.metric_name = metric_name
        super().__init__(f"Cannot compute {metric_name} over an empty population")
