"""Exceptions raised by the episode query layer."""


class FetchError(Exception):
    """A read against the episodes backend failed.

    This is the only error the query layer raises: empty results and
    missing optional fields are ordinary values, not errors. ``message`` is
    safe to show to a reader.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
