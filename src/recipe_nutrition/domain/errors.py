"""Errors raised across the I/O boundaries."""


class StoreUnavailableError(RuntimeError):
    """The food store could not be queried."""


class FoodNotFoundError(LookupError):
    """A referenced food or ingredient does not exist."""
