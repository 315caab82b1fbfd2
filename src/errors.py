from __future__ import annotations


class StarError(Exception):
    """Base class for errors reported to the command line user."""


class InputError(StarError, ValueError):
    pass


class DuplicateSymbolError(InputError):
    def __init__(self, code: str, times: int):
        self.code = code
        self.times = times
        super().__init__(f"Symbol: {code} is duplicate, there are {times} stocks has the same code.")


class InvalidDateError(InputError):
    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Invalid date: {value!r}, expected YYYY/MM/DD.")


class BatchTooLargeError(InputError):
    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"You can query at most {limit} symbols once, got {size}.")
