from __future__ import annotations


class InputUnavailableError(RuntimeError):
    """The record collection could not be obtained from the record store.

    Callers should treat this as a retryable service failure; the engine itself
    never retries.
    """

    retryable = True

    def __init__(self, message: str, *, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source
