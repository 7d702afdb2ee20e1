"""Error types raised by the interaction layer and page objects.

Controls normalize every Playwright failure into one `InteractionError` family
so tests and logs see the operation name next to the original cause.
"""

from __future__ import annotations


class InteractionError(Exception):
    """A single UI interaction did not complete."""

    def __init__(self, operation: str, cause: object, detail: str = "") -> None:
        self.operation = operation
        self.cause = str(cause)
        self.detail = detail
        suffix = f" ({detail})" if detail else ""
        super().__init__(f"{operation} failed{suffix}: {self.cause}")


class InteractionTimeoutError(InteractionError):
    """The element never reached the state required before acting."""


class ActionFailedError(InteractionError):
    """The action itself failed after (or instead of) the precondition wait."""


class UnknownTitleError(ValueError):
    """Registration title outside the supported set."""

    def __init__(self, value: object, allowed: list[str]) -> None:
        self.value = value
        self.allowed = allowed
        super().__init__(f"Unknown title {value!r}; expected one of {allowed}")


class InvalidSelectorParameterError(ValueError):
    """Runtime value rejected before being interpolated into a selector."""

    def __init__(self, page_type: str, name: str, value: object, allowed: list[str]) -> None:
        self.page_type = page_type
        self.name = name
        self.value = value
        self.allowed = allowed
        super().__init__(
            f"Invalid {name!r} value {value!r} for {page_type} selector; "
            f"expected one of {allowed}"
        )
