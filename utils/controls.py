"""Wait-then-act wrappers around Playwright locator actions.

Every mutating call waits for the locator to reach the state its action needs,
performs exactly one action, and converts any failure into an
`InteractionError`. Nothing here retries: Playwright's own polling inside the
wait is the only repetition, and a timeout ends the call.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Sequence, TypeVar

from playwright.sync_api import Locator, Page
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from utils.errors import ActionFailedError, InteractionError, InteractionTimeoutError

DEFAULT_CONTROL_TIMEOUT_MS = 30_000
DEFAULT_TYPE_DELAY_MS = 100

LOGGER = logging.getLogger("shop_e2e.controls")

T = TypeVar("T")


class Controls:
    """Stateless interaction helper shared by every page object in a session."""

    def __init__(self, timeout_ms: int = DEFAULT_CONTROL_TIMEOUT_MS) -> None:
        if timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be > 0, got {timeout_ms}")
        self.default_timeout_ms = timeout_ms

    def _timeout(self, timeout_ms: int | None) -> int:
        return timeout_ms if timeout_ms is not None else self.default_timeout_ms

    def _fail(self, error: InteractionError) -> InteractionError:
        LOGGER.warning(
            "interaction_failed",
            extra={
                "event": "interaction_failed",
                "operation": error.operation,
                "detail": error.detail,
                "error_type": type(error).__name__,
                "cause": error.cause,
            },
        )
        return error

    def _wait(
        self,
        operation: str,
        locator: Locator,
        state: str,
        timeout_ms: int | None,
        detail: str = "",
    ) -> None:
        try:
            locator.wait_for(state=state, timeout=self._timeout(timeout_ms))
        except PlaywrightTimeoutError as exc:
            raise self._fail(InteractionTimeoutError(operation, exc, detail)) from exc
        except Exception as exc:
            raise self._fail(ActionFailedError(operation, exc, detail)) from exc

    def _wait_for_page(
        self, operation: str, page: Page, state: str, timeout_ms: int | None
    ) -> None:
        detail = f"state={state}"
        try:
            page.wait_for_load_state(state, timeout=self._timeout(timeout_ms))
        except PlaywrightTimeoutError as exc:
            raise self._fail(InteractionTimeoutError(operation, exc, detail)) from exc
        except Exception as exc:
            raise self._fail(ActionFailedError(operation, exc, detail)) from exc

    def _act(self, operation: str, action: Callable[[], T], detail: str = "") -> T:
        try:
            result = action()
        except Exception as exc:
            raise self._fail(ActionFailedError(operation, exc, detail)) from exc
        LOGGER.debug("interaction", extra={"event": "interaction", "operation": operation})
        return result

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def click(self, locator: Locator, *, timeout_ms: int | None = None, **options: Any) -> None:
        self._wait("click", locator, "visible", timeout_ms)
        self._act("click", lambda: locator.click(timeout=self._timeout(timeout_ms), **options))

    def double_click(
        self, locator: Locator, *, timeout_ms: int | None = None, **options: Any
    ) -> None:
        self._wait("double_click", locator, "visible", timeout_ms)
        self._act(
            "double_click",
            lambda: locator.dblclick(timeout=self._timeout(timeout_ms), **options),
        )

    def hover(self, locator: Locator, *, timeout_ms: int | None = None, **options: Any) -> None:
        self._wait("hover", locator, "visible", timeout_ms)
        self._act("hover", lambda: locator.hover(timeout=self._timeout(timeout_ms), **options))

    def fill(self, locator: Locator, value: str, *, timeout_ms: int | None = None) -> None:
        """Replace the input's content with `value` (never appends)."""
        detail = f"value={value!r}"
        self._wait("fill", locator, "visible", timeout_ms, detail)
        timeout = self._timeout(timeout_ms)

        def _clear_and_fill() -> None:
            locator.clear(timeout=timeout)
            locator.fill(value, timeout=timeout)

        self._act("fill", _clear_and_fill, detail)

    def type_text(
        self,
        locator: Locator,
        value: str,
        *,
        delay_ms: int = DEFAULT_TYPE_DELAY_MS,
        timeout_ms: int | None = None,
    ) -> None:
        """Clear, then type key by key; autocomplete widgets need the per-key events."""
        detail = f"value={value!r}"
        self._wait("type_text", locator, "visible", timeout_ms, detail)
        timeout = self._timeout(timeout_ms)

        def _clear_and_type() -> None:
            locator.clear(timeout=timeout)
            locator.press_sequentially(value, delay=delay_ms, timeout=timeout)

        self._act("type_text", _clear_and_type, detail)

    def select_by_value(
        self, locator: Locator, value: str, *, timeout_ms: int | None = None
    ) -> None:
        detail = f"value={value!r}"
        self._wait("select_by_value", locator, "visible", timeout_ms, detail)
        self._act(
            "select_by_value",
            lambda: locator.select_option(value=value, timeout=self._timeout(timeout_ms)),
            detail,
        )

    def select_by_label(
        self, locator: Locator, label: str, *, timeout_ms: int | None = None
    ) -> None:
        detail = f"label={label!r}"
        self._wait("select_by_label", locator, "visible", timeout_ms, detail)
        self._act(
            "select_by_label",
            lambda: locator.select_option(label=label, timeout=self._timeout(timeout_ms)),
            detail,
        )

    def check(self, locator: Locator, *, timeout_ms: int | None = None) -> None:
        """Check the box unless it already is."""
        self._set_checked("check", locator, True, timeout_ms)

    def uncheck(self, locator: Locator, *, timeout_ms: int | None = None) -> None:
        """Uncheck the box unless it already is."""
        self._set_checked("uncheck", locator, False, timeout_ms)

    def toggle(self, locator: Locator, *, timeout_ms: int | None = None) -> None:
        self._wait("toggle", locator, "visible", timeout_ms)
        timeout = self._timeout(timeout_ms)

        def _flip() -> None:
            if locator.is_checked(timeout=timeout):
                locator.uncheck(timeout=timeout)
            else:
                locator.check(timeout=timeout)

        self._act("toggle", _flip)

    def _set_checked(
        self, operation: str, locator: Locator, desired: bool, timeout_ms: int | None
    ) -> None:
        self._wait(operation, locator, "visible", timeout_ms)
        timeout = self._timeout(timeout_ms)

        def _apply() -> None:
            if locator.is_checked(timeout=timeout) == desired:
                return
            if desired:
                locator.check(timeout=timeout)
            else:
                locator.uncheck(timeout=timeout)

        self._act(operation, _apply)

    def press_key(self, locator: Locator, key: str, *, timeout_ms: int | None = None) -> None:
        detail = f"key={key!r}"
        self._wait("press_key", locator, "visible", timeout_ms, detail)
        self._act(
            "press_key",
            lambda: locator.press(key, timeout=self._timeout(timeout_ms)),
            detail,
        )

    def scroll_into_view(self, locator: Locator, *, timeout_ms: int | None = None) -> None:
        self._act(
            "scroll_into_view",
            lambda: locator.scroll_into_view_if_needed(timeout=self._timeout(timeout_ms)),
        )

    def upload_file(
        self,
        locator: Locator,
        files: str | Path | Sequence[str | Path],
        *,
        timeout_ms: int | None = None,
    ) -> None:
        # File inputs are usually hidden behind a styled button, so only attachment matters.
        detail = f"files={files!r}"
        self._wait("upload_file", locator, "attached", timeout_ms, detail)
        self._act(
            "upload_file",
            lambda: locator.set_input_files(files, timeout=self._timeout(timeout_ms)),
            detail,
        )

    def wait_for_hidden(self, locator: Locator, *, timeout_ms: int | None = None) -> None:
        self._wait("wait_for_hidden", locator, "hidden", timeout_ms)

    def wait_for_load_state(
        self, page: Page, state: str = "load", *, timeout_ms: int | None = None
    ) -> None:
        self._wait_for_page("wait_for_load_state", page, state, timeout_ms)

    def wait_for_network_idle(self, page: Page, *, timeout_ms: int | None = None) -> None:
        self._wait_for_page("wait_for_network_idle", page, "networkidle", timeout_ms)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_text(self, locator: Locator, *, timeout_ms: int | None = None) -> str | None:
        self._wait("get_text", locator, "visible", timeout_ms)
        return self._act(
            "get_text", lambda: locator.text_content(timeout=self._timeout(timeout_ms))
        )

    def get_inner_text(self, locator: Locator, *, timeout_ms: int | None = None) -> str:
        self._wait("get_inner_text", locator, "visible", timeout_ms)
        return self._act(
            "get_inner_text", lambda: locator.inner_text(timeout=self._timeout(timeout_ms))
        )

    def get_attribute(
        self, locator: Locator, name: str, *, timeout_ms: int | None = None
    ) -> str | None:
        detail = f"attribute={name!r}"
        self._wait("get_attribute", locator, "visible", timeout_ms, detail)
        return self._act(
            "get_attribute",
            lambda: locator.get_attribute(name, timeout=self._timeout(timeout_ms)),
            detail,
        )

    def get_input_value(self, locator: Locator, *, timeout_ms: int | None = None) -> str:
        """Current value of an input, textarea or select."""
        self._wait("get_input_value", locator, "visible", timeout_ms)
        return self._act(
            "get_input_value", lambda: locator.input_value(timeout=self._timeout(timeout_ms))
        )

    def count(self, locator: Locator) -> int:
        return self._act("count", locator.count)

    # ------------------------------------------------------------------
    # Probes
    # ------------------------------------------------------------------

    def is_visible(self, locator: Locator) -> bool:
        """Visibility probe; any failure reads as not visible."""
        try:
            return bool(locator.is_visible())
        except Exception:
            return False

    def is_enabled(self, locator: Locator, *, timeout_ms: int | None = None) -> bool:
        """Enabled probe; any failure, including no match, reads as disabled."""
        try:
            # is_enabled() waits for a match, so an empty locator would burn the whole timeout.
            if locator.count() == 0:
                return False
            return bool(locator.is_enabled(timeout=self._timeout(timeout_ms)))
        except Exception:
            return False
