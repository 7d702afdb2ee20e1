"""Browser-session facade shared by every page object.

Page objects receive one `BrowserSession` instead of inheriting from a base
page. It wraps the Playwright page for navigation, dialogs, frames, scripts,
scrolling, cookies and local storage, and exposes the Controls probes.
"""

from __future__ import annotations

import logging
import re
import weakref
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Protocol

from playwright.sync_api import Dialog, FrameLocator, Locator, Page, expect

from utils.controls import Controls

LOGGER = logging.getLogger("shop_e2e.session")

# Active dialog subscriptions per page, oldest first. Page listeners fire in
# registration order, so older subscriptions always see a dialog before the
# newest one answers it.
_SUBSCRIPTIONS: weakref.WeakKeyDictionary[Page, list[DialogSubscription]] = (
    weakref.WeakKeyDictionary()
)


class PageObject(Protocol):
    """What scenarios rely on from any page object."""

    path: str
    session: BrowserSession

    def open(self) -> None: ...

    def wait_for_load(self) -> None: ...


class DialogSubscription:
    """A registered dialog handler that can be cancelled.

    Works as a context manager so the handler never outlives the block that
    expects the dialog. Messages of handled dialogs are kept in `messages`.

    Several subscriptions may be active on one page. Every one of them records
    each dialog, but only the most recently created one answers it, so a
    `capture_dialog_message` inside a persistent `dismiss_dialogs()` accepts.
    """

    def __init__(self, page: Page, action: str, *, once: bool) -> None:
        if action not in {"accept", "dismiss"}:
            raise ValueError(f"Dialog action must be 'accept' or 'dismiss', got {action!r}")
        self._page = page
        self.action = action
        self.once = once
        self.messages: list[str] = []
        self.active = True
        _SUBSCRIPTIONS.setdefault(page, []).append(self)
        page.on("dialog", self._handle)

    def _handle(self, dialog: Dialog) -> None:
        if not self.active:
            return
        self.messages.append(dialog.message)
        if _SUBSCRIPTIONS[self._page][-1] is not self:
            return
        LOGGER.info(
            "dialog_handled",
            extra={"event": "dialog_handled", "action": self.action, "dialog_type": dialog.type},
        )
        if self.once:
            self.cancel()
        if self.action == "accept":
            dialog.accept()
        else:
            dialog.dismiss()

    @property
    def last_message(self) -> str | None:
        return self.messages[-1] if self.messages else None

    def cancel(self) -> None:
        if not self.active:
            return
        self.active = False
        _SUBSCRIPTIONS[self._page].remove(self)
        self._page.remove_listener("dialog", self._handle)

    def __enter__(self) -> DialogSubscription:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cancel()


def _screenshot_name(name: str, now: datetime | None = None) -> str:
    stamp = (now or datetime.now(timezone.utc)).isoformat().replace(":", "-").replace(".", "-")
    safe = re.sub(r"[^\w.-]+", "_", name).strip("._") or "screenshot"
    return f"{stamp}-{safe}.png"


class BrowserSession:
    """Cross-cutting browser operations for one Playwright page."""

    def __init__(
        self,
        page: Page,
        base_url: str,
        controls: Controls,
        screenshots_dir: Path | str = "screenshots",
    ) -> None:
        self.page = page
        self.base_url = base_url
        self.controls = controls
        self.screenshots_dir = Path(screenshots_dir)

    @property
    def timeout_ms(self) -> int:
        return self.controls.default_timeout_ms

    def locator(self, selector: str) -> Locator:
        return self.page.locator(selector)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def url_for(self, path: str = "") -> str:
        if re.match(r"^https?://", path):
            return path
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def goto(self, path: str = "") -> None:
        url = self.url_for(path)
        LOGGER.info("navigate", extra={"event": "navigate", "url": url})
        self.page.goto(url, wait_until="domcontentloaded")

    def wait_for_page_load(self) -> None:
        """Block until the DOM is parsed and network traffic has settled.

        Bounded by the control timeout and raises `InteractionTimeoutError`;
        `goto` itself stays a plain navigation on the browser timeout.
        """
        self.controls.wait_for_load_state(self.page, "domcontentloaded")
        self.controls.wait_for_network_idle(self.page)

    def reload(self) -> None:
        self.page.reload(wait_until="domcontentloaded")

    def go_back(self) -> None:
        self.page.go_back()

    def go_forward(self) -> None:
        self.page.go_forward()

    @property
    def url(self) -> str:
        return self.page.url

    def title(self) -> str:
        return self.page.title()

    def wait(self, milliseconds: int) -> None:
        """Sleep for a fixed time. Prefer a state wait; this is a last resort."""
        LOGGER.info("fixed_wait", extra={"event": "fixed_wait", "ms": milliseconds})
        self.page.wait_for_timeout(milliseconds)

    def take_screenshot(self, name: str) -> Path:
        self.screenshots_dir.mkdir(parents=True, exist_ok=True)
        path = self.screenshots_dir / _screenshot_name(name)
        self.page.screenshot(path=str(path), full_page=True)
        LOGGER.info("screenshot_saved", extra={"event": "screenshot_saved", "path": str(path)})
        return path

    # ------------------------------------------------------------------
    # Dialogs, frames, scripts
    # ------------------------------------------------------------------

    def accept_dialogs(self, *, once: bool = False) -> DialogSubscription:
        return DialogSubscription(self.page, "accept", once=once)

    def dismiss_dialogs(self, *, once: bool = False) -> DialogSubscription:
        return DialogSubscription(self.page, "dismiss", once=once)

    def capture_dialog_message(self, trigger: Callable[[], object]) -> str | None:
        """Run `trigger`, accept the first dialog it opens and return its message."""
        with self.accept_dialogs(once=True) as subscription:
            trigger()
        return subscription.last_message

    def frame(self, selector: str) -> FrameLocator:
        return self.page.frame_locator(selector)

    def evaluate(self, script: str, arg: Any = None) -> Any:
        return self.page.evaluate(script, arg)

    # ------------------------------------------------------------------
    # Scrolling
    # ------------------------------------------------------------------

    def scroll_to_element(self, locator: Locator) -> None:
        self.controls.scroll_into_view(locator)

    def scroll_to_top(self) -> None:
        self.page.evaluate("() => window.scrollTo(0, 0)")

    def scroll_to_bottom(self) -> None:
        self.page.evaluate("() => window.scrollTo(0, document.body.scrollHeight)")

    # ------------------------------------------------------------------
    # Cookies and local storage
    # ------------------------------------------------------------------

    def get_cookies(self) -> list[dict[str, Any]]:
        return [dict(cookie) for cookie in self.page.context.cookies()]

    def set_cookie(self, cookie: dict[str, Any]) -> None:
        if "url" not in cookie and "domain" not in cookie:
            cookie = {**cookie, "url": self.base_url}
        self.page.context.add_cookies([cookie])  # type: ignore[list-item]

    def clear_cookies(self) -> None:
        self.page.context.clear_cookies()

    def get_local_storage(self, key: str) -> str | None:
        return self.page.evaluate("(key) => window.localStorage.getItem(key)", key)

    def set_local_storage(self, key: str, value: str) -> None:
        self.page.evaluate(
            "([key, value]) => window.localStorage.setItem(key, value)", [key, value]
        )

    def clear_local_storage(self) -> None:
        self.page.evaluate("() => window.localStorage.clear()")

    # ------------------------------------------------------------------
    # Probes
    # ------------------------------------------------------------------

    def validation_message(self, locator: Locator) -> str:
        """Browser-native constraint message (empty when the field is valid)."""
        return locator.evaluate("(el) => el.validationMessage")

    def is_element_visible(self, locator: Locator) -> bool:
        return self.controls.is_visible(locator)

    def is_element_enabled(self, locator: Locator) -> bool:
        return self.controls.is_enabled(locator)

    def get_element_count(self, locator: Locator) -> int:
        return self.controls.count(locator)

    def expect_visible(self, locator: Locator) -> None:
        """Assert visibility using the session's configured timeout."""
        expect(locator).to_be_visible(timeout=self.timeout_ms)
