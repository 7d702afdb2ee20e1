"""Shopping cart page object (/view_cart).

Rows are addressed by their current position only. Removing a row re-indexes
the rest, so callers must not read and remove concurrently on one page.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from playwright.sync_api import expect

from pages.session import BrowserSession


@dataclass(frozen=True)
class CartItem:
    """Snapshot of one cart row as rendered."""

    name: str
    price: str
    quantity: str
    total: str


def parse_amount(text: str) -> int:
    """Digits of a rendered amount ('Rs. 500' -> 500)."""
    digits = re.sub(r"\D", "", text)
    if not digits:
        raise ValueError(f"No amount in {text!r}")
    return int(digits)


class CartPage:
    """Page object for reading, clearing and checking out the cart."""

    path = "/view_cart"

    CART_TABLE = "#cart_info_table"
    CART_ITEMS = ".cart_description"
    PRODUCT_NAMES = ".cart_description h4 a"
    PRODUCT_PRICES = ".cart_price p"
    PRODUCT_QUANTITIES = ".cart_quantity button"
    PRODUCT_TOTALS = ".cart_total_price"
    DELETE_BUTTONS = ".cart_quantity_delete"
    PROCEED_TO_CHECKOUT = ".check_out"
    EMPTY_CART = 'b:has-text("Cart is empty!")'
    REGISTER_LOGIN = '#checkoutModal a[href="/login"]:has-text("Register / Login")'

    def __init__(self, session: BrowserSession) -> None:
        self.session = session
        self.controls = session.controls
        self.cart_table = session.locator(self.CART_TABLE)
        self.cart_items = session.locator(self.CART_ITEMS)
        self.product_names = session.locator(self.PRODUCT_NAMES)
        self.product_prices = session.locator(self.PRODUCT_PRICES)
        self.product_quantities = session.locator(self.PRODUCT_QUANTITIES)
        self.product_totals = session.locator(self.PRODUCT_TOTALS)
        self.delete_buttons = session.locator(self.DELETE_BUTTONS)
        self.proceed_to_checkout_button = session.locator(self.PROCEED_TO_CHECKOUT)
        self.empty_cart_text = session.locator(self.EMPTY_CART)
        self.register_login_link = session.locator(self.REGISTER_LOGIN)

    def open(self) -> None:
        self.session.goto(self.path)
        self.wait_for_load()

    def wait_for_load(self) -> None:
        self.session.wait_for_page_load()

    def get_item_count(self) -> int:
        return self.controls.count(self.cart_items)

    def get_product_name(self, index: int) -> str:
        return (self.controls.get_text(self.product_names.nth(index)) or "").strip()

    def get_product_price(self, index: int) -> str:
        return (self.controls.get_text(self.product_prices.nth(index)) or "").strip()

    def get_product_quantity(self, index: int) -> str:
        return (self.controls.get_text(self.product_quantities.nth(index)) or "").strip()

    def get_product_total(self, index: int) -> str:
        return (self.controls.get_text(self.product_totals.nth(index)) or "").strip()

    def get_item(self, index: int) -> CartItem:
        return CartItem(
            name=self.get_product_name(index),
            price=self.get_product_price(index),
            quantity=self.get_product_quantity(index),
            total=self.get_product_total(index),
        )

    def get_all_products(self) -> list[CartItem]:
        """Read every row once, in display order."""
        return [self.get_item(index) for index in range(self.get_item_count())]

    def remove_item(self, index: int) -> None:
        before = self.get_item_count()
        self.controls.click(self.delete_buttons.nth(index))
        self.controls.wait_for_network_idle(self.session.page)
        # The row leaves the DOM only after the delete request returns.
        expect(self.cart_items).to_have_count(before - 1, timeout=self.controls.default_timeout_ms)

    def remove_all_items(self) -> None:
        for _ in range(self.get_item_count()):
            self.remove_item(0)

    def proceed_to_checkout(self) -> None:
        self.controls.click(self.proceed_to_checkout_button)

    def click_register_login(self) -> None:
        self.controls.click(self.register_login_link)

    def is_cart_empty(self) -> bool:
        return self.controls.is_visible(self.empty_cart_text)
