"""Product listing, search and product-detail page object (/products)."""

from __future__ import annotations

from playwright.sync_api import Locator

from pages.selectors import build_selector
from pages.session import BrowserSession


class ProductPage:
    """Page object for browsing products and adding them to the cart."""

    path = "/products"

    SEARCH_INPUT = "#search_product"
    SEARCH_BUTTON = "#submit_search"
    FEATURES = ".features_items"
    PRODUCT_CARDS = ".single-products"
    PRODUCT_INFO = ".productinfo"
    PRODUCT_NAMES = ".productinfo p"
    PRODUCT_PRICES = ".productinfo h2"
    VIEW_PRODUCT_LINKS = 'a:has-text("View Product")'
    OVERLAY_ADD_TO_CART = ".product-overlay .add-to-cart"
    INFO_ADD_TO_CART = ".productinfo a.add-to-cart"
    DETAIL_NAME = ".product-information h2"
    DETAIL_CATEGORY = '.product-information p:has-text("Category:")'
    DETAIL_PRICE = ".product-information span span"
    DETAIL_AVAILABILITY = '.product-information p:has-text("Availability:")'
    DETAIL_CONDITION = '.product-information p:has-text("Condition:")'
    DETAIL_BRAND = '.product-information p:has-text("Brand:")'
    QUANTITY = "#quantity"
    ADD_TO_CART = "button.cart"
    CART_MODAL = "#cartModal"
    CONTINUE_SHOPPING = 'button:has-text("Continue Shopping")'
    VIEW_CART = '#cartModal a:has-text("View Cart")'
    BRANDS_PANEL = ".brands_products"
    BRAND_LINKS = ".brands_products a"

    def __init__(self, session: BrowserSession) -> None:
        self.session = session
        self.controls = session.controls
        self.search_input = session.locator(self.SEARCH_INPUT)
        self.search_button = session.locator(self.SEARCH_BUTTON)
        self.all_products = session.locator(self.FEATURES)
        self.product_cards = session.locator(self.PRODUCT_CARDS)
        self.product_items = session.locator(self.PRODUCT_INFO)
        self.product_names = session.locator(self.PRODUCT_NAMES)
        self.product_prices = session.locator(self.PRODUCT_PRICES)
        self.view_product_links = session.locator(self.VIEW_PRODUCT_LINKS)
        self.product_name = session.locator(self.DETAIL_NAME)
        self.product_category = session.locator(self.DETAIL_CATEGORY)
        self.product_price = session.locator(self.DETAIL_PRICE)
        self.product_availability = session.locator(self.DETAIL_AVAILABILITY)
        self.product_condition = session.locator(self.DETAIL_CONDITION)
        self.product_brand = session.locator(self.DETAIL_BRAND)
        self.quantity_input = session.locator(self.QUANTITY)
        self.add_to_cart_button = session.locator(self.ADD_TO_CART)
        self.added_to_cart_modal = session.locator(self.CART_MODAL)
        self.continue_shopping_button = session.locator(self.CONTINUE_SHOPPING)
        self.view_cart_button = session.locator(self.VIEW_CART)
        self.brands_panel = session.locator(self.BRANDS_PANEL)
        self.brand_links = session.locator(self.BRAND_LINKS)

    def open(self) -> None:
        self.session.goto(self.path)
        self.wait_for_load()

    def wait_for_load(self) -> None:
        self.session.wait_for_page_load()

    def product_card(self, index: int) -> Locator:
        return self.product_cards.nth(index)

    # ------------------------------------------------------------------
    # Listing and search
    # ------------------------------------------------------------------

    def search_product(self, term: str) -> None:
        self.controls.fill(self.search_input, term)
        self.controls.click(self.search_button)
        self.wait_for_load()

    def get_product_count(self) -> int:
        return self.controls.count(self.product_items)

    def get_product_name(self, index: int) -> str:
        return (self.controls.get_text(self.product_names.nth(index)) or "").strip()

    def get_product_price(self, index: int) -> str:
        return (self.controls.get_text(self.product_prices.nth(index)) or "").strip()

    def click_view_product(self, index: int = 0) -> None:
        self.controls.click(self.view_product_links.nth(index))
        self.wait_for_load()

    # ------------------------------------------------------------------
    # Product detail
    # ------------------------------------------------------------------

    def get_detail_name(self) -> str:
        return (self.controls.get_text(self.product_name) or "").strip()

    def get_detail_price(self) -> str:
        return (self.controls.get_text(self.product_price) or "").strip()

    def get_detail_brand(self) -> str:
        text = self.controls.get_inner_text(self.product_brand)
        return text.split(":", 1)[-1].strip()

    def set_quantity(self, quantity: int) -> None:
        if quantity < 1:
            raise ValueError(f"quantity must be >= 1, got {quantity}")
        self.controls.fill(self.quantity_input, str(quantity))

    def add_to_cart(self, quantity: int = 1) -> None:
        """Add the product shown on the detail page; the quantity field defaults to 1."""
        if quantity != 1:
            self.set_quantity(quantity)
        self.controls.click(self.add_to_cart_button)

    # ------------------------------------------------------------------
    # Added-to-cart modal
    # ------------------------------------------------------------------

    def is_added_to_cart_modal_visible(self) -> bool:
        return self.controls.is_visible(self.added_to_cart_modal)

    def continue_shopping(self) -> None:
        self.controls.click(self.continue_shopping_button)
        self.controls.wait_for_hidden(self.added_to_cart_modal)

    def view_cart(self) -> None:
        self.controls.click(self.view_cart_button)
        self.wait_for_load()

    # ------------------------------------------------------------------
    # Sidebar filters
    # ------------------------------------------------------------------

    def click_category(self, category: str) -> None:
        self.controls.click(self.session.locator(build_selector("product", "category", category)))

    def click_sub_category(self, sub_category: str) -> None:
        link = self.session.locator(build_selector("product", "sub_category", sub_category))
        self.controls.click(link)
        self.wait_for_load()

    def click_brand(self, brand: str) -> None:
        self.controls.click(self.session.locator(build_selector("product", "brand", brand)))
        self.wait_for_load()

    # ------------------------------------------------------------------
    # Hover add-to-cart
    # ------------------------------------------------------------------

    def hover_and_add_to_cart(self, index: int) -> None:
        """Hover a listing card to reveal its overlay, then click the overlay's button."""
        card = self.product_card(index)
        self.controls.hover(card.locator(self.PRODUCT_INFO))
        # The overlay animates in; force skips the stability check that the animation trips.
        self.controls.click(card.locator(self.OVERLAY_ADD_TO_CART), force=True)
        self.session.expect_visible(self.added_to_cart_modal)

    def add_to_cart_by_product_id(self, index: int) -> str | None:
        """Click the always-visible add-to-cart link of card `index`; returns its data-product-id."""
        button = self.product_card(index).locator(self.INFO_ADD_TO_CART).first
        product_id = self.controls.get_attribute(button, "data-product-id")
        self.controls.click(button)
        self.session.expect_visible(self.added_to_cart_modal)
        return product_id
