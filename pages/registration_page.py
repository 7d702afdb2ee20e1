"""Account-creation form reached after a successful signup (/signup)."""

from __future__ import annotations

from enum import Enum

from playwright.sync_api import Locator

from pages.session import BrowserSession
from utils.data import AccountData, AddressData
from utils.errors import UnknownTitleError


class Title(str, Enum):
    MR = "Mr"
    MRS = "Mrs"

    @classmethod
    def parse(cls, value: Title | str) -> Title:
        """Map 'Mr'/'Mrs' (or a Title) to a Title; anything else raises UnknownTitleError."""
        if isinstance(value, cls):
            return value
        for title in cls:
            if title.value == value:
                return title
        raise UnknownTitleError(value, [title.value for title in cls])


class RegistrationPage:
    """Page object for the 'Enter Account Information' form."""

    path = "/signup"

    TITLE_MR = "#id_gender1"
    TITLE_MRS = "#id_gender2"
    PASSWORD = "#password"
    BIRTH_DAY = "#days"
    BIRTH_MONTH = "#months"
    BIRTH_YEAR = "#years"
    NEWSLETTER = "#newsletter"
    SPECIAL_OFFERS = "#optin"
    FIRST_NAME = "#first_name"
    LAST_NAME = "#last_name"
    COMPANY = "#company"
    ADDRESS1 = "#address1"
    ADDRESS2 = "#address2"
    COUNTRY = "#country"
    STATE = "#state"
    CITY = "#city"
    ZIPCODE = "#zipcode"
    MOBILE_NUMBER = "#mobile_number"
    CREATE_ACCOUNT = 'button[data-qa="create-account"]'
    ACCOUNT_CREATED = 'h2:has-text("Account Created!")'
    CONTINUE = 'a[data-qa="continue-button"]'
    FORM_HEADING = 'h2:has-text("Enter Account Information")'

    def __init__(self, session: BrowserSession) -> None:
        self.session = session
        self.controls = session.controls
        self.title_mr = session.locator(self.TITLE_MR)
        self.title_mrs = session.locator(self.TITLE_MRS)
        self.password = session.locator(self.PASSWORD)
        self.birth_day = session.locator(self.BIRTH_DAY)
        self.birth_month = session.locator(self.BIRTH_MONTH)
        self.birth_year = session.locator(self.BIRTH_YEAR)
        self.newsletter_checkbox = session.locator(self.NEWSLETTER)
        self.special_offers_checkbox = session.locator(self.SPECIAL_OFFERS)
        self.first_name = session.locator(self.FIRST_NAME)
        self.last_name = session.locator(self.LAST_NAME)
        self.company = session.locator(self.COMPANY)
        self.address1 = session.locator(self.ADDRESS1)
        self.address2 = session.locator(self.ADDRESS2)
        self.country = session.locator(self.COUNTRY)
        self.state = session.locator(self.STATE)
        self.city = session.locator(self.CITY)
        self.zipcode = session.locator(self.ZIPCODE)
        self.mobile_number = session.locator(self.MOBILE_NUMBER)
        self.create_account_button = session.locator(self.CREATE_ACCOUNT)
        self.account_created_msg = session.locator(self.ACCOUNT_CREATED)
        self.continue_button = session.locator(self.CONTINUE)
        self.form_heading = session.locator(self.FORM_HEADING)
        self._title_radios: dict[Title, Locator] = {
            Title.MR: self.title_mr,
            Title.MRS: self.title_mrs,
        }

    def open(self) -> None:
        # The form is only served after the signup POST; direct hits redirect to /login.
        self.session.goto(self.path)
        self.wait_for_load()

    def wait_for_load(self) -> None:
        self.session.wait_for_page_load()

    def title_radio(self, title: Title | str) -> Locator:
        return self._title_radios[Title.parse(title)]

    def select_title(self, title: Title | str = Title.MR) -> None:
        self.controls.check(self.title_radio(title))

    def fill_account_info(self, account: AccountData) -> None:
        self.controls.fill(self.password, account.password)
        self.controls.select_by_value(self.birth_day, account.day)
        self.controls.select_by_value(self.birth_month, account.month)
        self.controls.select_by_value(self.birth_year, account.year)

    def select_newsletter_and_offers(self) -> None:
        self.controls.check(self.newsletter_checkbox)
        self.controls.check(self.special_offers_checkbox)

    def fill_address_info(self, address: AddressData) -> None:
        self.controls.fill(self.first_name, address.first_name)
        self.controls.fill(self.last_name, address.last_name)
        if address.company:
            self.controls.fill(self.company, address.company)
        self.controls.fill(self.address1, address.address1)
        if address.address2:
            self.controls.fill(self.address2, address.address2)
        self.controls.select_by_value(self.country, address.country)
        self.controls.fill(self.state, address.state)
        self.controls.fill(self.city, address.city)
        self.controls.fill(self.zipcode, address.zipcode)
        self.controls.fill(self.mobile_number, address.mobile_number)

    def complete_registration(
        self,
        account: AccountData,
        address: AddressData,
        title: Title | str = Title.MR,
    ) -> None:
        """Fill and submit the whole form.

        The title is resolved before anything is typed, so an unknown title
        raises UnknownTitleError with the form untouched. Any later failure
        leaves the form partially filled.
        """
        title_radio = self.title_radio(title)
        self.controls.check(title_radio)
        self.fill_account_info(account)
        self.select_newsletter_and_offers()
        self.fill_address_info(address)
        self.controls.click(self.create_account_button)

    def click_create_account(self) -> None:
        self.controls.click(self.create_account_button)

    def click_continue(self) -> None:
        self.controls.click(self.continue_button)

    def is_account_created(self) -> bool:
        return self.controls.is_visible(self.account_created_msg)

    def is_password_required(self) -> bool:
        return bool(self.password.evaluate("(el) => el.required"))

    def validation_message(self, field: Locator) -> str:
        return self.session.validation_message(field)
