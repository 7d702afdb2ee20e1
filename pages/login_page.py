"""Login/signup page object for https://automationexercise.com/login.

The page carries both forms plus the header links that only exist for a
logged-in user (logout, delete account).
"""

from __future__ import annotations

from playwright.sync_api import Locator, expect

from pages.session import BrowserSession


class LoginPage:
    """Page object for login, signup and account-level header actions."""

    path = "/login"

    LOGIN_EMAIL = 'input[data-qa="login-email"]'
    LOGIN_PASSWORD = 'input[data-qa="login-password"]'
    LOGIN_BUTTON = 'button[data-qa="login-button"]'
    SIGNUP_NAME = 'input[data-qa="signup-name"]'
    SIGNUP_EMAIL = 'input[data-qa="signup-email"]'
    SIGNUP_BUTTON = 'button[data-qa="signup-button"]'
    LOGIN_ERROR = 'p:has-text("Your email or password is incorrect!")'
    EMAIL_EXISTS = 'p:has-text("Email Address already exist!")'
    LOGGED_IN_USER = 'a:has-text("Logged in as")'
    LOGOUT_LINK = 'a[href="/logout"]'
    DELETE_ACCOUNT_LINK = 'a[href="/delete_account"]'
    ACCOUNT_DELETED = 'h2:has-text("Account Deleted!")'

    def __init__(self, session: BrowserSession) -> None:
        self.session = session
        self.controls = session.controls
        self.login_email = session.locator(self.LOGIN_EMAIL)
        self.login_password = session.locator(self.LOGIN_PASSWORD)
        self.login_button = session.locator(self.LOGIN_BUTTON)
        self.signup_name = session.locator(self.SIGNUP_NAME)
        self.signup_email = session.locator(self.SIGNUP_EMAIL)
        self.signup_button = session.locator(self.SIGNUP_BUTTON)
        self.login_error_msg = session.locator(self.LOGIN_ERROR)
        self.email_exists_msg = session.locator(self.EMAIL_EXISTS)
        self.logged_in_user = session.locator(self.LOGGED_IN_USER)
        self.logout_link = session.locator(self.LOGOUT_LINK)
        self.delete_account_link = session.locator(self.DELETE_ACCOUNT_LINK)
        self.account_deleted_msg = session.locator(self.ACCOUNT_DELETED)

    def open(self) -> None:
        self.session.goto(self.path)
        self.wait_for_load()

    def wait_for_load(self) -> None:
        self.session.wait_for_page_load()

    def login(self, email: str, password: str) -> None:
        self.controls.fill(self.login_email, email)
        self.controls.fill(self.login_password, password)
        self.controls.click(self.login_button)

    def signup(self, name: str, email: str) -> None:
        """Submit the 'New User Signup!' form; success lands on /signup."""
        self.controls.fill(self.signup_name, name)
        self.controls.fill(self.signup_email, email)
        self.controls.click(self.signup_button)

    def logout(self) -> None:
        self.controls.click(self.logout_link)

    def delete_account(self) -> None:
        self.controls.click(self.delete_account_link)

    def is_logged_in(self) -> bool:
        return self.controls.is_visible(self.logged_in_user)

    def logged_in_text(self) -> str:
        return self.controls.get_inner_text(self.logged_in_user)

    def validation_message(self, field: Locator) -> str:
        return self.session.validation_message(field)

    def assert_logged_in_as(self, user_name: str) -> None:
        expect(self.logged_in_user).to_be_visible()
        expect(self.logged_in_user).to_contain_text(user_name)

    def assert_login_error(self) -> None:
        expect(self.login_error_msg).to_be_visible()

    def assert_signup_error(self) -> None:
        expect(self.email_exists_msg).to_be_visible()

    def assert_account_deleted(self) -> None:
        expect(self.account_deleted_msg).to_be_visible()
