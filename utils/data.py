"""Static fixture records and dynamic data helpers for shop scenarios.

Static presets replace the JSON fixture file: each record is a frozen
dataclass so a scenario can never leak edits into the next one. Dynamic
helpers produce unique names and emails so registrations never collide.
"""

from __future__ import annotations

import string
import time
from dataclasses import dataclass
from datetime import date, timedelta

from faker import Faker

fake = Faker()

_RANDOM_ALPHABET = string.ascii_lowercase + string.digits
_DATE_FORMATS = {
    "YYYY-MM-DD": "%Y-%m-%d",
    "MM/DD/YYYY": "%m/%d/%Y",
    "DD-MM-YYYY": "%d-%m-%Y",
}
DEFAULT_PASSWORD = "Test@123"


@dataclass(frozen=True)
class AccountData:
    """Password and birth date entered on the account-information form."""

    password: str
    day: str
    month: str
    year: str


@dataclass(frozen=True)
class AddressData:
    first_name: str
    last_name: str
    address1: str
    country: str
    state: str
    city: str
    zipcode: str
    mobile_number: str
    company: str | None = None
    address2: str | None = None


@dataclass(frozen=True)
class UserCredentials:
    """Identity of a user the suite signs up with."""

    name: str
    email: str
    password: str = DEFAULT_PASSWORD


ACCOUNT_DATA: dict[str, AccountData] = {
    "default": AccountData(password=DEFAULT_PASSWORD, day="15", month="6", year="1990"),
    "minimal": AccountData(password=DEFAULT_PASSWORD, day="1", month="1", year="2000"),
    "alternate": AccountData(password=DEFAULT_PASSWORD, day="28", month="11", year="1985"),
}

ADDRESS_DATA: dict[str, AddressData] = {
    "usa": AddressData(
        first_name="John",
        last_name="Doe",
        company="Acme Corp",
        address1="123 Main Street",
        address2="Suite 400",
        country="United States",
        state="California",
        city="Los Angeles",
        zipcode="90001",
        mobile_number="+12135550100",
    ),
    "minimal": AddressData(
        first_name="Min",
        last_name="User",
        address1="1 Test Road",
        country="Canada",
        state="Ontario",
        city="Toronto",
        zipcode="M5H2N2",
        mobile_number="+14165550100",
    ),
    "india": AddressData(
        first_name="Priya",
        last_name="Sharma",
        company="Sharma Textiles",
        address1="42 MG Road",
        country="India",
        state="Karnataka",
        city="Bengaluru",
        zipcode="560001",
        mobile_number="+919800000000",
    ),
    "australia": AddressData(
        first_name="Liam",
        last_name="Smith",
        address1="7 George Street",
        address2="Level 3",
        country="Australia",
        state="New South Wales",
        city="Sydney",
        zipcode="2000",
        mobile_number="+61290000000",
    ),
}


def generate_random_string(length: int = 8) -> str:
    if length < 0:
        raise ValueError(f"length must be >= 0, got {length}")
    return fake.lexify("?" * length, letters=_RANDOM_ALPHABET)


def timestamp_ms() -> int:
    return int(time.time() * 1000)


def generate_email(prefix: str | None = None) -> str:
    """Unique address on example.com: prefix + 5 random chars + millisecond timestamp.

    Without a prefix a Faker user name is used.
    """
    if prefix is None:
        prefix = fake.user_name().lower()
    return f"{prefix}{generate_random_string(5)}{timestamp_ms()}@example.com"


def generate_username(prefix: str | None = None) -> str:
    if prefix is None:
        prefix = fake.user_name()
    return f"{prefix}{generate_random_string(4)}{timestamp_ms()}"


def generate_phone(country_code: str = "+1") -> str:
    return f"{country_code}{fake.numerify('%' + '#' * 9)}"


def generate_user(prefix: str = "user", password: str = DEFAULT_PASSWORD) -> UserCredentials:
    return UserCredentials(
        name=generate_username(prefix),
        email=generate_email(prefix.lower()),
        password=password,
    )


def current_date(fmt: str = "YYYY-MM-DD", *, today: date | None = None) -> str:
    """Format today's date; unknown formats fall back to YYYY-MM-DD."""
    day = today or date.today()
    return day.strftime(_DATE_FORMATS.get(fmt, _DATE_FORMATS["YYYY-MM-DD"]))


def future_date(days_from_now: int = 30, *, today: date | None = None) -> str:
    day = (today or date.today()) + timedelta(days=days_from_now)
    return day.strftime(_DATE_FORMATS["YYYY-MM-DD"])
