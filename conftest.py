"""
Shared fixtures for listings and API tests.
"""
import pytest

from listings.database import db_connect, db_init, db_insert_user
from listings.errors import InvalidInput, ProviderError
from listings.models import GeocodeResult, User
from listings.utils import clean_text

CAIRO = (30.0444, 31.2357)
GIZA = (30.0131, 31.2089)
ALEXANDRIA = (31.2001, 29.9187)


class FakeGeocoder:
    """
    Geocoder answering from a dict.

    Values are (lat, lng) tuples, None for no match, or an exception to raise.
    Unknown addresses are no match.
    """

    def __init__(self, answers=None):
        self.answers = dict(answers or {})
        self.calls = []

    def resolve(self, address):
        query = clean_text(address)
        if not query:
            raise InvalidInput("Address must not be empty")
        self.calls.append(query)
        answer = self.answers.get(query)
        if isinstance(answer, BaseException):
            raise answer
        if answer is None:
            return None
        return GeocodeResult(latitude=answer[0], longitude=answer[1], display_address=query)


@pytest.fixture
def geocoder():
    return FakeGeocoder({
        "Cairo, Egypt": CAIRO,
        "Giza, Egypt": GIZA,
        "Alexandria, Egypt": ALEXANDRIA,
        "Nowhere Land": None,
        "Flaky Street": ProviderError("provider down", cause=TimeoutError()),
    })


@pytest.fixture
def conn(tmp_path):
    c = db_connect(str(tmp_path / "listings.db"))
    db_init(c)
    yield c
    c.close()


@pytest.fixture
def user(conn):
    return db_insert_user(conn, User(name="Amira", email="amira@example.com"))


@pytest.fixture
def other_user(conn):
    return db_insert_user(conn, User(name="Omar", email="omar@example.com"))
