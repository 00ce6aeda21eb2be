import json

import pytest

from config import USERS_KEY, SESSION_KEY
from services.auth_service import (
    AuthService,
    DuplicateUserError,
    InvalidCredentialsError,
    MissingFieldError,
    encode_password,
)
from services.storage import InMemoryStore


@pytest.fixture
def auth(store):
    return AuthService(store, clock=lambda: 1700000000.5)


def test_register_then_login(auth):
    registered = auth.register("Ada Lovelace", "ada@example.com", "s3cret")
    auth.logout()

    logged_in = auth.login("ada@example.com", "s3cret")
    assert logged_in == registered
    assert logged_in.name == "Ada Lovelace"


def test_register_starts_session_without_password(auth, store):
    user = auth.register("Ada", "ada@example.com", "s3cret")
    session = json.loads(store.get_item(SESSION_KEY))
    assert session == {"id": user.id, "name": "Ada", "email": "ada@example.com"}
    assert auth.get_current_user() == user


def test_register_stores_password_surrogate(auth, store):
    auth.register("Ada", "ada@example.com", "s3cret")
    users = json.loads(store.get_item(USERS_KEY))
    assert users[0]["password_hash"] == encode_password("s3cret")
    assert users[0]["password_hash"] != "s3cret"


def test_user_id_comes_from_creation_time(auth):
    assert auth.register("Ada", "ada@example.com", "pw").id == "1700000000500"


def test_user_ids_stay_unique_within_same_millisecond(auth):
    first = auth.register("Ada", "ada@example.com", "pw")
    second = auth.register("Bob", "bob@example.com", "pw")
    assert first.id != second.id


def test_login_wrong_password(auth):
    auth.register("Ada", "ada@example.com", "s3cret")
    with pytest.raises(InvalidCredentialsError):
        auth.login("ada@example.com", "wrong")


def test_login_unknown_email(auth):
    with pytest.raises(InvalidCredentialsError):
        auth.login("nobody@example.com", "pw")


def test_login_email_is_case_insensitive(auth):
    user = auth.register("Ada", "Ada@Example.com", "s3cret")
    assert auth.login("ada@EXAMPLE.com", "s3cret") == user


def test_duplicate_email_rejected_and_record_untouched(auth, store):
    auth.register("Ada", "ada@example.com", "s3cret")
    before = store.get_item(USERS_KEY)

    with pytest.raises(DuplicateUserError):
        auth.register("Imposter", "ADA@example.com", "other")

    assert store.get_item(USERS_KEY) == before


@pytest.mark.parametrize("name,email,password", [
    ("", "ada@example.com", "pw"),
    ("   ", "ada@example.com", "pw"),
    ("Ada", "", "pw"),
    ("Ada", "ada@example.com", ""),
])
def test_register_requires_all_fields(auth, name, email, password):
    with pytest.raises(MissingFieldError):
        auth.register(name, email, password)


def test_logout_clears_session(auth):
    auth.register("Ada", "ada@example.com", "pw")
    auth.logout()
    assert auth.get_current_user() is None


def test_get_current_user_without_session(auth):
    assert auth.get_current_user() is None


def test_corrupt_session_is_ignored():
    auth = AuthService(InMemoryStore({SESSION_KEY: "{oops"}))
    assert auth.get_current_user() is None


def test_corrupt_user_list_treated_as_empty():
    store = InMemoryStore({USERS_KEY: "not json"})
    auth = AuthService(store)
    user = auth.register("Ada", "ada@example.com", "pw")
    assert auth.login("ada@example.com", "pw") == user
