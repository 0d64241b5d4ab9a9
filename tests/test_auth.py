import pytest

from rssagg.auth import AuthError, get_api_key


def test_returns_key_from_valid_header():
    assert get_api_key({"Authorization": "ApiKey token"}) == "token"


def test_header_name_is_case_insensitive():
    assert get_api_key({"authorization": "ApiKey secret"}) == "secret"


def test_missing_header_raises():
    with pytest.raises(AuthError, match="missing API key in Authorization header"):
        get_api_key({})


def test_empty_header_raises_missing():
    with pytest.raises(AuthError, match="missing API key"):
        get_api_key({"Authorization": ""})


@pytest.mark.parametrize(
    "value",
    ["ApiKey", "ApiKey token extra", "ApiKey  token", "token"],
)
def test_wrong_number_of_parts_raises(value):
    with pytest.raises(AuthError, match="invalid API key format, expected$"):
        get_api_key({"Authorization": value})


@pytest.mark.parametrize("value", ["Bearer token", "apikey token", "Basic placeholder"])
def test_wrong_scheme_raises(value):
    with pytest.raises(AuthError, match="expected ApiKey"):
        get_api_key({"Authorization": value})


def test_auth_error_is_value_error():
    with pytest.raises(ValueError):
        get_api_key({"Authorization": "Bearer token"})