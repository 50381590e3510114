import re

import pytest

from universal_sdk.errors import ConfigurationError
from universal_sdk.paths import generate_string_from_regex, get_sdk_path, openapi_compliant_path


def test_string_path_is_returned_unchanged():
    assert get_sdk_path("/widgets/:id") == "/widgets/:id"


def test_list_resolves_to_last_element():
    assert get_sdk_path(["/first", "/second", "/third"]) == "/third"


def test_list_does_not_mutate_input():
    routes = ["/first", "/second"]
    get_sdk_path(routes)
    assert routes == ["/first", "/second"]


def test_pattern_resolves_to_matching_sample():
    pattern = re.compile(r"^/widgets/\d+/items/[a-z]+$")
    path = get_sdk_path(pattern)
    assert pattern.fullmatch(path)
    assert path == "/widgets/0/items/a"


@pytest.mark.parametrize(
    "pattern",
    [
        r"/users/(?:admin|guest)/\w{3}",
        r"/files/(?P<name>[^/]+)\.csv",
        r"/a+b*c?/\s?x",
        r"/v[12]/items/\d{2,4}",
    ],
)
def test_generated_samples_match_their_pattern(pattern):
    assert re.fullmatch(pattern, generate_string_from_regex(pattern))


def test_list_of_patterns_uses_last_pattern():
    assert get_sdk_path(["/ignored", re.compile(r"/items/\d")]) == "/items/0"


@pytest.mark.parametrize("value", ["", None, []])
def test_empty_path_is_a_configuration_error(value):
    with pytest.raises(ConfigurationError):
        get_sdk_path(value)


def test_unmatched_group_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        generate_string_from_regex("/broken/(abc")


def test_openapi_compliant_path():
    assert openapi_compliant_path("/widgets/:id/parts/:partId") == "/widgets/{id}/parts/{partId}"
