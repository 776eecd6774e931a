"""Body parsing helpers used by the upload-capable routes."""

import pytest

from trailsync.api.payload import _set_field, parse_json_list, validate
from trailsync.errors import ValidationError
from trailsync.schemas.post import PostCreate


def test_bracket_and_dotted_keys_nest():
    fields = {}
    _set_field(fields, "location[city]", "Hanoi")
    _set_field(fields, "location.country", "Vietnam")
    _set_field(fields, "title", "Ha Long Bay")
    assert fields == {
        "location": {"city": "Hanoi", "country": "Vietnam"},
        "title": "Ha Long Bay",
    }


@pytest.mark.parametrize(
    "value,expected",
    [(None, []), ("", []), ('["posts/a.png"]', ["posts/a.png"]), (["posts/b.png"], ["posts/b.png"])],
)
def test_parse_json_list(value, expected):
    assert parse_json_list(value, "photosToDelete") == expected


@pytest.mark.parametrize("value", ["nope", '{"a": 1}', "[1, 2]", 42])
def test_parse_json_list_rejects(value):
    with pytest.raises(ValidationError, match="Invalid photosToDelete format"):
        parse_json_list(value, "photosToDelete")


def test_validate_coerces_form_strings():
    body = validate(
        PostCreate,
        {
            "title": "t",
            "mapLink": "m",
            "price": "120",
            "numberOfDays": "2",
            "location": {"country": "Laos"},
            "description": "d",
        },
    )
    assert body.price == 120
    assert body.number_of_days == 2
    assert body.location.city is None


def test_validate_maps_errors_to_400():
    with pytest.raises(ValidationError) as exc:
        validate(PostCreate, {"title": "t"})
    assert exc.value.status_code == 400
    assert "mapLink" in exc.value.message or "map_link" in exc.value.message
