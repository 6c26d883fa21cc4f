import pytest

from app.services.tryon.garments import map_cloth_type


@pytest.mark.parametrize(
    "cloth_type,expected",
    [
        ("Chudi", "full_set"),
        ("Blazer", "full_set"),
        ("TRADITIONAL wear", "full_set"),
        ("modern", "full_set"),
        ("FullBody", "full_set"),
        ("Casuals", "upper"),
        ("Sporty", "upper"),
        ("", "upper"),
        (None, "upper"),
    ],
)
def test_map_cloth_type(cloth_type, expected):
    assert map_cloth_type(cloth_type) == expected


def test_keyword_match_is_substring():
    # "Sportswear Fullsleeve" contains "full"
    assert map_cloth_type("Sportswear Fullsleeve") == "full_set"
