import pytest

from settings import parse_bool, parse_groups


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("acquaintances=0,close_friends=1,family=2", {
            "acquaintances": 0,
            "close_friends": 1,
            "family": 2,
        }),
        (" family = 2 , ", {"family": 2}),
        ('{"family": 2, "work": "7"}', {"family": 2, "work": 7}),
        ("", {}),
        (None, {}),
    ],
)
def test_parse_groups(raw, expected):
    assert parse_groups(raw) == expected


@pytest.mark.parametrize("raw", ["family", "=2", "family=two"])
def test_parse_groups_rejects_malformed_values(raw):
    with pytest.raises(ValueError):
        parse_groups(raw)


@pytest.mark.parametrize(
    "raw, expected",
    [("true", True), ("1", True), ("False", False), ("no", False), (True, True)],
)
def test_parse_bool(raw, expected):
    assert parse_bool(raw) is expected


def test_groups_are_loaded_from_the_environment():
    import settings

    assert settings.FRIENDSHIP_GROUPS == {
        "acquaintances": 0,
        "close_friends": 1,
        "family": 2,
    }
    assert settings.FRIENDSHIPS_TABLE == "friendships"


def test_default_database_lives_in_the_backend_folder():
    import settings

    assert settings.BACKEND_DIR.name == "backend"
    assert settings.DATABASE_PATH.parent == settings.BACKEND_DIR
