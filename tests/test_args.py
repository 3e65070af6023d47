import pytest

from fmbot.args import parse_args, tokenize


def test_tokenize_keeps_quoted_phrases() -> None:
    assert tokenize('"Bohemian Rhapsody" Queen') == ["Bohemian Rhapsody", "Queen"]


def test_tokenize_glues_quotes_to_keys() -> None:
    assert tokenize('track="Bohemian Rhapsody" by') == ["track=Bohemian Rhapsody", "by"]


def test_tokenize_blank_input() -> None:
    assert tokenize("   ") == []


def test_long_flags_and_positionals() -> None:
    parsed = parse_args("--a=1 --b=2 pos1 pos2")
    assert dict(parsed.map) == {"a": "1", "b": "2"}
    assert parsed.unnamed == ("pos1", "pos2")


def test_short_flag_cluster() -> None:
    parsed = parse_args("-xyz")
    assert dict(parsed.map) == {"x": "true", "y": "true", "z": "true"}
    assert parsed.unnamed == ()


def test_bare_long_flag_is_true() -> None:
    assert dict(parse_args("--flag").map) == {"flag": "true"}


def test_long_flag_followed_by_flag_stays_boolean() -> None:
    parsed = parse_args("--flag --other=2")
    assert dict(parsed.map) == {"flag": "true", "other": "2"}


def test_long_flag_takes_next_word() -> None:
    parsed = parse_args(["--artist", "Drake", "extra"])
    assert dict(parsed.map) == {"artist": "Drake"}
    assert parsed.unnamed == ("extra",)


def test_quoted_value_with_spaces() -> None:
    parsed = parse_args('track="Bohemian Rhapsody" by Queen')
    assert parsed.map["track"] == "Bohemian Rhapsody"
    assert parsed.unnamed == ("by", "Queen")


def test_colon_form() -> None:
    parsed = parse_args("--period:month user:someone")
    assert dict(parsed.map) == {"period": "month", "user": "someone"}


def test_colon_before_equals_splits_on_colon() -> None:
    assert dict(parse_args("--a:b=c").map) == {"a": "b=c"}


def test_equals_before_colon_splits_on_equals() -> None:
    assert dict(parse_args("--a=b:c").map) == {"a": "b:c"}


def test_only_first_separator_splits() -> None:
    assert dict(parse_args("key=a=b").map) == {"key": "a=b"}


def test_later_flag_overwrites_earlier() -> None:
    assert parse_args("--a=1 --a=2").map["a"] == "2"


def test_lone_dash_is_positional() -> None:
    assert parse_args("-").unnamed == ("-",)


def test_map_is_read_only() -> None:
    parsed = parse_args("--a=1")
    with pytest.raises(TypeError):
        parsed.map["a"] = "2"  # type: ignore[index]


def test_empty_tokens_are_skipped() -> None:
    parsed = parse_args(["", "word", ""])
    assert parsed.unnamed == ("word",)
    assert dict(parsed.map) == {}


@pytest.mark.parametrize(
    "raw",
    ["", '"', "'", "--", "---", "=", ":", "--=", '"unterminated', "a:b:c", "-=-", "\u200e\u2067"],
)
def test_never_raises(raw: str) -> None:
    parsed = parse_args(raw)
    assert isinstance(parsed.unnamed, tuple)
