import pytest

from treepruner.config import DEFAULT_SEED
from treepruner.model.codec import (
    TreeStateError, decode, encode, parse, state_from_query, state_query
)


def test_encode_empty():
    assert encode(12345, []) == "12345_p"


def test_encode_sorts_and_dedups():
    assert encode(7, [9, 3, 3, 10]) == "7_p3,9,10"


@pytest.mark.parametrize("seed, ids", [
    (12345, frozenset()),
    (0, frozenset({0})),
    (-5, frozenset({1, 2, 300})),
    (99999, frozenset(range(40))),
])
def test_decode_inverts_encode(seed, ids):
    assert decode(encode(seed, ids)) == (seed, ids)


def test_parse_without_marker():
    assert parse("42") == (42, frozenset())


def test_parse_strips_whitespace():
    assert parse("  8_p1,2\n") == (8, frozenset({1, 2}))


@pytest.mark.parametrize("text", ["abc_p1", "_p1", "12_p1,x", "12_p1,,2", "12_p-3", "1.5_p"])
def test_parse_rejects_malformed(text):
    with pytest.raises(TreeStateError):
        parse(text)


def test_tree_state_error_is_value_error():
    assert issubclass(TreeStateError, ValueError)


@pytest.mark.parametrize("text", [None, ""])
def test_decode_missing_gives_defaults(text):
    assert decode(text) == (DEFAULT_SEED, frozenset())


def test_decode_malformed_falls_back(caplog):
    assert decode("garbage_pwhat") == (DEFAULT_SEED, frozenset())
    assert "Falling back" in caplog.text


def test_state_query():
    assert state_query(5, [2, 1]) == "state=5_p1,2"


@pytest.mark.parametrize("query, expected", [
    ("?state=5_p1,2", "5_p1,2"),
    ("state=5_p", "5_p"),
    ("treepruner://tree?state=77_p3", "77_p3"),
    ("?state=5_p1%2C2", "5_p1,2"),
    ("?other=1", None),
    ("", None),
])
def test_state_from_query(query, expected):
    assert state_from_query(query) == expected
