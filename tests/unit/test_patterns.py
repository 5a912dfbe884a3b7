import re

import pytest

from filterline.core.errors import InvalidPredicate
from filterline.patterns import Polarity, build_predicate, resolve_predicate


@pytest.mark.parametrize(
    "polarity, pattern, line, expected",
    [
        (Polarity.CONTAINS, "an", "banana", True),
        (Polarity.CONTAINS, "an", "apple", False),
        (Polarity.NOT_CONTAINS, "an", "banana", False),
        (Polarity.NOT_CONTAINS, "an", "apple", True),
        (Polarity.MATCHES, r"b.n", "a banana", True),
        (Polarity.MATCHES, r"^b", "a banana", False),
        (Polarity.NOT_MATCHES, r"^b", "a banana", True),
        (Polarity.NOT_MATCHES, r"\d+", "v2", False),
    ],
)
def test_predicate_polarity(polarity, pattern, line, expected):
    assert build_predicate(polarity, pattern)(line) is expected


def test_string_patterns_are_not_regexes():
    predicate = build_predicate(Polarity.CONTAINS, "a.c")
    assert predicate("xa.cx")
    assert not predicate("abc")


def test_precompiled_regex_is_accepted():
    predicate = build_predicate(Polarity.MATCHES, re.compile("error", re.IGNORECASE))
    assert predicate("An ERROR occurred")


def test_invalid_regex_raises_when_built():
    with pytest.raises(InvalidPredicate) as excinfo:
        build_predicate(Polarity.MATCHES, "(unclosed")
    assert excinfo.value.pattern == "(unclosed"


def test_compiled_regex_for_string_polarity_is_rejected():
    with pytest.raises(InvalidPredicate):
        build_predicate(Polarity.CONTAINS, re.compile("x"))


def test_resolve_success():
    resolution = resolve_predicate(Polarity.CONTAINS, "an")
    assert resolution.ok
    assert resolution.predicate("banana")


@pytest.mark.parametrize("value", ["", None])
def test_resolve_empty_pattern(value):
    resolution = resolve_predicate(Polarity.MATCHES, value)
    assert not resolution.ok
    assert resolution.reason == "empty pattern"
    assert resolution.error is None


def test_resolve_invalid_regex():
    resolution = resolve_predicate(Polarity.NOT_MATCHES, "a(b")
    assert not resolution.ok
    assert isinstance(resolution.error, InvalidPredicate)


def test_polarity_properties():
    assert Polarity.MATCHES.is_regex and not Polarity.MATCHES.negated
    assert Polarity.NOT_CONTAINS.negated and not Polarity.NOT_CONTAINS.is_regex
    assert Polarity.CONTAINS.history_key == Polarity.NOT_CONTAINS.history_key == "inputStr"
    assert Polarity.MATCHES.history_key == Polarity.NOT_MATCHES.history_key == "inputRegex"
