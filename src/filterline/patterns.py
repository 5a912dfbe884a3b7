"""Turns a user pattern and a polarity into a line predicate."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .components.filter import Predicate
from .core.errors import InvalidPredicate


class Polarity(Enum):
    CONTAINS = "contains"
    NOT_CONTAINS = "not-contains"
    MATCHES = "matches"
    NOT_MATCHES = "not-matches"

    @property
    def is_regex(self) -> bool:
        return self in (Polarity.MATCHES, Polarity.NOT_MATCHES)

    @property
    def negated(self) -> bool:
        return self in (Polarity.NOT_CONTAINS, Polarity.NOT_MATCHES)

    @property
    def history_key(self) -> str:
        """String and regex patterns keep separate histories."""
        return "inputRegex" if self.is_regex else "inputStr"


def build_predicate(polarity: Polarity, value: Union[str, "re.Pattern[str]"]) -> Predicate:
    """Builds the predicate for `value` under `polarity`.

    Regex patterns match anywhere in the line (`re.search`). Compilation
    happens here, so a malformed expression fails before any input is read.

    Raises:
        InvalidPredicate: `value` is not a valid regular expression.
    """
    if polarity.is_regex:
        if isinstance(value, re.Pattern):
            regex = value
        else:
            try:
                regex = re.compile(value)
            except re.error as e:
                raise InvalidPredicate(value, str(e)) from e
        search = regex.search
        if polarity.negated:
            return lambda line: search(line) is None
        return lambda line: search(line) is not None

    if not isinstance(value, str):
        raise InvalidPredicate(str(value), "string patterns must be plain text")
    if polarity.negated:
        return lambda line: value not in line
    return lambda line: value in line


@dataclass(frozen=True)
class Resolution:
    """The outcome of resolving a user pattern.

    Exactly one of `predicate` and `reason` is set.
    """

    predicate: Optional[Predicate] = None
    reason: Optional[str] = None
    error: Optional[InvalidPredicate] = None

    @property
    def ok(self) -> bool:
        return self.predicate is not None


def resolve_predicate(polarity: Polarity, value: Union[str, "re.Pattern[str]", None]) -> Resolution:
    """Resolves user input into a predicate without raising.

    An empty pattern and an invalid regular expression both produce a failed
    Resolution; only the latter carries an error.
    """
    if value is None or value == "":
        return Resolution(reason="empty pattern")
    try:
        return Resolution(predicate=build_predicate(polarity, value))
    except InvalidPredicate as e:
        return Resolution(reason=str(e), error=e)
