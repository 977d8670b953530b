from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional, Union


@dataclass(frozen=True)
class ExactRule:
    value: str

    def matches(self, name: str) -> bool:
        return name == self.value


@dataclass(frozen=True)
class PatternRule:
    pattern: re.Pattern

    def matches(self, name: str) -> bool:
        return self.pattern.search(name) is not None


@dataclass(frozen=True)
class SetRule:
    values: frozenset[str]

    def matches(self, name: str) -> bool:
        return name in self.values


MatchRule = Union[ExactRule, PatternRule, SetRule]

_RULE_TYPES = (ExactRule, PatternRule, SetRule)


def matches(name: str, rule: Any) -> bool:
    """
    True when `name` satisfies `rule`.

    Raw config values (str, compiled regex, list/set of str) are coerced
    first; anything else (None, numbers) matches nothing.
    """
    rule = coerce_rule(rule)
    if rule is None:
        return False
    return rule.matches(name)


def coerce_rule(value: Any) -> Optional[MatchRule]:
    """
    Turn a raw config value into a rule:
      - "logo.png"            -> ExactRule
      - re.compile(r"\\.png$") -> PatternRule
      - ["a.png", "b.png"]    -> SetRule

    Unsupported values give None so they select nothing.
    """
    if isinstance(value, _RULE_TYPES):
        return value
    if isinstance(value, str):
        return ExactRule(value)
    if isinstance(value, re.Pattern):
        return PatternRule(value)
    if isinstance(value, (list, tuple, set, frozenset)):
        if all(isinstance(v, str) for v in value):
            return SetRule(frozenset(value))
    return None


def parse_rule(text: str) -> MatchRule:
    """
    Parse a rule from command line text.

      "re:\\.svg$"        -> pattern
      "a.png,b/c.png"    -> set
      "logo.png"         -> exact
    """
    t = text.strip()
    if t.startswith("re:"):
        try:
            return PatternRule(re.compile(t[3:]))
        except re.error as e:
            raise ValueError(f"invalid pattern {t[3:]!r}: {e}") from None
    if "," in t:
        return SetRule(frozenset(part.strip() for part in t.split(",") if part.strip()))
    return ExactRule(t)
