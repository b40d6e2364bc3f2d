"""Pluggable validators run against loaded configuration objects.

Purpose
-------
Keep semantic checks (for example "age must be at least 18") outside the
merge engine. The manager accepts any object satisfying
:class:`~lib_tracked_config.application.ports.Validator`; this module ships a
small rule-based implementation.

Contents
    - ``Rule``: callable signature accepted by :class:`RuleBasedValidator`.
    - ``RuleBasedValidator``: ordered list of rules, first failure wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from ..domain.errors import RuleBasedValidationError

T = TypeVar("T")

Rule = Callable[[T], "bool | None"]
"""A rule returns ``False`` to reject an object, or raises ``ValidationError`` itself."""


@dataclass(frozen=True, slots=True)
class _RegisteredRule(Generic[T]):
    rule: Rule[T]
    message: str


class RuleBasedValidator(Generic[T]):
    """Validate objects against an ordered list of rules.

    Two rule flavours are supported:

    * boolean rules return ``False`` when the object is invalid; the validator
      then raises :class:`RuleBasedValidationError` with the registered
      message (or the rule's name).
    * complex rules raise :class:`~lib_tracked_config.domain.errors.ValidationError`
      themselves and return nothing.

    Examples
    --------
    >>> from dataclasses import dataclass
    >>> @dataclass
    ... class Person:
    ...     name: str = ""
    >>> validator = RuleBasedValidator()
    >>> validator.add_rule(lambda obj: len(obj.name) < 10, "name too long")
    >>> validator.validate(Person(name="Steve"))
    >>> validator.validate(Person(name="SteveWithLongName"))
    Traceback (most recent call last):
    ...
    lib_tracked_config.domain.errors.RuleBasedValidationError: name too long
    """

    def __init__(self) -> None:
        self._rules: list[_RegisteredRule[T]] = []

    def add_rule(self, rule: Rule[T], message: str | None = None) -> None:
        """Append *rule*; *message* is used when a boolean rule returns ``False``."""

        label = message or getattr(rule, "__name__", repr(rule))
        self._rules.append(_RegisteredRule(rule, label))

    def validate(self, obj: T) -> None:
        """Run every rule in registration order against *obj*."""

        for registered in self._rules:
            if registered.rule(obj) is False:
                raise RuleBasedValidationError(registered.message)

    def __len__(self) -> int:
        return len(self._rules)
