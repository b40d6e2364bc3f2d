"""Shared configuration types for the test-suite.

The shapes mirror what applications typically declare: flat records with a
mix of absent-by-default and valued-by-default fields, nested records, and a
subtype that customises the default of a nested record.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Person:
    name: str | None = None
    age: int = 0
    occupation: str = "Unemployed"


@dataclass
class Database:
    host: str = "localhost"
    port: int = 5432
    tls: bool = False


@dataclass
class Settings:
    title: str | None = None
    retries: int = 3
    database: Database = field(default_factory=Database)
    tags: list[str] | None = None


@dataclass
class Inner:
    level: int = 1
    label: str | None = None


@dataclass
class Outer:
    inner: Inner = field(default_factory=Inner)


@dataclass
class TunedOuter(Outer):
    inner: Inner = field(default_factory=lambda: Inner(level=5))


@dataclass(frozen=True)
class FrozenRecord:
    value: int = 0


@dataclass
class NeedsArgument:
    value: int


@dataclass(slots=True)
class SlottedService:
    name: str | None = None
    port: int = 80
