"""End-to-end coverage for :class:`ConfigurationManager`.

Exercises the load → mutate → report → save cycle through in-memory and
file-backed sources, including the documented stack scenarios (primary not
last, absent sources, delta saves and serialization overrides).
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from lib_tracked_config import (
    ChangeTrackingError,
    ConfigurationManager,
    FileConfigurationSource,
    MemorySource,
    ReadOnlySourceError,
    RuleBasedValidationError,
    RuleBasedValidator,
    SourceConfigurationError,
    UsageError,
    read_config,
)
from tests.support import Database, Inner, Person, Settings, TunedOuter


def _adult_validator() -> RuleBasedValidator[Person]:
    validator: RuleBasedValidator[Person] = RuleBasedValidator()
    validator.add_rule(lambda person: person.age >= 18, "age must be at least 18")
    return validator


def test_primary_not_last_keeps_later_overrides() -> None:
    manager = ConfigurationManager(
        Person,
        MemorySource(Person(age=10, name="Matthew"), name="s1"),
        MemorySource(Person(name="Fred", occupation="Homeless"), name="s2", primary_source=True),
        MemorySource(Person(occupation="Awesome"), name="s3"),
    )
    assert manager.primary.name == "s2"
    assert manager.out == Person(age=10, name="Fred", occupation="Awesome")


def test_last_source_is_primary_by_default() -> None:
    last = MemorySource(Person(), name="last")
    manager = ConfigurationManager(Person, MemorySource(Person(), name="first"), last)
    assert manager.primary is last


def test_single_absent_source_yields_default_instance() -> None:
    manager = ConfigurationManager(Person, MemorySource(None))
    assert manager.out == Person()
    assert manager.changes_by_name() == {}


def test_absent_optional_source_is_skipped() -> None:
    manager = ConfigurationManager(Person, MemorySource(None, name="site"), MemorySource(Person(age=30)))
    assert manager.out == Person(age=30)


def test_required_absent_source_fails() -> None:
    with pytest.raises(SourceConfigurationError):
        ConfigurationManager(Person, MemorySource(None, required=True))


def test_required_missing_file_fails(tmp_path: Path) -> None:
    source = FileConfigurationSource(tmp_path / "missing.json", Person, required=True)
    with pytest.raises(SourceConfigurationError):
        ConfigurationManager(Person, source)


def test_invalid_stacks_are_rejected() -> None:
    with pytest.raises(SourceConfigurationError):
        ConfigurationManager(Person)
    with pytest.raises(SourceConfigurationError, match="Only one primary source"):
        ConfigurationManager(
            Person,
            MemorySource(Person(), name="a", primary_source=True),
            MemorySource(Person(), name="b", primary_source=True),
        )
    with pytest.raises(SourceConfigurationError, match="expected Person"):
        ConfigurationManager(Person, MemorySource(Settings()))  # type: ignore[arg-type]


def test_save_changes_persists_delta_only() -> None:
    primary = MemorySource(Person(age=20, name="Timothy"), name="primary", primary_source=True)
    manager = ConfigurationManager(Person, primary, MemorySource(Person(name="Fred"), name="secondary"))
    manager.out.age = 88
    written = manager.save_changes()
    assert written == ("name", "age")
    assert primary.saved_fields == ("name", "age")
    assert primary.saved_object == Person(age=88, name="Timothy")


def test_changes_report_primary_customisations_and_live_edits() -> None:
    manager = ConfigurationManager(
        Person,
        MemorySource(Person(age=10, name="Matthew"), name="site"),
        MemorySource(Person(name="Fred"), name="local"),
    )
    assert manager.changes_by_name() == {"name": "Fred"}
    manager.out.occupation = "Baker"
    assert manager.changes_by_name() == {"name": "Fred", "occupation": "Baker"}
    assert manager.changed_fields() == ("name", "occupation")
    assert manager.unchanged_fields() == ("age",)


def test_live_edit_wins_over_primary_value() -> None:
    manager = ConfigurationManager(
        Person,
        MemorySource(Person(age=10), name="site"),
        MemorySource(Person(name="Fred"), name="local"),
    )
    manager.out.name = "George"
    assert manager.changes_by_name() == {"name": "George"}


def test_primary_value_equal_to_default_is_not_a_change() -> None:
    manager = ConfigurationManager(
        Person,
        MemorySource(Person(age=10), name="site"),
        MemorySource(Person(age=0, occupation="Unemployed"), name="local"),
    )
    assert manager.out.age == 10
    assert manager.changes_by_name() == {}


def test_reverting_a_live_edit_to_baseline_clears_it() -> None:
    manager = ConfigurationManager(Person, MemorySource(Person(age=10), name="site"), MemorySource(Person()))
    manager.out.age = 11
    assert manager.changed_fields() == ("age",)
    manager.out.age = 10
    assert manager.changed_fields() == ()


def test_nested_changes_are_reported_by_path() -> None:
    manager = ConfigurationManager(
        Settings,
        MemorySource(Settings(database=Database(host="db.internal")), name="site"),
        MemorySource(Settings(title="Local"), name="local"),
    )
    manager.out.database.port = 6543
    assert manager.changed_paths() == {"title": "Local", "database.port": 6543}
    assert manager.changes_by_name()["database"] == Database(host="db.internal", port=6543)


def test_subtype_nested_default_is_treated_as_unset() -> None:
    manager = ConfigurationManager(
        TunedOuter,
        MemorySource(TunedOuter(inner=Inner(level=9)), name="site"),
        MemorySource(TunedOuter(), name="local"),
    )
    assert manager.out.inner.level == 9
    assert manager.changes_by_name() == {}


def test_always_and_never_serialize_shape_the_delta() -> None:
    primary = MemorySource(Person(name="Tim"), name="local")
    manager = ConfigurationManager(
        Person,
        MemorySource(Person(age=30), name="site"),
        primary,
        always_serialize=["occupation"],
    )
    manager.out.age = 31
    manager.never_serialize("age")
    assert manager.delta() == {"name": "Tim", "occupation": "Unemployed"}
    assert manager.save_changes() == ("name", "occupation")
    assert primary.saved_object == Person(name="Tim", occupation="Unemployed")

    manager.always_serialize("age")
    assert manager.delta() == {"name": "Tim", "age": 31, "occupation": "Unemployed"}


def test_serialization_overrides_reject_unknown_fields() -> None:
    with pytest.raises(UsageError):
        ConfigurationManager(Person, MemorySource(Person()), never_serialize=["height"])
    manager = ConfigurationManager(Person, MemorySource(Person()))
    with pytest.raises(UsageError):
        manager.always_serialize("height")


def test_change_tracking_cannot_be_disabled() -> None:
    manager = ConfigurationManager(Person, MemorySource(Person()))
    assert manager.change_tracking_enabled
    manager.enable_change_tracking()
    with pytest.raises(ChangeTrackingError):
        manager.disable_change_tracking()
    assert manager.change_tracking_enabled


def test_validator_runs_on_merged_object() -> None:
    with pytest.raises(RuleBasedValidationError, match="at least 18"):
        ConfigurationManager(Person, MemorySource(Person(age=10)), validator=_adult_validator())


def test_later_override_makes_failing_value_moot() -> None:
    manager = ConfigurationManager(
        Person,
        MemorySource(Person(age=10), name="site"),
        MemorySource(Person(age=20), name="local"),
        validator=_adult_validator(),
    )
    assert manager.out.age == 20


def test_rejected_configuration_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.ERROR, logger="lib_tracked_config")
    with pytest.raises(RuleBasedValidationError):
        read_config(Person, MemorySource(Person(age=1)), validator=_adult_validator())
    assert any(record.getMessage() == "configuration_invalid" for record in caplog.records)


def test_save_to_read_only_target_fails() -> None:
    manager = ConfigurationManager(Person, MemorySource(Person(name="Tim"), read_only=True))
    with pytest.raises(ReadOnlySourceError):
        manager.save_changes()


def test_origin_reports_supplying_source() -> None:
    manager = ConfigurationManager(
        Settings,
        MemorySource(Settings(title="Site", database=Database(port=1)), name="site"),
        MemorySource(Settings(title="Local"), name="local"),
    )
    assert manager.origin("title") == {"layer": "local", "path": None, "key": "title"}
    assert manager.origin("database.port")["layer"] == "site"
    assert manager.origin("retries") is None


def test_read_config_returns_merged_object() -> None:
    assert read_config(Person, MemorySource(Person(age=1)), MemorySource(Person(name="Fred"))) == Person(
        name="Fred", age=1
    )


def test_file_stack_round_trip(tmp_path: Path) -> None:
    site = tmp_path / "site.json"
    local = tmp_path / "local.json"
    site.write_text(json.dumps({"retries": 5, "database": {"host": "db.internal"}}), encoding="utf-8")
    local.write_text(json.dumps({"title": "Mine", "comment": "kept"}), encoding="utf-8")

    manager = ConfigurationManager(Settings, str(site), local)
    assert manager.out == Settings(title="Mine", retries=5, database=Database(host="db.internal"))
    assert manager.origin("database.host")["path"] == str(site)

    manager.out.tags = ["blue"]
    assert manager.save_changes() == ("title", "tags")

    stored = json.loads(local.read_text(encoding="utf-8"))
    assert stored == {"title": "Mine", "comment": "kept", "tags": ["blue"]}
    assert json.loads(site.read_text(encoding="utf-8"))["retries"] == 5


def test_save_changes_to_explicit_path(tmp_path: Path) -> None:
    manager = ConfigurationManager(
        Person,
        MemorySource(Person(occupation="Baker"), name="site"),
        MemorySource(Person(name="Matthew"), name="local"),
    )
    manager.out.age = 20
    target = tmp_path / "out.yaml"
    manager.save_changes(target)
    assert read_config(Person, MemorySource(Person(occupation="Baker")), target) == Person(
        name="Matthew", age=20, occupation="Baker"
    )


def test_base_follows_invalidated_sources(tmp_path: Path) -> None:
    site = tmp_path / "site.json"
    site.write_text('{"age": 10}', encoding="utf-8")
    manager = ConfigurationManager(Person, site, MemorySource(Person()))
    assert manager.base() == Person(age=10)
    site.write_text('{"age": 12}', encoding="utf-8")
    assert manager.base() == Person(age=10)
    manager.invalidate_sources()
    assert manager.base() == Person(age=12)
    assert manager.out.age == 10
    assert manager.changes_by_name() == {"age": 10}


def test_reload_rebuilds_working_object(tmp_path: Path) -> None:
    local = tmp_path / "local.xml"
    local.write_text("<Person><name>Tim</name></Person>", encoding="utf-8")
    manager = ConfigurationManager(Person, local)
    manager.out.age = 40
    manager.save_changes()
    manager.out.age = 99
    reloaded = manager.reload()
    assert reloaded is manager.out
    assert manager.out == Person(name="Tim", age=40)


def test_lifecycle_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="lib_tracked_config")
    manager = ConfigurationManager(Person, MemorySource(None, name="site"), MemorySource(Person(age=1), name="local"))
    manager.save_changes()
    messages = [record.getMessage() for record in caplog.records]
    assert "source_absent" in messages
    assert "source_loaded" in messages
    assert "configuration_merged" in messages
    assert "changes_saved" in messages


def test_empty_nested_key_in_later_file_keeps_nested_values(tmp_path: Path) -> None:
    local = tmp_path / "local.yaml"
    late = tmp_path / "late.json"
    local.write_text("database:\n  host: db.internal\n", encoding="utf-8")
    late.write_text('{"database": null}', encoding="utf-8")

    manager = ConfigurationManager(Settings, FileConfigurationSource(local, Settings, primary_source=True), late)
    assert manager.out.database == Database(host="db.internal")
    assert manager.origin("database.host")["layer"] == "local.yaml"
    assert manager.changes_by_name() == {"database": Database(host="db.internal")}


def test_validator_sees_only_merged_object() -> None:
    seen: list[Person] = []
    validator: RuleBasedValidator[Person] = RuleBasedValidator()
    validator.add_rule(lambda person: seen.append(person))
    ConfigurationManager(
        Person,
        MemorySource(Person(age=10), name="site"),
        MemorySource(Person(age=30), name="local"),
        validator=validator,
    )
    assert seen == [Person(age=30)]
