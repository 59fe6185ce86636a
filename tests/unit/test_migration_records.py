from __future__ import annotations

import pytest

from lib_versioned_config.domain.errors import InvalidFormat, InvalidMigrationFormat
from lib_versioned_config.domain.migration import Migration, compare_versions, ensure_stored_version


def identity(tree, env):
    return tree


def test_coerce_accepts_record_and_legacy_mapping() -> None:
    record = Migration("1.0.0", identity)
    assert Migration.coerce(record) is record
    coerced = Migration.coerce({"version": "1.1.0", "migration": identity})
    assert coerced == Migration("1.1.0", identity)
    assert Migration.coerce({"version": "1.2", "transform": identity}).transform is identity


@pytest.mark.parametrize(
    "candidate",
    [
        {"migration": identity},
        {"version": "", "migration": identity},
        {"version": "1.0.0"},
        {"version": "1.0.0", "migration": "not callable"},
        {"version": "one", "migration": identity},
        ("1.0.0", identity),
        None,
    ],
)
def test_coerce_rejects_malformed_migrations(candidate) -> None:
    with pytest.raises(InvalidMigrationFormat):
        Migration.coerce(candidate)


@pytest.mark.parametrize(
    ("left", "right", "expected"),
    [
        (None, "0.0.1", -1),
        (None, "0.0.0", 0),
        ("1.0", "1.0.0", 0),
        ("1.2.0", "1.10.0", -1),
        ("2.0.0", "1.99.99", 1),
    ],
)
def test_compare_versions_is_numeric(left, right, expected) -> None:
    assert compare_versions(left, right) == expected


def test_unparseable_stored_version_blames_the_document() -> None:
    ensure_stored_version(None)
    ensure_stored_version("")
    with pytest.raises(InvalidFormat, match="mailer"):
        ensure_stored_version("not-a-version", source="mailer")
