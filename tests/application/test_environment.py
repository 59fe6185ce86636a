from __future__ import annotations

import pytest

from lib_versioned_config.application.environment import current_environment, resolve_overlay
from lib_versioned_config.domain.document import ConfigDocument
from lib_versioned_config.domain.errors import ReservedNameError


@pytest.mark.parametrize(
    ("environ", "expected"),
    [
        ({}, "production"),
        ({"APP_ENV": "dev"}, "dev"),
        ({"ENVIRONMENT": "staging"}, "staging"),
        ({"APP_ENV": "dev", "ENVIRONMENT": "staging"}, "dev"),
        ({"APP_ENV": "", "ENVIRONMENT": ""}, "production"),
    ],
)
def test_current_environment_priority(environ, expected) -> None:
    assert current_environment(environ) == expected


def test_meta_is_not_an_environment_name() -> None:
    with pytest.raises(ReservedNameError):
        current_environment({"APP_ENV": "meta"})


def test_missing_overlay_falls_back_to_production_only() -> None:
    document = ConfigDocument(None, {"dev": {"debug": True}, "production": {"debug": False}})
    assert resolve_overlay(document, "staging") == {"debug": False}
    assert resolve_overlay(ConfigDocument(None, {"dev": {"debug": True}}), "staging") == {}


def test_fallback_does_not_touch_the_document() -> None:
    document = ConfigDocument(None, {"production": {"nested": {"value": 1}}})
    overlay = resolve_overlay(document, "qa")
    overlay["nested"]["value"] = 2
    assert document.environments == {"production": {"nested": {"value": 1}}}
    assert "qa" not in document.environments
