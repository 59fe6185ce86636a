from __future__ import annotations

import pytest

from lib_versioned_config.application.registry import AbstractConfigProvider, ProviderRegistry
from lib_versioned_config.domain.errors import NotFound
from lib_versioned_config.domain.migration import Migration


class MailerProvider(AbstractConfigProvider):
    def migrations(self):
        return [Migration("1.0.0", lambda tree, env: {**tree, "from": "noreply@example.org"})]

    def config_key(self):
        return "mail"

    def templating(self):
        return [("smtp.password", "string")]


class PlainProvider(AbstractConfigProvider):
    def migrations(self):
        return []


def test_key_defaults_to_package_identifier() -> None:
    registry = ProviderRegistry()
    registry.register("cache", PlainProvider())
    registry.register("mailer", MailerProvider())
    assert registry.key_for("cache") == "cache"
    assert registry.key_for("mailer") == "mail"
    assert registry.packages() == ["cache", "mailer"]
    assert "mailer" in registry
    assert len(registry) == 2


def test_unknown_package_raises_not_found() -> None:
    with pytest.raises(NotFound):
        ProviderRegistry().get("missing")


def test_register_rejects_objects_without_provider_methods() -> None:
    with pytest.raises(TypeError):
        ProviderRegistry().register("broken", object())


def test_registering_again_replaces_provider() -> None:
    registry = ProviderRegistry()
    registry.register("mailer", PlainProvider())
    replacement = MailerProvider()
    registry.register("mailer", replacement)
    assert registry.get("mailer") is replacement
    assert list(registry) == ["mailer"]
