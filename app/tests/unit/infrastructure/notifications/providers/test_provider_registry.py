"""Unit tests for the provider registry."""

import pytest

from infrastructure.notifications.models import NotificationChannel
from infrastructure.notifications.providers.registry import ProviderRegistry

EMAIL = NotificationChannel.EMAIL
SMS = NotificationChannel.SMS


@pytest.mark.unit
class TestProviderRegistry:
    def test_ordered_by_priority_then_registration(self, provider_factory):
        registry = ProviderRegistry(
            [
                provider_factory("c", EMAIL, priority=2),
                provider_factory("a", EMAIL, priority=1),
                provider_factory("b", EMAIL, priority=2),
            ]
        )

        ordered = registry.get_ordered_providers(EMAIL)

        assert [p.provider_id for p in ordered] == ["a", "c", "b"]

    def test_inactive_providers_are_skipped(self, provider_factory):
        registry = ProviderRegistry(
            [
                provider_factory("a", EMAIL, priority=1, is_active=False),
                provider_factory("b", EMAIL, priority=2),
            ]
        )
        assert [p.provider_id for p in registry.get_ordered_providers(EMAIL)] == ["b"]

    def test_channels_are_separate(self, provider_factory):
        registry = ProviderRegistry([provider_factory("shared", EMAIL)])
        registry.register(provider_factory("shared", SMS))

        assert registry.get_provider(EMAIL, "shared").channel == EMAIL
        assert registry.get_provider(SMS, "shared").channel == SMS
        assert registry.get_ordered_providers(NotificationChannel.PUSH) == []

    def test_duplicate_id_on_same_channel_is_rejected(self, provider_factory):
        registry = ProviderRegistry([provider_factory("a", EMAIL)])
        with pytest.raises(ValueError, match="already registered"):
            registry.register(provider_factory("a", EMAIL))

    def test_unregister(self, provider_factory):
        registry = ProviderRegistry([provider_factory("a", EMAIL)])

        assert registry.unregister(EMAIL, "a") is True
        assert registry.unregister(EMAIL, "a") is False
        assert registry.get_provider(EMAIL, "a") is None

    def test_set_active_toggles_failover_membership(self, provider_factory):
        registry = ProviderRegistry([provider_factory("a", EMAIL)])

        assert registry.set_active(EMAIL, "a", False) is True
        assert registry.get_ordered_providers(EMAIL) == []
        assert registry.get_provider(EMAIL, "a") is not None
        assert registry.set_active(EMAIL, "missing", True) is False

    def test_list_providers(self, provider_factory):
        registry = ProviderRegistry(
            [provider_factory("a", EMAIL), provider_factory("b", SMS)]
        )

        assert {p.provider_id for p in registry.list_providers()} == {"a", "b"}
        assert [p.provider_id for p in registry.list_providers(SMS)] == ["b"]

    def test_snapshot_is_unaffected_by_later_registration(self, provider_factory):
        registry = ProviderRegistry([provider_factory("a", EMAIL)])
        snapshot = registry.list_providers(EMAIL)

        registry.register(provider_factory("b", EMAIL))

        assert [p.provider_id for p in snapshot] == ["a"]
