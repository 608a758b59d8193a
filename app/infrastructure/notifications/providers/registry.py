"""Provider registry.

Holds the providers of every channel and answers which ones a dispatcher
should try, in which order. Registration is lock-protected; lookups work on
a snapshot and take no lock.
"""

import threading
from typing import Dict, Iterable, List, Optional

from infrastructure.logging import get_module_logger
from infrastructure.notifications.models import NotificationChannel
from infrastructure.notifications.providers.base import ChannelProvider

logger = get_module_logger()


class ProviderRegistry:
    """Ordered providers per channel.

    Example:
        registry = ProviderRegistry()
        registry.register(SendGridEmailProvider(...))
        registry.register(GCNotifyEmailProvider(..., priority=2))

        for provider in registry.get_ordered_providers(NotificationChannel.EMAIL):
            ...
    """

    def __init__(self, providers: Optional[Iterable[ChannelProvider]] = None):
        self._providers: Dict[NotificationChannel, List[ChannelProvider]] = {}
        self._lock = threading.Lock()
        for provider in providers or []:
            self.register(provider)

    def register(self, provider: ChannelProvider) -> None:
        """Add a provider to its channel.

        Raises:
            ValueError: If the channel already has a provider with this id.
        """
        with self._lock:
            existing = self._providers.get(provider.channel, [])
            if any(p.provider_id == provider.provider_id for p in existing):
                raise ValueError(
                    f"Provider '{provider.provider_id}' already registered "
                    f"for channel '{provider.channel.value}'"
                )
            # Copy on write so readers never see a list being mutated
            self._providers[provider.channel] = existing + [provider]

        logger.info(
            "provider_registered",
            provider_id=provider.provider_id,
            channel=provider.channel.value,
            kind=provider.kind.value,
            priority=provider.priority,
            is_active=provider.is_active,
        )

    def unregister(self, channel: NotificationChannel, provider_id: str) -> bool:
        """Remove a provider. Returns True if it was registered."""
        with self._lock:
            existing = self._providers.get(channel, [])
            remaining = [p for p in existing if p.provider_id != provider_id]
            self._providers[channel] = remaining
        removed = len(remaining) != len(existing)
        if removed:
            logger.info(
                "provider_unregistered", provider_id=provider_id, channel=channel.value
            )
        return removed

    def get_provider(
        self, channel: NotificationChannel, provider_id: str
    ) -> Optional[ChannelProvider]:
        """Look up one provider regardless of its active flag."""
        for provider in self._providers.get(channel, []):
            if provider.provider_id == provider_id:
                return provider
        return None

    def get_ordered_providers(self, channel: NotificationChannel) -> List[ChannelProvider]:
        """Active providers of a channel, lowest priority value first.

        Registration order breaks ties (the sort is stable).
        """
        active = [p for p in self._providers.get(channel, []) if p.is_active]
        return sorted(active, key=lambda p: p.priority)

    def set_active(
        self, channel: NotificationChannel, provider_id: str, is_active: bool
    ) -> bool:
        """Toggle a provider in or out of failover. Returns False if unknown."""
        provider = self.get_provider(channel, provider_id)
        if provider is None:
            return False
        provider.is_active = is_active
        logger.info(
            "provider_active_changed",
            provider_id=provider_id,
            channel=channel.value,
            is_active=is_active,
        )
        return True

    def list_providers(
        self, channel: Optional[NotificationChannel] = None
    ) -> List[ChannelProvider]:
        """All registered providers, optionally for one channel."""
        if channel is not None:
            return list(self._providers.get(channel, []))
        return [p for providers in self._providers.values() for p in providers]
