"""Unit tests for the settings aggregator and notification settings."""

import pytest
from pydantic import ValidationError

from infrastructure.configuration import NotificationSettings, Settings
from infrastructure.configuration.integrations import (
    FcmSettings,
    NotifySettings,
    SendGridSettings,
    TwilioSettings,
)


@pytest.mark.unit
class TestSettingsStructure:
    def test_all_sections_are_instantiated(self):
        settings = Settings()

        assert isinstance(settings.notifications, NotificationSettings)
        assert isinstance(settings.notify, NotifySettings)
        assert isinstance(settings.sendgrid, SendGridSettings)
        assert isinstance(settings.twilio, TwilioSettings)
        assert isinstance(settings.fcm, FcmSettings)

    def test_section_override_is_used(self):
        notifications = NotificationSettings(NOTIFICATION_BULK_BATCH_SIZE=10)
        settings = Settings(notifications=notifications)
        assert settings.notifications.bulk_batch_size == 10

    def test_is_production_without_prefix(self, monkeypatch):
        monkeypatch.delenv("PREFIX", raising=False)
        assert Settings().is_production is True

    def test_is_not_production_with_prefix(self, monkeypatch):
        monkeypatch.setenv("PREFIX", "dev-")
        assert Settings().is_production is False


@pytest.mark.unit
class TestNotificationSettings:
    def test_defaults(self):
        config = NotificationSettings()

        assert config.bulk_batch_size == 50
        assert config.bulk_batch_pause_seconds == 0.1
        assert config.rate_limit_window_seconds == 3600
        assert config.rate_limit_default_max == 20
        assert config.rate_limit_daily_max == 100
        assert config.rate_limit_backend == "memory"
        assert config.provider_timeout_seconds == 15.0
        assert config.push_max_tokens_per_call == 500
        assert config.sms_max_length == 1600
        assert config.max_channel_workers == 4

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("NOTIFICATION_BULK_BATCH_SIZE", "25")
        monkeypatch.setenv("NOTIFICATION_RATE_LIMIT_BACKEND", "REDIS")

        config = NotificationSettings()

        assert config.bulk_batch_size == 25
        assert config.rate_limit_backend == "redis"

    def test_rejects_unknown_backend(self):
        with pytest.raises(ValidationError):
            NotificationSettings(NOTIFICATION_RATE_LIMIT_BACKEND="memcached")

    @pytest.mark.parametrize(
        "alias",
        [
            "NOTIFICATION_BULK_BATCH_SIZE",
            "NOTIFICATION_RATE_LIMIT_DEFAULT_MAX",
            "NOTIFICATION_RATE_LIMIT_DAILY_MAX",
            "NOTIFICATION_MAX_CHANNEL_WORKERS",
        ],
    )
    def test_rejects_non_positive_values(self, alias):
        with pytest.raises(ValidationError):
            NotificationSettings(**{alias: 0})


@pytest.mark.unit
class TestProviderSettings:
    def test_providers_are_disabled_by_default(self, monkeypatch):
        for name in (
            "SENDGRID_ENABLED",
            "NOTIFY_EMAIL_ENABLED",
            "NOTIFY_SMS_ENABLED",
            "TWILIO_ENABLED",
            "FCM_ENABLED",
        ):
            monkeypatch.delenv(name, raising=False)

        settings = Settings()

        assert settings.sendgrid.SENDGRID_ENABLED is False
        assert settings.notify.NOTIFY_EMAIL_ENABLED is False
        assert settings.notify.NOTIFY_SMS_ENABLED is False
        assert settings.twilio.TWILIO_ENABLED is False
        assert settings.fcm.FCM_ENABLED is False

    def test_sendgrid_reads_environment(self, monkeypatch):
        monkeypatch.setenv("SENDGRID_ENABLED", "true")
        monkeypatch.setenv("SENDGRID_API_KEY", "SG.key")
        monkeypatch.setenv("SENDGRID_PRIORITY", "3")

        config = SendGridSettings()

        assert config.SENDGRID_ENABLED is True
        assert config.SENDGRID_API_KEY == "SG.key"
        assert config.SENDGRID_PRIORITY == 3
        assert config.SENDGRID_API_HOST == "https://api.sendgrid.com"
