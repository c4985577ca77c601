"""
Dependency providers for the HTTP surface.

Each collaborator is built once per process from the settings and handed
to route handlers through ``Depends``. Tests replace any of them with
``app.dependency_overrides``.
"""

import logging
from functools import lru_cache

from fastapi import Depends

from newsletter_api.adapters.clock import SystemClock
from newsletter_api.adapters.dev_email import DevEmailAdapter
from newsletter_api.adapters.email_client import EmailClient
from newsletter_api.adapters.sqlite_db import SQLiteConnectionPool, SQLiteSubscriptionStore
from newsletter_api.core.ports.clock import ClockPort
from newsletter_api.core.ports.email import EmailPort
from newsletter_api.settings import Settings, default_config_dir, load_settings
from newsletter_api.telemetry import get_logger


# --- Settings ---
@lru_cache
def get_settings() -> Settings:
    return load_settings(default_config_dir())


# --- Store ---
_pool_instance: SQLiteConnectionPool | None = None


def get_connection_pool(settings: Settings = Depends(get_settings)) -> SQLiteConnectionPool:
    """Get connection pool singleton."""
    global _pool_instance
    if _pool_instance is None:
        _pool_instance = SQLiteConnectionPool(
            settings.database.path,
            pool_size=settings.database.pool_size,
            timeout_seconds=settings.database.pool_timeout_seconds,
        )
    return _pool_instance


def get_subscription_store(
    pool: SQLiteConnectionPool = Depends(get_connection_pool),
) -> SQLiteSubscriptionStore:
    return SQLiteSubscriptionStore(pool)


# --- Email ---
_email_sender_instance: EmailPort | None = None


def get_email_sender(settings: Settings = Depends(get_settings)) -> EmailPort:
    """Get email sender singleton (dev adapter when sending is disabled)."""
    global _email_sender_instance
    if _email_sender_instance is None:
        cfg = settings.email_client
        if cfg.enabled:
            _email_sender_instance = EmailClient(
                base_url=cfg.base_url,
                sender=cfg.sender(),
                authorization_token=cfg.authorization_token,
                timeout_seconds=cfg.timeout_seconds(),
            )
        else:
            _email_sender_instance = DevEmailAdapter()
    return _email_sender_instance


# --- Clock ---
_clock_instance: SystemClock | None = None


def get_clock() -> ClockPort:
    """Get clock singleton."""
    global _clock_instance
    if _clock_instance is None:
        _clock_instance = SystemClock()
    return _clock_instance


# --- Logging ---
def get_workflow_logger() -> logging.Logger:
    return get_logger("newsletter_api.workflow")


def get_confirmation_url(settings: Settings = Depends(get_settings)) -> str:
    return settings.confirmation_url


def close_resources() -> None:
    """Release the pool and the provider client at shutdown."""
    global _pool_instance, _email_sender_instance
    if _pool_instance is not None:
        _pool_instance.close()
        _pool_instance = None
    if isinstance(_email_sender_instance, EmailClient):
        _email_sender_instance.close()
    _email_sender_instance = None
