"""Statsig integration for domain events (registrations, reviews, applications).

Events are keyed by the acting user's id so product dashboards can follow a
youth from registration through verification to applications. Without a
configured server secret every call is a no-op.
"""
from __future__ import annotations

import logging
from typing import Any

from statsig import StatsigEvent, StatsigOptions, StatsigServer, StatsigUser

from youthlink.config import get_settings

logger = logging.getLogger(__name__)


class _StatsigAdapter:
    def __init__(self, secret_key: str | None, environment: str):
        self._client: StatsigServer | None = None
        if not secret_key:
            return

        try:
            client = StatsigServer()
            client.initialize(
                secret_key,
                StatsigOptions(environment={"tier": environment}),
            )
            self._client = client
        except Exception as exc:  # noqa: BLE001
            logger.warning("Statsig initialization failed: %s", exc)
            self._client = None

    @property
    def enabled(self) -> bool:
        return self._client is not None

    def log_event(
        self,
        *,
        user_id: str,
        event_name: str,
        custom: dict[str, Any] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        if not self._client:
            return

        user = StatsigUser(user_id, custom=custom)
        try:
            self._client.log_event(StatsigEvent(user, event_name, metadata=metadata))
        except Exception as exc:  # noqa: BLE001
            logger.debug("Statsig event %s failed: %s", event_name, exc)

    def shutdown(self) -> None:
        if not self._client:
            return

        try:
            self._client.shutdown()
        except Exception as exc:  # noqa: BLE001
            logger.debug("Statsig shutdown failed: %s", exc)


_statsig_client: _StatsigAdapter | None = None


def get_statsig_client() -> _StatsigAdapter:
    global _statsig_client
    if _statsig_client is None:
        settings = get_settings()
        _statsig_client = _StatsigAdapter(
            settings.statsig_server_secret, settings.environment
        )
    return _statsig_client


def log_backend_event(
    event_name: str,
    *,
    user_id: str = "backend",
    role: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> None:
    custom = {"role": role} if role else None
    # Statsig metadata values must be strings
    clean = {k: str(v) for k, v in (metadata or {}).items() if v is not None}
    get_statsig_client().log_event(
        user_id=user_id, event_name=event_name, custom=custom, metadata=clean or None
    )


def shutdown_statsig() -> None:
    get_statsig_client().shutdown()
