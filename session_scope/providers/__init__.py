"""Transcript providers, looked up by name."""

import logging
from typing import Optional, Type

from ..models import Session
from .base import SessionProvider

logger = logging.getLogger(__name__)

_PROVIDERS: dict[str, Type[SessionProvider]] = {}


def register_provider(provider_class: Type[SessionProvider]) -> Type[SessionProvider]:
    """Class decorator adding a provider to the registry under its ``name``."""
    _PROVIDERS[provider_class.name] = provider_class
    return provider_class


def get_provider(name: str) -> Optional[SessionProvider]:
    provider_class = _PROVIDERS.get(name)
    return provider_class() if provider_class else None


def get_all_providers() -> list[SessionProvider]:
    return [cls() for cls in _PROVIDERS.values()]


def get_available_providers() -> list[SessionProvider]:
    """Providers whose transcript directory exists on this machine."""
    return [p for p in get_all_providers() if p.is_available()]


def discover_all_sessions(providers: Optional[list[SessionProvider]] = None) -> list[Session]:
    """Load sessions from every available provider, most recent activity first."""
    if providers is None:
        providers = get_available_providers()

    sessions: list[Session] = []
    for provider in providers:
        loaded = provider.load_sessions()
        logger.info(f"Loaded {len(loaded)} sessions from {provider.display_name}")
        sessions.extend(loaded)

    sessions.sort(key=lambda s: s.last_activity.timestamp() if s.last_activity else 0.0, reverse=True)
    return sessions


from . import claude_code  # noqa: F401, E402
