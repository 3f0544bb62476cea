"""Lazily-built, cached chain contexts and configuration errors."""

from typing import Callable, Generic, Iterable, Optional, TypeVar

from web3 import Web3

from turjman.config import Settings

T = TypeVar("T")


class ConfigurationError(Exception):
    """Raised when required chain settings are missing or invalid."""


class CachedContext(Generic[T]):
    """
    Build a context once and remember the outcome.

    A failed build is cached as well: every later ``get()`` re-raises the
    same ConfigurationError until the process is restarted with fixed
    settings.
    """

    def __init__(self, factory: Callable[[], T]):
        self._factory = factory
        self._value: Optional[T] = None
        self._error: Optional[ConfigurationError] = None

    def get(self) -> T:
        if self._error is not None:
            raise self._error
        if self._value is None:
            try:
                self._value = self._factory()
            except ConfigurationError as e:
                self._error = e
                raise
        return self._value


def require_settings(settings: Settings, keys: Iterable[str]) -> None:
    """Raise ConfigurationError listing every missing key."""
    missing = [
        key for key in keys
        if getattr(settings, key, None) in (None, "")
    ]
    if missing:
        raise ConfigurationError(f"Missing environment variables: {', '.join(missing)}")


def checksum_address(name: str, value: str) -> str:
    """Validate an address setting and return its checksummed form."""
    if not Web3.is_address(value):
        raise ConfigurationError(f"{name} is not a valid address.")
    return Web3.to_checksum_address(value)


def token_decimals(settings: Settings) -> int:
    decimals = settings.USDC_DECIMALS
    if decimals is None or decimals < 0:
        raise ConfigurationError("USDC_DECIMALS must be a non-negative integer.")
    return decimals
