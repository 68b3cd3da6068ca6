"""Utility functions and classes for Tibia Character Lookup."""

from .config import Config, get_config, reset_config
from .di_container import (
    DIContainer,
    DIContainerError,
    ServiceKeys,
    configure_container,
    get_container,
    reset_container,
)
from .exceptions import (
    CharacterLookupError,
    CharacterNotFoundError,
    ConfigurationError,
    DecodingError,
    NameValidationError,
    NoConnectivityError,
    ServerError,
    TibiaConnectionError,
    TibiaInfoError,
)
from .logging_setup import setup_logging
from .metrics import MetricCategories, MetricsCollector, get_metrics, reset_metrics
from .signal_bus import LookupSignalBus, Signal

__all__ = [
    "CharacterLookupError",
    "CharacterNotFoundError",
    "Config",
    "ConfigurationError",
    "DIContainer",
    "DIContainerError",
    "DecodingError",
    "LookupSignalBus",
    "MetricCategories",
    "MetricsCollector",
    "NameValidationError",
    "NoConnectivityError",
    "ServerError",
    "ServiceKeys",
    "Signal",
    "TibiaConnectionError",
    "TibiaInfoError",
    "configure_container",
    "get_config",
    "get_container",
    "get_metrics",
    "reset_config",
    "reset_container",
    "reset_metrics",
    "setup_logging",
]
