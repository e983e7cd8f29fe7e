"""Configuration package for the mock-interview service."""
from .gateway import (
    DEFAULT_CANDIDATES,
    WEIGHT_RANK,
    GatewayConfig,
    HostedRoute,
    ModelCandidate,
    ModelServerRoute,
    gateway_config_from_settings,
    load_config,
)
from .settings import Settings, settings

__all__ = [
    "DEFAULT_CANDIDATES",
    "WEIGHT_RANK",
    "GatewayConfig",
    "HostedRoute",
    "ModelCandidate",
    "ModelServerRoute",
    "gateway_config_from_settings",
    "load_config",
    "Settings",
    "settings",
]
