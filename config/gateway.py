from __future__ import annotations  # Configuration schema for generation providers

from pathlib import Path
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from .settings import Settings

WeightClass = Literal["light", "heavy"]

WEIGHT_RANK: Dict[str, int] = {"light": 0, "heavy": 1}


class ModelCandidate(BaseModel):  # One model in the self-hosted fallback chain
    name: str
    weight_class: WeightClass = "light"
    timeout_s: float = Field(default=8.0, gt=0.0)


class HostedRoute(BaseModel):  # Hosted LLM API endpoint configuration
    name: str = "hosted"
    base_url: str
    model: str
    api_key: Optional[str] = None
    timeout_s: float = Field(default=20.0, gt=0.0)
    extra_headers: Dict[str, str] = Field(default_factory=dict)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)


class ModelServerRoute(BaseModel):  # Self-hosted model server configuration
    name: str = "model-server"
    base_url: str
    probe_timeout_s: float = Field(default=3.0, gt=0.0)
    candidates: List[ModelCandidate]
    task_models: Dict[str, str] = Field(default_factory=dict)
    sequential: bool = False


class GatewayConfig(BaseModel):  # Gateway configuration root
    primary: HostedRoute
    secondary: ModelServerRoute
    task_temperatures: Dict[str, float] = Field(
        default_factory=lambda: {
            "analytical": 0.2,
            "problem_solving": 0.3,
            "general": 0.7,
            "technical": 0.7,
            "introduction": 0.7,
            "behavioral": 0.8,
            "creative": 0.8,
        }
    )


# Lightest first; only the final heavy model gets a longer timeout
DEFAULT_CANDIDATES: List[ModelCandidate] = [
    ModelCandidate(name="tinyllama", weight_class="light", timeout_s=5.0),
    ModelCandidate(name="qwen2.5:1.5b", weight_class="light", timeout_s=6.0),
    ModelCandidate(name="phi", weight_class="light", timeout_s=8.0),
    ModelCandidate(name="llama2", weight_class="heavy", timeout_s=9.0),
    ModelCandidate(name="gemma3:4b", weight_class="heavy", timeout_s=20.0),
]


def gateway_config_from_settings(cfg: Settings) -> GatewayConfig:  # Build gateway config from env settings
    if cfg.GATEWAY_CONFIG_PATH:
        loaded = load_config(Path(cfg.GATEWAY_CONFIG_PATH))
        if cfg.PRIMARY_API_KEY and not loaded.primary.api_key:
            loaded.primary.api_key = cfg.PRIMARY_API_KEY
        return loaded
    return GatewayConfig(
        primary=HostedRoute(
            base_url=cfg.PRIMARY_BASE_URL,
            model=cfg.PRIMARY_MODEL,
            api_key=cfg.PRIMARY_API_KEY,
            timeout_s=cfg.PRIMARY_TIMEOUT_S,
        ),
        secondary=ModelServerRoute(
            base_url=cfg.MODEL_SERVER_URL,
            probe_timeout_s=cfg.MODEL_SERVER_PROBE_TIMEOUT_S,
            candidates=[candidate.model_copy() for candidate in DEFAULT_CANDIDATES],
            task_models=cfg.task_models(),
            sequential=cfg.MODEL_SERVER_SEQUENTIAL,
        ),
    )


def load_config(path: Path) -> GatewayConfig:  # Load gateway configuration from disk
    data = path.read_text(encoding="utf-8")
    return GatewayConfig.model_validate_json(data)
