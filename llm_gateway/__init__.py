from __future__ import annotations  # Re-export llm_gateway public API

from .json_extract import JsonExtractionError, clamp, extract_json_object
from .llm_gateway import (
    Gateway,
    GenerationOptions,
    GenerationResult,
    LlmGatewayError,
    TaskHint,
    build_model_order,
    run_fallback_chain,
)
from .providers import HostedProvider, HttpClient, HttpResponse, ModelServerProvider, ProviderFailure

__all__ = [
    "Gateway",
    "GenerationOptions",
    "GenerationResult",
    "HostedProvider",
    "HttpClient",
    "HttpResponse",
    "JsonExtractionError",
    "LlmGatewayError",
    "ModelServerProvider",
    "ProviderFailure",
    "TaskHint",
    "build_model_order",
    "clamp",
    "extract_json_object",
    "run_fallback_chain",
]
