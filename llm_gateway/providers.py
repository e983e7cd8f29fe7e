from __future__ import annotations  # HTTP adapters for the generation providers

import json
import logging
from typing import Any, Dict, List, Literal, Optional, Protocol, Tuple

import httpx

from config.gateway import HostedRoute, ModelServerRoute


logger = logging.getLogger(__name__)

FailureKind = Literal["not_found", "out_of_memory", "timeout", "unavailable", "error"]


class HttpResponse(Protocol):  # Minimal HTTP response protocol
    @property
    def status_code(self) -> int: ...

    def json(self) -> Any: ...

    @property
    def text(self) -> str: ...


class HttpClient(Protocol):  # Minimal HTTP client protocol
    def post(self, url: str, *, json: Dict[str, Any], headers: Dict[str, str], timeout: float) -> HttpResponse: ...

    def get(self, url: str, *, headers: Dict[str, str], timeout: float) -> HttpResponse: ...


class ProviderFailure(Exception):  # Classified failure from a single provider call
    def __init__(self, kind: FailureKind, message: str, *, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.status = status

    def summary(self) -> str:
        return f"{self.kind}: {self}"


class SamplingOptions(Protocol):  # Sampling knobs passed through to providers
    temperature: float
    top_p: float
    max_tokens: int


def _send(
    method: str,
    url: str,
    *,
    payload: Optional[Dict[str, Any]],
    headers: Dict[str, str],
    timeout: float,
    client: Optional[HttpClient],
) -> HttpResponse:  # Dispatch one HTTP request and normalize transport errors
    try:
        if client is not None:
            if method == "GET":
                return client.get(url, headers=headers, timeout=timeout)
            return client.post(url, json=payload or {}, headers=headers, timeout=timeout)
        with httpx.Client(timeout=timeout) as http_client:
            if method == "GET":
                response = http_client.get(url, headers=headers)
            else:
                response = http_client.post(url, json=payload, headers=headers)
            return response
    except (httpx.TimeoutException, TimeoutError) as exc:
        raise ProviderFailure("timeout", f"timed out after {timeout:.1f}s") from exc
    except (httpx.HTTPError, OSError) as exc:
        raise ProviderFailure("unavailable", f"transport failed: {exc}") from exc


def _response_text(response: HttpResponse) -> str:
    try:
        return response.text or ""
    except Exception:  # noqa: BLE001
        return ""


class HostedProvider:  # Hosted generateContent-style API
    def __init__(self, route: HostedRoute, *, client: Optional[HttpClient] = None) -> None:
        self.route = route
        self._client = client

    @property
    def name(self) -> str:
        return self.route.name

    @property
    def configured(self) -> bool:
        return self.route.configured

    def generate(self, prompt: str, options: SamplingOptions) -> str:
        url = f"{self.route.base_url}/models/{self.route.model}:generateContent"
        body: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": float(options.temperature),
                "topP": float(options.top_p),
                "maxOutputTokens": int(options.max_tokens),
            },
        }
        headers = {"Content-Type": "application/json"}
        if self.route.api_key:
            headers["x-goog-api-key"] = self.route.api_key
        headers.update(self.route.extra_headers)
        response = _send("POST", url, payload=body, headers=headers, timeout=self.route.timeout_s, client=self._client)
        if response.status_code >= 400:
            raise ProviderFailure(
                "not_found" if response.status_code == 404 else "error",
                f"status {response.status_code}",
                status=response.status_code,
            )
        try:
            data = response.json()
        except Exception as exc:  # noqa: BLE001
            raise ProviderFailure("error", "payload was not JSON") from exc
        text = self._parse_response_text(data)
        if not text.strip():
            raise ProviderFailure("error", "empty completion")
        return text

    def _parse_response_text(self, data: Any) -> str:
        """Pull text from ``candidates[0].content.parts``, falling back to top-level ``text``."""
        if not isinstance(data, dict):
            return ""
        candidates = data.get("candidates")
        if isinstance(candidates, list) and candidates and isinstance(candidates[0], dict):
            content = candidates[0].get("content") or {}
            parts = content.get("parts") if isinstance(content, dict) else None
            if isinstance(parts, list):
                texts = [part["text"] for part in parts if isinstance(part, dict) and isinstance(part.get("text"), str)]
                if texts:
                    return "".join(texts)
            if isinstance(content, dict) and isinstance(content.get("text"), str):
                return content["text"]
        if isinstance(data.get("text"), str):
            return data["text"]
        return ""


class ModelServerProvider:  # Self-hosted model server with a tags probe and plain generate
    def __init__(self, route: ModelServerRoute, *, client: Optional[HttpClient] = None) -> None:
        self.route = route
        self._client = client

    @property
    def name(self) -> str:
        return self.route.name

    def probe(self) -> Tuple[bool, Optional[str]]:
        url = f"{self.route.base_url}/api/tags"
        try:
            response = _send(
                "GET",
                url,
                payload=None,
                headers={"Content-Type": "application/json"},
                timeout=self.route.probe_timeout_s,
                client=self._client,
            )
        except ProviderFailure as exc:
            return False, exc.summary()
        if response.status_code >= 400:
            return False, f"status {response.status_code}"
        return True, None

    def installed_models(self) -> List[str]:
        url = f"{self.route.base_url}/api/tags"
        response = _send(
            "GET",
            url,
            payload=None,
            headers={"Content-Type": "application/json"},
            timeout=self.route.probe_timeout_s,
            client=self._client,
        )
        if response.status_code >= 400:
            raise ProviderFailure("unavailable", f"status {response.status_code}", status=response.status_code)
        data = response.json()
        models = data.get("models", []) if isinstance(data, dict) else []
        return [str(entry.get("name")) for entry in models if isinstance(entry, dict) and entry.get("name")]

    def generate_with(self, model: str, prompt: str, options: SamplingOptions, *, timeout: float) -> str:
        url = f"{self.route.base_url}/api/generate"
        body = {
            "model": model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": float(options.temperature),
                "top_p": float(options.top_p),
                "num_predict": int(options.max_tokens),
            },
        }
        logger.debug("Model server generate model=%s timeout=%.1fs", model, timeout)
        response = _send(
            "POST",
            url,
            payload=body,
            headers={"Content-Type": "application/json"},
            timeout=timeout,
            client=self._client,
        )
        if response.status_code >= 400:
            raise classify_model_server_error(response.status_code, _response_text(response))
        try:
            data = response.json()
        except Exception as exc:  # noqa: BLE001
            raise ProviderFailure("error", "payload was not JSON") from exc
        text = data.get("response") if isinstance(data, dict) else None
        if not isinstance(text, str) or not text.strip():
            raise ProviderFailure("error", "empty completion")
        return text


def classify_model_server_error(status: int, body: str) -> ProviderFailure:
    """Map a model-server error response onto a failure kind."""

    message = body
    try:
        parsed = json.loads(body) if body else {}
        if isinstance(parsed, dict) and isinstance(parsed.get("error"), str):
            message = parsed["error"]
    except json.JSONDecodeError:
        pass
    lowered = message.lower()
    if status == 404 or "not found" in lowered:
        return ProviderFailure("not_found", message or "model not found", status=status)
    if status == 500 and "memory" in lowered:
        return ProviderFailure("out_of_memory", message, status=status)
    if "timeout" in lowered or "aborted" in lowered:
        return ProviderFailure("timeout", message, status=status)
    return ProviderFailure("error", message or f"status {status}", status=status)


__all__ = [
    "HostedProvider",
    "HttpClient",
    "HttpResponse",
    "ModelServerProvider",
    "ProviderFailure",
    "classify_model_server_error",
]
