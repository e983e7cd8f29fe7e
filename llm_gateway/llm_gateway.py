from __future__ import annotations  # Generation gateway over hosted and self-hosted providers

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Literal, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from config.gateway import WEIGHT_RANK, GatewayConfig, ModelCandidate

from .providers import HostedProvider, HttpClient, ModelServerProvider, ProviderFailure


logger = logging.getLogger(__name__)  # Module logger setup

TaskHint = Literal[
    "analytical",
    "creative",
    "general",
    "coding",
    "technical",
    "behavioral",
    "problem_solving",
    "introduction",
]


class LlmGatewayError(RuntimeError):  # Raised when every provider and model is exhausted
    def __init__(self, message: str, attempts: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.attempts = list(attempts)


class GenerationOptions(BaseModel):  # Per-call sampling options
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    top_p: float = Field(default=0.9, gt=0.0, le=1.0)
    max_tokens: int = Field(default=500, ge=1)


class GenerationResult(BaseModel):  # Generated text plus provenance
    text: str
    provider: str
    model: str
    elapsed_ms: int
    attempts: List[str] = Field(default_factory=list)


@dataclass
class _Sampling:
    temperature: float
    top_p: float
    max_tokens: int


def build_model_order(candidates: Sequence[ModelCandidate], preferred: Optional[str]) -> List[ModelCandidate]:
    """Order the chain lightest-first, slotting the task's preferred model in.

    A light preferred model goes first; a heavy one goes right after the light
    block. Duplicate names keep their first position.
    """

    chain = list(candidates)
    by_name = {candidate.name: candidate for candidate in chain}
    ordered: List[ModelCandidate] = []
    if preferred:
        known = by_name.get(preferred)
        if known is not None and known.weight_class == "light":
            ordered.append(known)
            ordered.extend(chain)
        else:
            pref = known or ModelCandidate(
                name=preferred,
                weight_class="heavy",
                timeout_s=max((c.timeout_s for c in chain if c.weight_class == "heavy"), default=9.0),
            )
            light = [c for c in chain if c.weight_class == "light"]
            rest = [c for c in chain if c.weight_class != "light"]
            ordered.extend(light)
            ordered.append(pref)
            ordered.extend(rest)
    else:
        ordered.extend(chain)

    seen: set[str] = set()
    unique: List[ModelCandidate] = []
    for candidate in ordered:
        if candidate.name in seen:
            continue
        seen.add(candidate.name)
        unique.append(candidate)
    return unique


def run_fallback_chain(
    candidates: Sequence[ModelCandidate],
    attempt: Callable[[ModelCandidate], str],
    *,
    label: str = "model-server",
) -> Tuple[str, ModelCandidate, List[str]]:
    """Try each candidate in order until one yields text.

    An out-of-memory failure prunes the remaining candidates of the same or a
    heavier weight class. Raises ``LlmGatewayError`` listing every attempt when
    the chain is exhausted.
    """

    remaining = list(candidates)
    attempts: List[str] = []
    while remaining:
        candidate = remaining.pop(0)
        try:
            text = attempt(candidate)
        except ProviderFailure as exc:
            attempts.append(f"{label}/{candidate.name} {exc.summary()}")
            logger.warning("Model %s failed kind=%s detail=%s", candidate.name, exc.kind, exc)
            if exc.kind == "out_of_memory":
                floor = WEIGHT_RANK[candidate.weight_class]
                pruned = [c.name for c in remaining if WEIGHT_RANK[c.weight_class] >= floor]
                if pruned:
                    logger.warning("Skipping models after memory failure: %s", ", ".join(pruned))
                    attempts.extend(f"{label}/{name} skipped: out_of_memory" for name in pruned)
                remaining = [c for c in remaining if WEIGHT_RANK[c.weight_class] < floor]
            continue
        return text, candidate, attempts
    raise LlmGatewayError(
        f"All models failed. Tried: {'; '.join(attempts) or 'none'}",
        attempts,
    )


def _preview(prompt: str) -> str:  # Build preview string for logging
    for line in prompt.strip().splitlines():
        if line.strip():
            text = line.strip()
            return text if len(text) <= 120 else text[:117] + "..."
    return ""


class Gateway:  # Single entry point for text generation
    def __init__(
        self,
        config: GatewayConfig,
        *,
        client: Optional[HttpClient] = None,
        primary: Optional[HostedProvider] = None,
        secondary: Optional[ModelServerProvider] = None,
    ) -> None:
        self.config = config
        self.primary = primary or HostedProvider(config.primary, client=client)
        self.secondary = secondary or ModelServerProvider(config.secondary, client=client)
        self._probe_lock = threading.Lock()
        self._secondary_available: Optional[bool] = None
        self._probe_error: Optional[str] = None
        self._model_locks: Dict[str, threading.Lock] = {}
        self._model_locks_guard = threading.Lock()

    def probe(self) -> bool:
        """Check the self-hosted server once; later calls return the cached answer."""
        with self._probe_lock:
            if self._secondary_available is None:
                available, error = self.secondary.probe()
                self._secondary_available = available
                self._probe_error = error
                if available:
                    logger.info("Model server available at %s", self.config.secondary.base_url)
                else:
                    logger.warning("Model server unavailable at %s: %s", self.config.secondary.base_url, error)
            return self._secondary_available

    @property
    def secondary_available(self) -> bool:
        return self.probe()

    def generate(
        self,
        prompt: str,
        task_hint: TaskHint = "general",
        options: Optional[GenerationOptions] = None,
    ) -> GenerationResult:
        opts = options or GenerationOptions()
        temperature = opts.temperature
        if temperature is None:
            temperature = self.config.task_temperatures.get(task_hint, 0.7)
        sampling = _Sampling(temperature=temperature, top_p=opts.top_p, max_tokens=opts.max_tokens)
        attempts: List[str] = []
        started = time.monotonic()
        logger.info("LLM request start hint=%s temperature=%.2f preview=%s", task_hint, temperature, _preview(prompt))

        if self.primary.configured:
            try:
                text = self.primary.generate(prompt, sampling)
                return self._result(text, self.primary.name, self.config.primary.model, started, attempts)
            except ProviderFailure as exc:
                attempts.append(f"{self.primary.name}/{self.config.primary.model} {exc.summary()}")
                logger.warning("Primary provider failed, falling back: %s", exc.summary())
        else:
            attempts.append(f"{self.primary.name} skipped: not configured")

        if not self.probe():
            attempts.append(f"{self.secondary.name} unavailable: {self._probe_error or 'probe failed'}")
            logger.error("LLM request failed hint=%s attempts=%s", task_hint, attempts)
            raise LlmGatewayError("No generation provider available. Tried: " + "; ".join(attempts), attempts)

        preferred = self.config.secondary.task_models.get(task_hint)
        chain = build_model_order(self.config.secondary.candidates, preferred)

        def _attempt(candidate: ModelCandidate) -> str:
            if self.config.secondary.sequential:
                with self._lock_for(candidate.name):
                    return self.secondary.generate_with(candidate.name, prompt, sampling, timeout=candidate.timeout_s)
            return self.secondary.generate_with(candidate.name, prompt, sampling, timeout=candidate.timeout_s)

        try:
            text, used, chain_attempts = run_fallback_chain(chain, _attempt, label=self.secondary.name)
        except LlmGatewayError as exc:
            attempts.extend(exc.attempts)
            logger.error("LLM request failed hint=%s attempts=%s", task_hint, attempts)
            raise LlmGatewayError("All providers failed. Tried: " + "; ".join(attempts), attempts) from exc
        attempts.extend(chain_attempts)
        return self._result(text, self.secondary.name, used.name, started, attempts)

    def _lock_for(self, model: str) -> threading.Lock:
        with self._model_locks_guard:
            lock = self._model_locks.get(model)
            if lock is None:
                lock = threading.Lock()
                self._model_locks[model] = lock
        return lock

    def _result(
        self, text: str, provider: str, model: str, started: float, attempts: List[str]
    ) -> GenerationResult:
        elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.info("LLM request done provider=%s model=%s ms=%d", provider, model, elapsed_ms)
        return GenerationResult(
            text=text,
            provider=provider,
            model=model,
            elapsed_ms=elapsed_ms,
            attempts=list(attempts),
        )


__all__ = [
    "Gateway",
    "GenerationOptions",
    "GenerationResult",
    "LlmGatewayError",
    "TaskHint",
    "build_model_order",
    "run_fallback_chain",
]
