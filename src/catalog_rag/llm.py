"""Ollama language model client used by the optimizer and the generator."""

import logging

import httpx
import ollama

from catalog_rag.config import LLMConfig
from catalog_rag.exceptions import ServiceUnavailableError

logger = logging.getLogger(__name__)

_TRANSPORT_ERRORS = (ollama.ResponseError, httpx.HTTPError, ConnectionError)


class OllamaLLM:
    """Thin wrapper over ``ollama.Client`` with bounded timeouts."""

    def __init__(self, config: LLMConfig | None = None) -> None:
        self.config = config or LLMConfig()
        self.client = ollama.Client(host=self.config.host, timeout=self.config.timeout)
        self._probe = ollama.Client(
            host=self.config.host, timeout=self.config.probe_timeout
        )

    def generate(
        self,
        prompt: str,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """Generate a completion for ``prompt``.

        Args:
            prompt: Full prompt text.
            model: Model name. Defaults to the configured response model.
            temperature: Sampling temperature. Defaults to the configured one.
            max_tokens: Maximum number of tokens to predict.

        Returns:
            The generated text with surrounding whitespace removed.

        Raises:
            ServiceUnavailableError: If Ollama cannot be reached, times out
                or answers with an error.
        """
        model = model or self.config.model
        options = {
            "temperature": (
                self.config.temperature if temperature is None else temperature
            ),
            "top_p": self.config.top_p,
            "num_predict": max_tokens or self.config.max_tokens,
        }
        logger.debug("Sending %d-character prompt to %s", len(prompt), model)
        try:
            response = self.client.generate(model=model, prompt=prompt, options=options)
        except _TRANSPORT_ERRORS as exc:
            logger.error("Ollama request to %s failed: %s", model, exc)
            raise ServiceUnavailableError("language model", str(exc)) from exc

        return (response["response"] or "").strip()

    def list_models(self) -> list[str]:
        """Names of the models installed on the Ollama server (empty on failure)."""
        try:
            response = self._probe.list()
        except _TRANSPORT_ERRORS as exc:
            logger.warning("Could not list Ollama models: %s", exc)
            return []
        return [m["model"] for m in response["models"]]

    def is_available(self) -> bool:
        try:
            self._probe.list()
        except _TRANSPORT_ERRORS as exc:
            logger.warning("Ollama health check failed: %s", exc)
            return False
        return True
