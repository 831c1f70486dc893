"""Embedding providers: the abstract capability plus the LiteLLM implementation.

The pipeline and retriever receive an embedder instance explicitly; there is
no module-level model. Every provider output is checked for count and
dimensionality before it reaches the store.
"""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from collections.abc import Sequence

import litellm

from knowbase.errors import EmbeddingError

# Disable LiteLLM verbose logging unless explicitly enabled
litellm.suppress_debug_info = True

logger = logging.getLogger(__name__)

DEFAULT_EMBEDDING_MODEL = "openai/text-embedding-ada-002"
DEFAULT_DIMENSIONS = 1536

# Provider → env var holding its API key. None: local provider, no key.
_PROVIDER_ENV: dict[str, str | None] = {
    "openai": "OPENAI_API_KEY",
    "azure": "AZURE_API_KEY",
    "cohere": "COHERE_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "voyage": "VOYAGE_API_KEY",
    "ollama": None,
}


class BaseEmbedder(ABC):
    """Map text to fixed-length vectors.

    Subclasses implement ``_embed_texts()``; the public methods enforce the
    contract (one vector per input, in order, all of ``dimensions`` length).
    """

    def __init__(self, dimensions: int) -> None:
        if dimensions < 1:
            raise ValueError(f"dimensions must be >= 1, got {dimensions}")
        self.dimensions = dimensions

    @abstractmethod
    def _embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Return one raw vector per text. May raise anything."""

    def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        """Embed *texts* in a single provider call, preserving order.

        Raises:
            EmbeddingError: If the provider fails or returns malformed output.
        """
        texts = list(texts)
        if not texts:
            return []
        try:
            vectors = self._embed_texts(texts)
        except EmbeddingError:
            raise
        except Exception as exc:
            raise EmbeddingError(f"Embedding provider call failed: {exc}") from exc
        self._check(vectors, expected=len(texts))
        return vectors

    def embed_one(self, text: str) -> list[float]:
        """Embed a single text (one provider call)."""
        return self.embed_batch([text])[0]

    def _check(self, vectors: list[list[float]], expected: int) -> None:
        if len(vectors) != expected:
            raise EmbeddingError(
                f"Embedding provider returned {len(vectors)} vectors for {expected} inputs."
            )
        for i, vector in enumerate(vectors):
            if len(vector) != self.dimensions:
                raise EmbeddingError(
                    f"Embedding {i} has {len(vector)} dimensions, expected {self.dimensions}."
                )


class LiteLLMEmbedder(BaseEmbedder):
    """Embeddings through ``litellm.embedding()``.

    Args:
        model: LiteLLM model string in 'provider/model' format.
        dimensions: Vector length the model produces (must match the vec table).
    """

    def __init__(
        self,
        model: str = DEFAULT_EMBEDDING_MODEL,
        dimensions: int = DEFAULT_DIMENSIONS,
    ) -> None:
        super().__init__(dimensions)
        self.model = model

    def _embed_texts(self, texts: list[str]) -> list[list[float]]:
        self._check_api_key()
        logger.debug("Embedding %d text(s) with %s", len(texts), self.model)
        response = litellm.embedding(model=self.model, input=texts)
        return [list(item["embedding"]) for item in response.data]

    def _check_api_key(self) -> None:
        """Raise EmbeddingError if no API key is available for the model's provider."""
        provider = self.model.split("/")[0].lower() if "/" in self.model else "openai"
        env_var = _PROVIDER_ENV.get(provider)
        if env_var and not os.environ.get(env_var):
            raise EmbeddingError(
                f"No API key found for provider '{provider}'. "
                f"Set the {env_var} environment variable."
            )
