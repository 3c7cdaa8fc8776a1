"""
Integration with Replicate for black-and-white coloring page generation.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable as IterableABC
from typing import Any, Callable

import replicate
import requests

from funfactory.common import RemoteGenerationError, resolve_timeout

from .prompting import apply_coloring_style

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_MODEL = "black-forest-labs/flux-schnell"
DEFAULT_IMAGE_TIMEOUT = 120.0

ImageGenerator = Callable[[str], bytes]


def _build_flux_schnell_input(*, prompt: str) -> dict[str, Any]:
    return {
        "prompt": prompt,
        "aspect_ratio": "1:1",
        "num_outputs": 1,
        "output_format": "png",
    }


def _build_flux_dev_input(*, prompt: str) -> dict[str, Any]:
    return {
        "prompt": prompt,
        "aspect_ratio": "1:1",
        "num_outputs": 1,
        "output_format": "png",
        "guidance": 3.5,
    }


def _build_imagen_input(*, prompt: str) -> dict[str, Any]:
    return {
        "prompt": prompt,
        "aspect_ratio": "1:1",
        "output_format": "png",
        "safety_filter_level": "block_medium_and_above",
    }


def _build_sdxl_input(*, prompt: str) -> dict[str, Any]:
    return {
        "prompt": prompt,
        "negative_prompt": "color, shading, gradients, photorealistic, text, watermark",
        "width": 1024,
        "height": 1024,
        "num_outputs": 1,
    }


_MODEL_INPUT_BUILDERS: dict[str, Callable[..., dict[str, Any]]] = {
    "black-forest-labs/flux-schnell": _build_flux_schnell_input,
    "black-forest-labs/flux-dev": _build_flux_dev_input,
    "google/imagen-4": _build_imagen_input,
    "stability-ai/sdxl": _build_sdxl_input,
}


def _build_replicate_input_payload(*, model_identifier: str, prompt: str) -> dict[str, Any]:
    normalized_identifier = model_identifier.strip().lower()
    builder = _MODEL_INPUT_BUILDERS.get(normalized_identifier)
    if builder is None and ":" in normalized_identifier:
        base_identifier = normalized_identifier.split(":", maxsplit=1)[0]
        builder = _MODEL_INPUT_BUILDERS.get(base_identifier)
    if builder is None:
        supported_models = ", ".join(sorted(_MODEL_INPUT_BUILDERS))
        raise ValueError(
            "Model identifier "
            f"'{model_identifier}' is not configured with a default input payload. "
            f"Supported models: {supported_models}."
        )

    return builder(prompt=prompt)


class ReplicateImageGenerator:
    """
    Convenience wrapper around the Replicate client for coloring page generation.

    Parameters
    ----------
    api_token:
        Replicate API token. Falls back to ``REPLICATE_API_TOKEN`` environment variable.
    model_identifier:
        Model string in the ``owner/model`` or ``owner/model:version`` format. Falls back
        to ``REPLICATE_MODEL`` / ``FUNFACTORY_IMAGE_MODEL`` and then to FLUX schnell.
    timeout:
        Upper bound, in seconds, for the prediction and for downloading its output.
        Falls back to ``FUNFACTORY_REQUEST_TIMEOUT``.
    client:
        Optional pre-configured :class:`replicate.Client`. Mainly useful for testing.
    http_session:
        Optional :class:`requests.Session` used to download output URLs.
    """

    def __init__(
        self,
        *,
        api_token: str | None = None,
        model_identifier: str | None = None,
        timeout: float | None = None,
        client: replicate.Client | None = None,
        http_session: requests.Session | None = None,
    ) -> None:
        self._api_token = api_token or os.getenv("REPLICATE_API_TOKEN")
        if not self._api_token and not client:
            raise ValueError(
                "Replicate API token is required. Set REPLICATE_API_TOKEN or pass api_token."
            )

        self._model_identifier = (
            model_identifier
            or os.getenv("REPLICATE_MODEL")
            or os.getenv("FUNFACTORY_IMAGE_MODEL")
            or DEFAULT_IMAGE_MODEL
        )
        self._timeout = resolve_timeout(timeout, DEFAULT_IMAGE_TIMEOUT)
        self._client = client or replicate.Client(
            api_token=self._api_token,
            timeout=self._timeout,
        )
        self._http = http_session or requests.Session()

    @property
    def model_identifier(self) -> str:
        """Return the model identifier currently used."""
        return self._model_identifier

    @property
    def timeout(self) -> float:
        return self._timeout

    def __call__(self, prompt: str) -> bytes:
        return self.generate_image(prompt)

    def generate_image(self, prompt: str, **model_kwargs: Any) -> bytes:
        """
        Generate a single square coloring page for ``prompt`` and return the PNG bytes.

        The coloring-book style suffix is appended here, so callers pass the plain
        page prompt. Any failure (network, quota, timeout, empty output) is raised
        as :class:`RemoteGenerationError`.
        """
        if not prompt or not prompt.strip():
            raise ValueError("prompt must be a non-empty string.")

        replicate_input = _build_replicate_input_payload(
            model_identifier=self._model_identifier,
            prompt=apply_coloring_style(prompt),
        )
        # Allow the caller to tweak model-specific knobs (e.g., seed).
        replicate_input.update(model_kwargs)

        try:
            outputs = self._client.run(self._model_identifier, input=replicate_input)
            image_bytes = self._read_first_output(outputs)
        except RemoteGenerationError:
            raise
        except Exception as exc:
            logger.warning("Replicate generation failed for prompt %r: %s", prompt, exc)
            raise RemoteGenerationError(f"Failed to generate image: {exc}") from exc

        if not image_bytes:
            raise RemoteGenerationError("No image data received from the model.")
        return image_bytes

    def _read_first_output(self, outputs: Any) -> bytes:
        items = _flatten_outputs(outputs)
        if not items:
            raise RemoteGenerationError("No image data received from the model.")

        first = items[0]
        if isinstance(first, bytes):
            return first
        if hasattr(first, "read"):
            return first.read()
        return self._download(str(first))

    def _download(self, url: str) -> bytes:
        response = self._http.get(url, timeout=self._timeout)
        response.raise_for_status()
        return response.content


def _flatten_outputs(raw: Any) -> list[Any]:
    """
    Normalize Replicate outputs (URL strings, file outputs, or nested lists) into a flat list.
    """
    if raw is None:
        return []

    if isinstance(raw, (str, bytes)) or hasattr(raw, "read"):
        return [raw]

    if isinstance(raw, IterableABC):
        collected = list(raw)
        if all(isinstance(item, str) and len(item) == 1 for item in collected) and collected:
            return ["".join(collected)]

        flattened: list[Any] = []
        for item in collected:
            if item is None:
                continue
            if isinstance(item, (str, bytes)) or hasattr(item, "read"):
                flattened.append(item)
            elif isinstance(item, IterableABC):
                flattened.extend(_flatten_outputs(item))
            else:
                flattened.append(str(item))
        return flattened

    return [str(raw)]
