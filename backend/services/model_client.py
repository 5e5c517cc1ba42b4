"""
External model client (OpenAI chat completions).

Configuration is resolved at construction; the SDK client is built on the
first call and cached on the instance, so a missing API key only fails the
call sites that actually reach the model.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from openai import OpenAI, OpenAIError

from domain.errors import ExternalServiceError
from domain.models import MediaFile
from services.media import prepare_for_vision, to_data_url
from settings import Settings

logger = logging.getLogger(__name__)


class ModelClient:
    def __init__(self, settings: Settings):
        self.api_key = settings.OPENAI_API_KEY
        self.vision_model = settings.OPENAI_VISION_MODEL
        self.tagging_model = settings.OPENAI_TAGGING_MODEL
        self.timeout = settings.MODEL_TIMEOUT_SECONDS
        self.max_retries = settings.MODEL_MAX_RETRIES
        self.vision_max_tokens = settings.VISION_MAX_TOKENS
        self.image_detail = settings.VISION_IMAGE_DETAIL
        self._client: Optional[OpenAI] = None

    def _get_client(self) -> OpenAI:
        if self._client is None:
            if not self.api_key:
                raise ExternalServiceError("OPENAI_API_KEY is not set")
            self._client = OpenAI(
                api_key=self.api_key,
                timeout=self.timeout,
                max_retries=self.max_retries,
            )
        return self._client

    def _image_parts(self, images: Sequence[MediaFile]) -> List[dict]:
        parts = []
        for image in images:
            prepared = prepare_for_vision(image)
            parts.append(
                {
                    "type": "image_url",
                    "image_url": {"url": to_data_url(prepared), "detail": self.image_detail},
                }
            )
        return parts

    def _complete(self, model: str, messages: list, max_tokens: int) -> str:
        client = self._get_client()
        try:
            response = client.chat.completions.create(
                model=model,
                messages=messages,
                max_tokens=max_tokens,
            )
        except OpenAIError as exc:
            raise ExternalServiceError(str(exc) or exc.__class__.__name__) from exc
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    def extract(self, images: Sequence[MediaFile], system_prompt: str, instruction: str) -> str:
        """Send every image in one request and return the raw response text."""
        messages = [
            {"role": "system", "content": system_prompt},
            {
                "role": "user",
                "content": [{"type": "text", "text": instruction}, *self._image_parts(images)],
            },
        ]
        return self._complete(self.vision_model, messages, self.vision_max_tokens)

    def infer_tags(self, prompt: str) -> str:
        return self._complete(
            self.tagging_model,
            [{"role": "user", "content": prompt}],
            max_tokens=80,
        )
