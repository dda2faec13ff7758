from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, List
from openai import (
    AsyncOpenAI,
    OpenAIError,
    APIError,
    APIConnectionError,
    APITimeoutError
)

from master_editor.config_loader import BaseConfig, ImageConfig
from master_editor.errors import GenerationError
from master_editor.log_config import loggers
from master_editor.model import AspectRatio

logger = loggers['provider']

# Abstract provider
class ModelManager(ABC):
    @abstractmethod
    async def generate(self, messages: List[Dict[str, Any]], params: BaseConfig) -> str:
        pass

    @abstractmethod
    async def generate_image(self, prompt: str, aspect_ratio: AspectRatio, params: ImageConfig) -> str:
        pass

# OpenAI-compatible API provider
class APIModelManager(ModelManager):

    def __init__(self, api_url: Optional[str] = None, api_key: Optional[str] = None, timeout: float = 120):
        self.api_url = api_url
        self.api_key = api_key
        self.timeout = timeout
        self._client = None

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            try:
                # failed generations are never retried automatically
                self._client = AsyncOpenAI(
                    api_key=self.api_key,
                    base_url=self.api_url,
                    timeout=self.timeout,
                    max_retries=0
                )
            except OpenAIError as e:
                raise GenerationError(f"Provider is not configured: {e}") from e
        return self._client

    async def generate(self, messages: List[Dict[str, Any]], params: BaseConfig) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=params.model_name,
                messages=messages,
                temperature=params.temperature,
                top_p=params.top_p,
                max_tokens=params.max_new_tokens,
                response_format={"type": "json_object"}
            )
        except (APIError, APIConnectionError, APITimeoutError) as e:
            logger.warning(f"Chat completion failed: {e}")
            raise GenerationError(f"Text generation failed: {e}") from e

        if not response.choices or not response.choices[0].message.content:
            raise GenerationError("No response text received from the provider.")
        return response.choices[0].message.content

    async def generate_image(self, prompt: str, aspect_ratio: AspectRatio, params: ImageConfig) -> str:
        size = params.sizes.get(AspectRatio(aspect_ratio).value, "1024x1024")
        try:
            response = await self.client.images.generate(
                model=params.model_name,
                prompt=prompt,
                size=size,
                n=1,
                response_format="b64_json"
            )
        except (APIError, APIConnectionError, APITimeoutError) as e:
            logger.warning(f"Image generation failed: {e}")
            raise GenerationError(f"Image generation failed: {e}") from e

        image_data = response.data[0].b64_json if response.data else None
        if not image_data:
            raise GenerationError("No image generated.")
        return f"data:{params.output_mime_type};base64,{image_data}"
