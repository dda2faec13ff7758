import unittest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
from openai import APIConnectionError

from master_editor.config_loader import BaseConfig, ImageConfig
from master_editor.errors import GenerationError
from master_editor.model import AspectRatio
from master_editor.model_manager import APIModelManager


def manager_with(client) -> APIModelManager:
    manager = APIModelManager("http://localhost", "key")
    manager._client = client
    return manager


class TestAPIModelManager(unittest.IsolatedAsyncioTestCase):
    async def test_generate_returns_message_content(self) -> None:
        client = MagicMock()
        message = SimpleNamespace(content='{"title": "T"}')
        client.chat.completions.create = AsyncMock(return_value=SimpleNamespace(choices=[SimpleNamespace(message=message)]))

        reply = await manager_with(client).generate([{"role": "user", "content": "hi"}], BaseConfig())
        self.assertEqual(reply, '{"title": "T"}')
        kwargs = client.chat.completions.create.call_args.kwargs
        self.assertEqual(kwargs["response_format"], {"type": "json_object"})
        self.assertEqual(kwargs["model"], BaseConfig().model_name)

    async def test_empty_reply_is_generation_error(self) -> None:
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=SimpleNamespace(choices=[]))
        with self.assertRaises(GenerationError):
            await manager_with(client).generate([], BaseConfig())

    async def test_connection_error_is_generation_error(self) -> None:
        client = MagicMock()
        request = httpx.Request("POST", "http://localhost/chat/completions")
        client.chat.completions.create = AsyncMock(side_effect=APIConnectionError(request=request))
        with self.assertRaises(GenerationError):
            await manager_with(client).generate([], BaseConfig())

    async def test_image_is_returned_as_data_uri(self) -> None:
        client = MagicMock()
        client.images.generate = AsyncMock(return_value=SimpleNamespace(data=[SimpleNamespace(b64_json="AAAA")]))

        url = await manager_with(client).generate_image("a lighthouse", AspectRatio.PORTRAIT, ImageConfig())
        self.assertEqual(url, "data:image/png;base64,AAAA")
        self.assertEqual(client.images.generate.call_args.kwargs["size"], "1024x1792")

    async def test_missing_image_is_generation_error(self) -> None:
        client = MagicMock()
        client.images.generate = AsyncMock(return_value=SimpleNamespace(data=[SimpleNamespace(b64_json=None)]))
        with self.assertRaises(GenerationError):
            await manager_with(client).generate_image("p", AspectRatio.SQUARE, ImageConfig())


if __name__ == "__main__":
    unittest.main()
