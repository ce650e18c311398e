import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx
import requests
from ollama import AsyncClient, RequestError, ResponseError
from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from adventure_weaver.core.errors import EmptyResponse, GenerationError
from adventure_weaver.core.models import Scene
from adventure_weaver.core.settings import Settings, settings as default_settings
from adventure_weaver.core.utils import recent_scenes, to_data_url
from adventure_weaver.services import prompts

logger = logging.getLogger(__name__)

_TEXT_TRANSPORT_ERRORS = (ConnectionError, httpx.TransportError)
_IMAGE_TRANSPORT_ERRORS = (requests.ConnectionError, requests.Timeout)


class StoryClient:
    """
    Talks to the story provider: Ollama's chat API for scenes and an
    AUTOMATIC1111-style txt2img endpoint for illustrations.
    Every failure comes out as a GenerationError.
    """

    def __init__(self, settings: Optional[Settings] = None, http: Optional[requests.Session] = None):
        self.settings = settings or default_settings
        self._http = http or requests.Session()

    # ——— Text ——————————————————————————————————————————

    def _ollama(self) -> AsyncClient:
        # A fresh client per call: the UI drives each action with its own event loop.
        return AsyncClient(
            host=str(self.settings.ollama_host),
            headers=self.settings.auth_headers(),
            timeout=self.settings.request_timeout,
        )

    def _stop(self):
        return stop_after_attempt(max(1, self.settings.request_attempts))

    async def _chat_once(self, client: AsyncClient, messages: List[Dict[str, str]]) -> Any:
        model = self.settings.ollama_model
        opts = {"temperature": self.settings.temperature, "num_predict": self.settings.max_tokens}
        schema = Scene.model_json_schema(by_alias=True)
        try:
            return await client.chat(model=model, messages=messages, format=schema, options=opts)
        except ResponseError as e:
            if e.status_code == 404 and self.settings.auto_pull:
                logger.warning("Model %s not found, pulling...", model)
                await client.pull(model)
                return await client.chat(model=model, messages=messages, format=schema, options=opts)
            raise

    async def _scene(self, messages: List[Dict[str, str]]) -> Scene:
        client = self._ollama()
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(_TEXT_TRANSPORT_ERRORS),
                wait=wait_exponential(min=1, max=5),
                stop=self._stop(),
                reraise=True,
            ):
                with attempt:
                    resp = await self._chat_once(client, messages)
        except ResponseError as e:
            logger.exception("Story provider error (%s)", e.status_code)
            raise GenerationError(f"Story provider error: {e.error}") from e
        except (RequestError, ConnectionError, httpx.HTTPError) as e:
            logger.exception("Story provider unreachable at %s", self.settings.ollama_host)
            raise GenerationError(f"Could not reach the story provider: {e}") from e

        message = getattr(resp, "message", None)
        raw = (getattr(message, "content", "") or "").strip()
        if not raw:
            raise EmptyResponse("No data received from AI.")
        try:
            return Scene.model_validate_json(prompts.extract_json(raw))
        except ValidationError as e:
            logger.warning("Scene parse error: %s\nRaw: %s", e, raw)
            raise GenerationError("The AI returned a scene that could not be read.") from e

    async def get_initial_scene(self, theme: str) -> Scene:
        logger.info("Requesting opening scene for theme %r", theme)
        return await self._scene(prompts.initial_messages(theme))

    async def get_next_scene(self, current_scene: str, chosen_action: str, prior_scenes: Sequence[str]) -> Scene:
        history = recent_scenes(prior_scenes, self.settings.context_scenes)
        logger.info("Requesting next scene for choice %r (%d scenes of context)", chosen_action, len(history))
        return await self._scene(prompts.next_messages(current_scene, chosen_action, history))

    async def ping(self) -> bool:
        try:
            await self._ollama().list()
            return True
        except (ResponseError, RequestError, ConnectionError, httpx.HTTPError) as e:
            logger.debug("Story provider not available: %s", e)
            return False

    # ——— Images ————————————————————————————————————————

    async def generate_image(self, prompt: str) -> str:
        if not prompt.strip():
            raise EmptyResponse("No image prompt to draw.")
        return await asyncio.to_thread(self._txt2img, prompt)

    def _txt2img(self, prompt: str) -> str:
        url = f"{str(self.settings.image_host).rstrip('/')}/sdapi/v1/txt2img"
        payload = {
            "prompt": prompts.image_prompt(prompt),
            "negative_prompt": self.settings.negative_prompt,
            "width": self.settings.image_width,
            "height": self.settings.image_height,
            "steps": self.settings.image_steps,
        }
        try:
            for attempt in Retrying(
                retry=retry_if_exception_type(_IMAGE_TRANSPORT_ERRORS),
                wait=wait_exponential(min=1, max=5),
                stop=self._stop(),
                reraise=True,
            ):
                with attempt:
                    r = self._http.post(
                        url,
                        json=payload,
                        headers=self.settings.auth_headers(),
                        timeout=self.settings.request_timeout,
                    )
                    r.raise_for_status()
        except requests.RequestException as e:
            logger.exception("Image request failed for prompt %r", prompt)
            raise GenerationError(f"Image generation failed: {e}") from e

        try:
            data = r.json()
        except ValueError as e:
            raise GenerationError("The image provider returned an unreadable reply.") from e
        images = data.get("images") if isinstance(data, dict) else None
        if not images or not images[0]:
            raise EmptyResponse("No image data received from AI.")
        try:
            return to_data_url(images[0])
        except ValueError as e:
            raise GenerationError(f"The image provider returned a broken image: {e}") from e


story_client = StoryClient()
