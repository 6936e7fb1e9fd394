"""OpenAI image generation (DALL-E 2/3 and gpt-image-1)."""
from __future__ import annotations

import base64
import logging
from typing import Any, Dict, List, Optional

import httpx

from genai.adapters.base import HttpAdapter, new_id, now, raise_for_provider
from genai.types import AdapterCapabilities, GeneratedImage, ImageRequest, ImageResult, ResolvedSettings

log = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"

PROMPT_LIMITS = {
    'gpt-image-1': 32000,
    'gpt-image-1-mini': 32000,
    'dall-e-3': 4000,
    'dall-e-2': 1000,
}


class OpenAIImageAdapter(HttpAdapter):
    """Synchronous: one POST returns every image."""

    id = 'openai-images'
    requires_credential = True
    capabilities = AdapterCapabilities(
        supports_multiple_outputs=True,
        supports_b64_json=True,
        supports_hosted_urls=True,
    )

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(base_url, timeout, transport)
        self._logger = logger or log

    def validate_credential(self, credential: str) -> bool:
        return credential.startswith('sk-') and len(credential) >= 20

    def build_payload(self, request: ImageRequest, prompt: str, settings: ResolvedSettings) -> Dict[str, Any]:
        model_id = request.model_id or 'dall-e-3'
        limit = PROMPT_LIMITS.get(model_id)
        if limit and len(prompt) > limit:
            raise ValueError(f"Prompt too long for model {model_id}: {len(prompt)} characters (max: {limit})")

        count = request.count or settings.get('n') or 1
        if model_id == 'dall-e-3' and count > 1:
            raise ValueError("dall-e-3 only supports generating 1 image at a time (n=1)")

        payload: Dict[str, Any] = {
            "model": model_id,
            "prompt": prompt,
            "n": count,
            "size": f"{settings.get('width', 1024)}x{settings.get('height', 1024)}",
        }
        if model_id.startswith('gpt-image-1'):
            if settings.get('quality'):
                payload["quality"] = settings['quality']
        else:
            if model_id == 'dall-e-3':
                if settings.get('quality'):
                    payload["quality"] = settings['quality']
                if settings.get('style'):
                    payload["style"] = settings['style']
            payload["response_format"] = 'url' if settings.get('response_format') == 'url' else 'b64_json'
        if settings.get('user'):
            payload["user"] = settings['user']
        return payload

    async def generate(
        self,
        request: ImageRequest,
        resolved_prompt: str,
        settings: ResolvedSettings,
        credential: Optional[str],
    ) -> ImageResult:
        payload = self.build_payload(request, resolved_prompt, settings)
        headers = {
            "Authorization": f"Bearer {credential}",
            "Content-Type": "application/json",
        }
        self._logger.debug(f"OpenAI image call for model {payload['model']} (n={payload['n']})")

        async with self.client() as client:
            try:
                response = await client.post("/images/generations", headers=headers, json=payload)
                raise_for_provider(response, "OpenAI Images")
                data = response.json()
                images = await self._collect_images(client, data.get("data") or [], resolved_prompt)
            except httpx.HTTPError as e:
                self._logger.error(f"OpenAI Images API error: {e}")
                raise

        usage = data.get("usage")
        return ImageResult(
            id=new_id("img"),
            provider=self.id,
            model=payload["model"],
            created=data.get("created") or now(),
            data=images,
            usage={
                "input_tokens": usage.get("input_tokens"),
                "output_tokens": usage.get("output_tokens"),
            } if usage else None,
        )

    async def _collect_images(self, client: httpx.AsyncClient, items: List[Dict[str, Any]],
                              prompt: str) -> List[GeneratedImage]:
        if not items:
            raise ValueError("OpenAI API returned no images in response")
        images = []
        for index, item in enumerate(items):
            if item.get("b64_json"):
                images.append(GeneratedImage(
                    index=index,
                    data=base64.b64decode(item["b64_json"]),
                    b64_json=item["b64_json"],
                    prompt=prompt,
                ))
            elif item.get("url"):
                url = item["url"]
                fetched = await client.get(url)
                raise_for_provider(fetched, "OpenAI Images")
                mime_type = 'image/png'
                if '.jpeg' in url or '.jpg' in url:
                    mime_type = 'image/jpeg'
                elif '.webp' in url:
                    mime_type = 'image/webp'
                images.append(GeneratedImage(
                    index=index, mime_type=mime_type, data=fetched.content, url=url, prompt=prompt,
                ))
            else:
                raise ValueError("OpenAI response contained neither url nor b64_json")
        return images
