"""
Local stable-diffusion server with an asynchronous job API.

POST {base}/v1/images/generations submits a job and answers with
``{id, status, createdAt}``; GET {base}/v1/images/generations/{id} returns the
job snapshot which :class:`GenerationPoller` drives to completion.
"""
from __future__ import annotations

import base64
import logging
import time
from typing import Any, Dict, Optional

import httpx

from core import monitoring
from genai.adapters.base import HttpAdapter, new_id, now, raise_for_provider
from genai.poller import DEFAULT_POLL_INTERVAL, DEFAULT_POLL_TIMEOUT, GenerationPoller
from genai.types import (
    AdapterCapabilities,
    GeneratedImage,
    GenerationJob,
    ImageRequest,
    ImageResult,
    ResolvedSettings,
)

log = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8081"
DEFAULT_SAMPLER = 'euler_a'


class DiffusionImageAdapter(HttpAdapter):
    """Job-based adapter: submit, then poll until the job is terminal."""

    id = 'electron-diffusion'
    requires_credential = False
    capabilities = AdapterCapabilities(
        supports_multiple_outputs=True,
        supports_b64_json=True,
        supports_progress_events=True,
        supports_negative_prompt=True,
    )

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 120.0,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        poll_timeout: float = DEFAULT_POLL_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[logging.Logger] = None,
        clock=time.monotonic,
        sleep=None,
    ):
        super().__init__(base_url, timeout, transport)
        self.poll_interval = poll_interval
        self.poll_timeout = poll_timeout
        self.clock = clock
        self.sleep = sleep
        self._logger = logger or log

    def build_payload(self, request: ImageRequest, prompt: str, settings: ResolvedSettings) -> Dict[str, Any]:
        diffusion = settings.get('diffusion') or {}
        payload: Dict[str, Any] = {
            "prompt": prompt,
            "width": diffusion.get('width') or settings.get('width', 512),
            "height": diffusion.get('height') or settings.get('height', 512),
            "steps": diffusion.get('steps', 20),
            "cfgScale": diffusion.get('cfg_scale', 7.5),
            "sampler": diffusion.get('sampler') or DEFAULT_SAMPLER,
            "count": request.count or settings.get('n') or 1,
        }
        if diffusion.get('negative_prompt'):
            payload["negativePrompt"] = diffusion['negative_prompt']
        if diffusion.get('seed') is not None:
            payload["seed"] = diffusion['seed']
        return payload

    async def generate(
        self,
        request: ImageRequest,
        resolved_prompt: str,
        settings: ResolvedSettings,
        credential: Optional[str],
    ) -> ImageResult:
        payload = self.build_payload(request, resolved_prompt, settings)

        async with self.client() as client:
            try:
                submitted_at = self.clock()
                response = await client.post("/v1/images/generations", json=payload)
                raise_for_provider(response, "Diffusion server")
                job = GenerationJob.model_validate(response.json())
                self._logger.info(f"Submitted diffusion job {job.id} ({payload['steps']} steps)")

                async def fetch_status(job_id: str) -> GenerationJob:
                    monitoring.record_poll(self.id)
                    status = await client.get(f"/v1/images/generations/{job_id}")
                    raise_for_provider(status, "Diffusion server")
                    return GenerationJob.model_validate(status.json())

                poller = GenerationPoller(
                    fetch_status,
                    interval=self.poll_interval,
                    timeout=self.poll_timeout,
                    on_progress=request.on_progress,
                    cancel_event=request.cancel_event,
                    clock=self.clock,
                    sleep=self.sleep,
                    logger=self._logger,
                )
                result = await poller.run(job, submitted_at)
            except httpx.HTTPError as e:
                self._logger.error(f"Diffusion server error ({self.base_url}): {e}")
                raise

        return self.to_result(result, request, resolved_prompt)

    def to_result(self, result: Dict[str, Any], request: ImageRequest, prompt: str) -> ImageResult:
        image_format = result.get("format") or "png"
        images = []
        for index, item in enumerate(result.get("images") or []):
            b64 = item.get("image") or ""
            images.append(GeneratedImage(
                index=index,
                mime_type=f"image/{image_format}",
                data=base64.b64decode(b64),
                b64_json=b64,
                prompt=prompt,
                seed=item.get("seed"),
                metadata={"width": item.get("width"), "height": item.get("height")},
            ))
        return ImageResult(
            id=new_id("img"),
            provider=self.id,
            model=request.model_id or "stable-diffusion",
            created=now(),
            data=images,
            usage={"cost": 0, "time_taken": result.get("timeTaken")},
        )
