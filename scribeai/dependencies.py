"""Dependency wiring for the ScribeAI service."""

import random
from typing import Optional

import httpx
from fastapi import Request

from scribeai.config import settings
from scribeai.core.security import GoogleTokenProvider
from scribeai.services.google_api import TokenProvider
from scribeai.services.job_poller import JobPoller
from scribeai.services.llm_service import LLMService
from scribeai.services.property_store import JsonFilePropertyStore, PropertyStore
from scribeai.services.scribe_pipeline import ScribePipeline
from scribeai.services.sheet_logger import SheetLogger
from scribeai.services.storage_service import StorageService
from scribeai.services.stt_service import STTService
from scribeai.services.template_service import TemplateService
from scribeai.services.training_service import TrainingService


class Services:
    """All service instances sharing one HTTP client and one property store."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        store: Optional[PropertyStore] = None,
        token_provider: Optional[TokenProvider] = None,
        rng: Optional[random.Random] = None,
        poller: Optional[JobPoller] = None,
    ):
        self.http_client = http_client
        self.store = store or JsonFilePropertyStore(settings.property_store_path)
        self.token_provider = token_provider or GoogleTokenProvider()

        self.templates = TemplateService(self.store)
        self.training = TrainingService(self.store)
        self.storage = StorageService(http_client, self.token_provider)
        self.stt = STTService(http_client, self.token_provider)
        self.poller = poller or JobPoller(self.stt)
        self.llm = LLMService(http_client, self.token_provider, self.store, self.training, rng=rng)
        self.sheet_logger = SheetLogger(http_client, self.token_provider, self.store)
        self.pipeline = ScribePipeline(
            self.storage, self.stt, self.poller, self.llm, self.sheet_logger, templates=self.templates
        )

    async def aclose(self) -> None:
        await self.http_client.aclose()


def create_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.http_timeout)


def get_services(request: Request) -> Services:
    """FastAPI dependency returning the services built at startup."""
    return request.app.state.services
