"""
LLM Service for SOAP note synthesis
"""

import json
import random
from typing import Optional

import httpx

from scribeai.config import settings
from scribeai.core.logging import get_logger, audit_logger
from scribeai.exceptions import SynthesisError
from scribeai.models.domain import NoteRequest, NoteSource
from scribeai.models.responses import NoteResult
from scribeai.services.google_api import GoogleApiClient, TokenProvider
from scribeai.services.prompt_builder import build_soap_prompt, enhance_prompt_with_training
from scribeai.services.property_store import PropertyStore, GCP_PROJECT_ID_KEY
from scribeai.services.soap_extractor import generate_simple_soap_note
from scribeai.services.training_service import TrainingService

logger = get_logger(__name__)


class LLMService(GoogleApiClient):
    """Turns a transcript into a SOAP note via Vertex AI, falling back to heuristics."""

    service_name = "vertex"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        token_provider: TokenProvider,
        store: PropertyStore,
        training_service: TrainingService,
        rng: Optional[random.Random] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
    ):
        super().__init__(http_client, token_provider)
        self.store = store
        self.training_service = training_service
        self.rng = rng or random.Random()
        self.base_url = (base_url or settings.vertex_base_url).rstrip("/")
        self.model = model or settings.vertex_model
        self.location = settings.vertex_location

    def _project_id(self) -> str:
        return self.store.get(GCP_PROJECT_ID_KEY) or settings.gcp_project_id

    def _predict_url(self) -> str:
        return (
            f"{self.base_url}/projects/{self._project_id()}/locations/{self.location}"
            f"/publishers/google/models/{self.model}:predict"
        )

    def build_prompt(self, request: NoteRequest) -> str:
        base_prompt = build_soap_prompt(request)
        try:
            examples = self.training_service.sample(settings.prompt_training_examples, self.rng)
        except (ValueError, TypeError) as e:
            # unreadable training data must not block note generation
            logger.warning(f"Error enhancing prompt with training: {e}")
            return base_prompt
        return enhance_prompt_with_training(base_prompt, examples)

    async def generate(self, prompt: str) -> str:
        """
        Calls the predict endpoint with fixed sampling parameters.

        Raises:
            SynthesisError: non-2xx status or a response without usable content.
        """
        payload = {
            "instances": [{"content": prompt}],
            "parameters": {
                "temperature": settings.llm_temperature,
                "maxOutputTokens": settings.llm_max_output_tokens,
                "topP": settings.llm_top_p,
                "topK": settings.llm_top_k,
            },
        }
        logger.info("Sending request to Vertex AI...")
        response = await self._request(
            "POST", self._predict_url(), json=payload, timeout=settings.llm_timeout
        )
        if not response.is_success:
            raise SynthesisError(
                f"Vertex AI returned {response.status_code}: {describe_prediction_error(response.text)}",
                status_code=response.status_code,
            )

        try:
            content = response.json()["predictions"][0]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise SynthesisError(f"Unexpected Vertex AI response shape: {e}", status_code=response.status_code) from e
        if not isinstance(content, str) or not content.strip():
            raise SynthesisError("Vertex AI returned an empty note", status_code=response.status_code)
        return content

    async def synthesize(self, request: NoteRequest) -> NoteResult:
        """
        Never fails: any problem with the model call yields a heuristic note.
        """
        try:
            note = await self.generate(self.build_prompt(request))
            source = NoteSource.AI
            logger.info("AI-powered SOAP Note generated successfully with Vertex AI.")
        except Exception as e:
            logger.warning(f"Vertex AI note generation failed, using heuristic fallback: {e}")
            note = generate_simple_soap_note(request.transcript)
            source = NoteSource.HEURISTIC

        audit_logger.log_note_generation(
            specialty=request.specialty,
            detail_level=request.detail_level,
            template=request.template,
            note_source=source.value,
            transcript_chars=len(request.transcript),
        )
        return NoteResult(transcript=request.transcript, note=note, note_source=source)


def describe_prediction_error(body: str) -> str:
    """Extracts the API error message from an error body, if it is JSON."""
    try:
        return json.loads(body)["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return body[:200]
