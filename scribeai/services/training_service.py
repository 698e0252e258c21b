"""
Training examples: clinician-corrected notes used to steer prompts
"""

import json
import random
from typing import List, Optional

from scribeai.config import settings
from scribeai.core.logging import get_logger
from scribeai.models.domain import TrainingExample
from scribeai.services.property_store import PropertyStore, TRAINING_EXAMPLES_KEY

logger = get_logger(__name__)


class TrainingService:
    """Append-only list of examples, capped to the most recent entries."""

    def __init__(self, store: PropertyStore, max_examples: Optional[int] = None):
        self.store = store
        self.max_examples = max_examples or settings.max_training_examples

    def list_examples(self) -> List[TrainingExample]:
        raw = self.store.get_json(TRAINING_EXAMPLES_KEY, [])
        return [TrainingExample.model_validate(item) for item in raw]

    def add_example(self, transcript: str, original_note: str, improved_note: str) -> int:
        """Stores a new example and returns how many are kept."""
        if not transcript or not original_note or not improved_note:
            raise ValueError("All fields are required.")

        examples = self.list_examples()
        examples.append(
            TrainingExample(
                transcript=transcript,
                original_note=original_note,
                improved_note=improved_note,
            )
        )
        # oldest first out
        examples = examples[-self.max_examples:]

        self.store.set_json(
            TRAINING_EXAMPLES_KEY,
            [example.model_dump(by_alias=True) for example in examples],
        )
        logger.info(f"Training example saved, {len(examples)} stored")
        return len(examples)

    def sample(self, k: int, rng: Optional[random.Random] = None) -> List[TrainingExample]:
        """Up to k examples, uniform without replacement."""
        examples = self.list_examples()
        if not examples or k <= 0:
            return []
        rng = rng or random.Random()
        return rng.sample(examples, min(k, len(examples)))

    def export_jsonl(self) -> str:
        """One {"input_text", "output_text"} object per line, for fine-tuning."""
        return "\n".join(
            json.dumps({"input_text": example.transcript, "output_text": example.improved_note})
            for example in self.list_examples()
        )
