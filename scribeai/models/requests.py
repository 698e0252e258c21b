"""
Pydantic Models for API Requests
"""

from pydantic import BaseModel, Field


class TemplateSaveRequest(BaseModel):
    """Request model for saving a custom note template."""
    name: str = Field(min_length=1, description="Template name")
    instructions: str = Field(min_length=1, description="Free-text instructions appended to the prompt")


class TrainingExampleRequest(BaseModel):
    """A clinician-improved note submitted as a training example."""
    transcript: str = Field(min_length=1)
    original_note: str = Field(min_length=1, description="Note as generated")
    improved_note: str = Field(min_length=1, description="Note after clinician edits")
