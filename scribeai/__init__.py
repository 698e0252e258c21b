"""
ScribeAI - Medical Transcription and SOAP Note Service

Uploads recorded encounter audio to Cloud Storage, runs long-running
Speech-to-Text recognition and turns the transcript into a SOAP note
with Vertex AI, falling back to a rule-based note when generation fails.
"""

__version__ = "1.0.0"
