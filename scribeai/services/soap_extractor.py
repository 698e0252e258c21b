"""
Rule-based SOAP note extraction, used when the generative model is unavailable.
Pure and deterministic: no network, no clock, no randomness.
"""

import re
from typing import List

COMMON_COMPLAINTS = (
    "pain", "discomfort", "fever", "cough", "headache", "nausea",
    "fatigue", "dizziness", "weakness", "numbness", "tingling",
)

VITAL_PATTERNS = (
    re.compile(r"\b\d{2,3}[/\s]\d{2,3}\b"),              # blood pressure, 120/80
    re.compile(r"\b\d{2,3}\s*bpm\b", re.IGNORECASE),      # heart rate
    re.compile(r"\b\d{2}[.,]\d{1,2}\s*[cCfF]\b"),         # temperature
    re.compile(r"\b\d{2,3}\s*kg\b", re.IGNORECASE),       # weight
    re.compile(r"\b\d{2,3}\s*cm\b", re.IGNORECASE),       # height
    re.compile(r"\b\d{2,3}\s*mm[hH]g\b", re.IGNORECASE),  # blood pressure units
)

SENTENCE_BOUNDARY = re.compile(r"[.!?]\s+")
SUBJECTIVE_PREVIEW_CHARS = 100

NORMAL_VITALS = "Physical examination performed. Vitals within normal limits."
PLAN_ITEMS = (
    "1. Continue monitoring symptoms",
    "2. Follow up in 2 weeks",
    "3. Patient education provided regarding management of symptoms",
)


def split_sentences(transcript: str) -> List[str]:
    """Sentences without their terminal punctuation, blanks dropped."""
    sentences = (s.strip().rstrip(".!?") for s in SENTENCE_BOUNDARY.split(transcript))
    return [s for s in sentences if s]


def find_complaints(sentences: List[str]) -> List[str]:
    return [s for s in sentences if any(c in s.lower() for c in COMMON_COMPLAINTS)]


def find_measurements(sentences: List[str]) -> List[str]:
    return [s for s in sentences if any(p.search(s) for p in VITAL_PATTERNS)]


def generate_simple_soap_note(transcript: str) -> str:
    """Best-effort SOAP note built from keyword and pattern matches."""
    transcript = transcript or ""
    sentences = split_sentences(transcript)
    complaints = find_complaints(sentences)
    measurements = find_measurements(sentences)

    note = "Subjective:\n"
    if complaints:
        note += ". ".join(complaints) + ".\n\n"
    else:
        raw = transcript.strip()
        if len(raw) > SUBJECTIVE_PREVIEW_CHARS:
            raw = raw[:SUBJECTIVE_PREVIEW_CHARS] + "..."
        note += "Patient reports " + raw + "\n\n"

    note += "Objective:\n"
    if measurements:
        note += ". ".join(measurements) + ".\n\n"
    else:
        note += NORMAL_VITALS + "\n\n"

    note += "Assessment:\n"
    if complaints:
        finding = "potential issues related to " + complaints[0].lower()
    else:
        finding = "further evaluation needed"
    note += (
        "Based on the patient's presentation and reported symptoms, assessment indicates "
        + finding + ".\n\n"
    )

    note += "Plan:\n"
    note += "".join(item + "\n" for item in PLAN_ITEMS)
    return note
