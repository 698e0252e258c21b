"""
Prompt construction for SOAP note generation
"""

from typing import Iterable

from scribeai.config import DetailLevel, NoteTemplate, Specialty, settings
from scribeai.models.domain import NoteRequest, TrainingExample

SPECIALTY_GUIDANCE = {
    Specialty.CARDIOLOGY.value: "Focus on cardiovascular findings, EKG results, and heart-related symptoms. Include specific cardiac measurements when available.",
    Specialty.DERMATOLOGY.value: "Emphasize skin findings with detailed descriptions of lesions, rashes, or other dermatological conditions.",
    Specialty.NEUROLOGY.value: "Focus on neurological exam findings, cognitive assessments, and nervous system symptoms.",
    Specialty.ORTHOPEDICS.value: "Emphasize musculoskeletal findings, joint examinations, and mobility assessments.",
    Specialty.PEDIATRICS.value: "Include age-appropriate developmental assessments and growth parameters. Adjust language for pediatric context.",
    Specialty.PSYCHIATRY.value: "Focus on mental status examination, mood, affect, and cognitive function. Include risk assessments when relevant.",
    Specialty.GENERAL.value: "Create a comprehensive note covering all relevant body systems mentioned in the transcript.",
}

DETAIL_GUIDANCE = {
    DetailLevel.DETAILED.value: "Create a highly detailed clinical note with comprehensive findings and extensive plan elements.",
    DetailLevel.CONCISE.value: "Create a concise, focused note highlighting only the most important findings and recommendations.",
    DetailLevel.STANDARD.value: "Create a standard clinical note with appropriate level of detail for routine documentation.",
}

TEMPLATE_GUIDANCE = {
    NoteTemplate.FOLLOWUP.value: """This is a FOLLOW-UP VISIT. Please emphasize:
- Changes since the last visit
- Response to previous treatments
- Progress toward treatment goals
- Any new concerns that have developed
- Adjustments to the existing treatment plan""",
    NoteTemplate.NEW_PATIENT.value: """This is a NEW PATIENT VISIT. Please emphasize:
- Comprehensive history
- Complete review of systems
- Detailed family and social history
- Thorough physical examination
- Initial assessment and differential diagnosis
- Comprehensive initial treatment plan including any necessary testing""",
    NoteTemplate.CHRONIC.value: """This is a CHRONIC CONDITION MANAGEMENT visit. Please emphasize:
- Long-term symptom management
- Medication compliance and side effects
- Disease progression or stability
- Impact on quality of life
- Adjustments to long-term management plan
- Preventive measures to avoid complications""",
    NoteTemplate.ACUTE.value: """This is an ACUTE ILLNESS visit. Please emphasize:
- Onset and progression of symptoms
- Severity and impact of current symptoms
- Focused examination findings related to the acute condition
- Clear diagnosis of the acute condition when possible
- Specific treatment plan with timeline for expected improvement
- Return precautions and follow-up instructions""",
    NoteTemplate.PREVENTIVE.value: """This is a PREVENTIVE CARE visit. Please emphasize:
- Age and risk-appropriate screening
- Immunization status and updates
- Health maintenance activities
- Risk factor assessment and modification
- Patient education on preventive measures
- Recommendations for future preventive services""",
    NoteTemplate.NONE.value: "",
}


def get_specialty_guidance(specialty: str) -> str:
    return SPECIALTY_GUIDANCE.get((specialty or "").lower(), SPECIALTY_GUIDANCE[Specialty.GENERAL.value])


def get_detail_guidance(detail_level: str) -> str:
    return DETAIL_GUIDANCE.get((detail_level or "").lower(), DETAIL_GUIDANCE[DetailLevel.STANDARD.value])


def get_template_guidance(template: str, custom_instructions: str = "") -> str:
    """Guidance for a template name. Unknown names give an empty string."""
    if template == NoteTemplate.CUSTOM.value and custom_instructions:
        return f"Template Instructions: {custom_instructions}"
    return TEMPLATE_GUIDANCE.get(template, "")


def build_soap_prompt(request: NoteRequest) -> str:
    """Assembles the single natural-language prompt sent to the model."""
    specialty = request.specialty or Specialty.GENERAL.value
    return f"""You are an expert medical scribe with experience in creating detailed SOAP notes for {specialty} practice.

I will provide you with a transcript of a medical encounter. Please convert this into a well-structured SOAP note.

SOAP Note Format:
- Subjective: Patient's history, complaints, and symptoms as described by the patient
- Objective: Physical examination findings, vital signs, and test results
  * IMPORTANT: Extract and format all vital signs properly (BP, HR, RR, O2 sat, temp, etc.)
  * Organize physical exam findings by body system
  * Do NOT include transcription artifacts like "uhm", "uh", etc. in the objective section
  * Convert casual language to formal medical documentation
- Assessment: Diagnosis or clinical impression based on subjective and objective data
- Plan: Treatment plan, medications, follow-up instructions, and referrals
  * Include patient education points
  * Include follow-up timeline

{get_specialty_guidance(request.specialty)}
{get_detail_guidance(request.detail_level)}
{get_template_guidance(request.template, request.template_instructions)}

Here is the transcript:
{request.transcript}

Please provide a comprehensive SOAP note based on this transcript. Format the note professionally with clear section headers and bullet points where appropriate. Ensure all medical terminology is accurate and properly spelled. Output only the SOAP note sections with no additional commentary."""


def enhance_prompt_with_training(
    base_prompt: str,
    examples: Iterable[TrainingExample],
    transcript_chars: int = None,
    note_chars: int = None,
) -> str:
    """Appends truncated example pairs. Returns base_prompt unchanged when there are none."""
    examples = list(examples)
    if not examples:
        return base_prompt

    transcript_chars = transcript_chars or settings.training_transcript_chars
    note_chars = note_chars or settings.training_note_chars

    section = "\n\nHere are examples of how to convert transcripts to SOAP notes:\n"
    for index, example in enumerate(examples, start=1):
        section += f"\nExample {index}:\n"
        section += f"Transcript: {example.transcript[:transcript_chars]}...\n"
        section += f"Correct SOAP Note: {example.improved_note[:note_chars]}...\n"
    return base_prompt + section
