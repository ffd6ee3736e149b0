"""
Prompt templates for the narrative and plan generators.

Each scenario carries a version string that is attached to the tracing span
of every call, so a change of wording shows up in telemetry.
"""

import json
from enum import Enum
from typing import Any, Dict, List

from clinicrecords.application.dto.narrative_dto import (
    NarrativeContext,
    PlanGenerationContext,
    SessionDigest,
)


class PromptScenario(str, Enum):
    SESSION_SUMMARY = "session_summary"
    SESSION_INSIGHTS = "session_insights"
    EVOLUTION_REPORT = "evolution_report"
    TREATMENT_PLAN = "treatment_plan"


PROMPT_VERSIONS: Dict[PromptScenario, str] = {
    PromptScenario.SESSION_SUMMARY: "summary_v1",
    PromptScenario.SESSION_INSIGHTS: "insights_v1",
    PromptScenario.EVOLUTION_REPORT: "evolution_v1",
    PromptScenario.TREATMENT_PLAN: "plan_v1",
}

UNKNOWN_PATIENT = "patient"

SUMMARY_SYSTEM_PROMPT = """You are an assistant specialised in clinical psychology.
Write a concise, professional therapeutic summary of one session.
The summary must:
- be objective and clinical
- highlight the main points discussed
- identify relevant emotional themes
- suggest next steps when appropriate
- keep confidentiality and technical language
- be at most 3-4 paragraphs
Write the summary in {language}."""

INSIGHTS_SYSTEM_PROMPT = """You are an assistant specialised in clinical psychology.
Identify the insights and key points of one therapy session.
Return valid JSON only, with exactly this structure:
{{
  "keyPoints": ["..."],
  "emotionalThemes": ["..."],
  "suggestedActions": ["..."],
  "riskFactors": ["..."],
  "progressIndicators": ["..."]
}}
Lists may be empty. Write the list items in {language}."""

EVOLUTION_SYSTEM_PROMPT = """You are an assistant specialised in clinical psychology.
Write an evolution report consolidating several sessions of the same patient.
The report must:
- identify how the patient evolved over time
- highlight recurring themes
- assess progress towards the therapeutic goals
- suggest adjustments to the treatment plan
- have a structured, professional format
Write the report in {language}."""

PLAN_SYSTEM_PROMPT = """You are an experienced clinical psychologist who writes treatment plans.
Draft a structured treatment plan from the patient information provided, with:
1. specific, measurable therapeutic objectives (3-5)
2. discharge objectives with clear criteria for ending therapy (2-4)
3. short-term goals for the next 4-8 sessions (3-5)
4. long-term goals for the whole process (2-4)
5. an estimated number of sessions based on case complexity (8-52)
6. recommended therapeutic approaches
Write every text in {language}, in a professional and technical register."""

PLAN_TOOL_NAME = "create_treatment_plan"

PLAN_TOOL: Dict[str, Any] = {
    "type": "function",
    "function": {
        "name": PLAN_TOOL_NAME,
        "description": "Create a structured treatment plan",
        "parameters": {
            "type": "object",
            "properties": {
                "objectives": {"type": "array", "items": {"type": "string"}},
                "discharge_objectives": {"type": "array", "items": {"type": "string"}},
                "short_term_goals": {"type": "array", "items": {"type": "string"}},
                "long_term_goals": {"type": "array", "items": {"type": "string"}},
                "estimated_sessions": {"type": "integer"},
                "approaches": {"type": "array", "items": {"type": "string"}},
                "notes": {"type": "string"},
            },
            "required": [
                "objectives",
                "discharge_objectives",
                "short_term_goals",
                "long_term_goals",
                "estimated_sessions",
                "approaches",
            ],
            "additionalProperties": False,
        },
    },
}


def _session_material(context: NarrativeContext) -> str:
    parts: List[str] = []
    if context.detailed_notes:
        parts.append(f"Session notes:\n{context.detailed_notes}")
    if context.transcription:
        parts.append(f"Transcription:\n{context.transcription}")
    return "\n\n".join(parts)


def _digest_payload(sessions: List[SessionDigest]) -> str:
    payload = [
        {
            "date": s.session_date.date().isoformat(),
            "summary": s.summary,
            "notes": s.notes,
            "insights": s.insights,
        }
        for s in sessions
    ]
    return json.dumps(payload, ensure_ascii=False, indent=2)


def summary_prompt(context: NarrativeContext) -> str:
    name = context.patient_name or UNKNOWN_PATIENT
    return f"Write a therapeutic summary of the session with {name}.\n\n{_session_material(context)}"


def insights_prompt(context: NarrativeContext) -> str:
    name = context.patient_name or UNKNOWN_PATIENT
    return f"Analyse the session with {name} and extract insights.\n\n{_session_material(context)}"


def evolution_prompt(context: NarrativeContext) -> str:
    name = context.patient_name or UNKNOWN_PATIENT
    return (
        f"Write an evolution report for {name}.\n"
        f"Sessions (most recent first):\n{_digest_payload(context.previous_sessions)}"
    )


def plan_prompt(context: PlanGenerationContext) -> str:
    lines = [f"Create a treatment plan for: {context.patient_name or UNKNOWN_PATIENT}"]
    if context.clinician_context:
        lines.append(f"Main complaint / clinician notes: {context.clinician_context}")
    if context.sessions:
        lines.append(f"Session history (most recent first):\n{_digest_payload(context.sessions)}")
    return "\n".join(lines)
