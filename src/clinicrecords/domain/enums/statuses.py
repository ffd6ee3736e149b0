"""
Status and kind enums shared by appointments, sessions and treatment plans.
"""

from enum import Enum


class AppointmentStatus(str, Enum):
    """Appointment status values (owned by the scheduling subsystem)."""
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    DONE = "done"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"


class SessionStatus(str, Enum):
    """Clinical session status values."""
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"
    NO_SHOW = "no_show"


class PlanStatus(str, Enum):
    """Treatment plan lifecycle."""
    ACTIVE = "active"
    ARCHIVED = "archived"


class PlanProgressStatus(str, Enum):
    """Clinician's assessment of how the treatment is going.

    Free clinical judgment: every value is reachable from every other.
    """
    EM_ANDAMENTO = "em_andamento"    # in progress
    PROGREDINDO = "progredindo"      # progressing well
    ESTAGNADO = "estagnado"          # stalled
    DIFICULDADES = "dificuldades"    # struggling
    PROXIMO_ALTA = "proximo_alta"    # close to discharge
    CONCLUIDO = "concluido"          # concluded


class GoalListKind(str, Enum):
    SHORT_TERM = "short_term"
    LONG_TERM = "long_term"


class NarrativeKind(str, Enum):
    """Kinds of text the narrative collaborator can produce."""
    SUMMARY = "summary"
    INSIGHTS = "insights"
    EVOLUTION = "evolution"


class OperationKind(str, Enum):
    """Long-running operations tracked by the in-flight registry."""
    SUMMARY = "summary"
    INSIGHTS = "insights"
    EVOLUTION = "evolution"
    TRANSCRIPTION = "transcription"
    PLAN_GENERATION = "plan_generation"


IMPROVEMENT_CATEGORIES = [
    "Sintomas",
    "Comportamento",
    "Relacionamentos",
    "Autocuidado",
    "Trabalho/Estudos",
    "Sono",
    "Alimentação",
    "Humor",
    "Ansiedade",
    "Autoestima",
    "Outro",
]
