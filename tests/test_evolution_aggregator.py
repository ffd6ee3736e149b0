"""
Evolution series, plan progress and evolution reports.
"""

from datetime import date, datetime, timezone
from unittest.mock import AsyncMock

import pytest

from clinicrecords.application.dto.narrative_dto import NarrativeResult
from clinicrecords.application.dto.plan_dto import PlanDraft
from clinicrecords.application.ports.services.narrative_service import NarrativeService
from clinicrecords.application.services.evolution_aggregator import (
    EvolutionAggregator,
    build_evolution_series,
)
from clinicrecords.domain.entities.treatment_plan import (
    Goal,
    GoalResult,
    Improvement,
    TreatmentPlan,
)
from clinicrecords.domain.enums.statuses import NarrativeKind, OperationKind, SessionStatus
from clinicrecords.domain.errors import (
    InsufficientDataError,
    OperationInProgressError,
    PatientNotFoundError,
)

from fakes import PATIENT_ID


def _at(year, month, day):
    return datetime(year, month, day, 12, 0, tzinfo=timezone.utc)


def _plan(**overrides):
    values = {
        "plan_id": "plan-1",
        "patient_id": PATIENT_ID,
        "start_date": date(2024, 1, 10),
        "short_term_goals": [Goal("g1", "Respirar"), Goal("g2", "Dormir")],
        "long_term_goals": [Goal("g3", "Trabalhar"), Goal("g4", "Viajar")],
    }
    values.update(overrides)
    return TreatmentPlan(**values)


def test_series_accumulates_by_month():
    plan = _plan(
        improvements=[
            Improvement("i1", "Calmer", date(2024, 1, 15), "Ansiedade"),
            Improvement("i2", "Sleeps better", date(2024, 3, 2), "Sono"),
            Improvement("i3", "Sleeps better", date(2024, 3, 20), "Sono"),
        ],
        goal_results=[
            GoalResult("g1", "Respirar", completed=True, completed_at=_at(2024, 2, 5)),
            GoalResult("g2", "Dormir", completed=True, completed_at=_at(2024, 3, 1)),
            GoalResult("g3", "Trabalhar", completed=False, result="Not yet"),
        ],
    )

    series = build_evolution_series(plan)

    assert [(p.period_key, p.cumulative_improvements, p.cumulative_goals_completed) for p in series] == [
        ("2024-01", 1, 0),
        ("2024-02", 1, 1),
        ("2024-03", 3, 2),
    ]


def test_series_of_empty_plan_has_start_month_only():
    series = build_evolution_series(_plan(start_date=date(2023, 11, 30)))

    assert [(p.period_key, p.cumulative_improvements, p.cumulative_goals_completed) for p in series] == [
        ("2023-11", 0, 0),
    ]


def test_series_is_non_decreasing():
    plan = _plan(
        improvements=[
            Improvement(f"i{n}", "Step", date(2024, month, 3), "Outro")
            for n, month in enumerate([5, 2, 9, 2, 12])
        ],
        goal_results=[
            GoalResult("g1", "Respirar", completed=True, completed_at=_at(2024, 7, 1)),
            GoalResult("g4", "Viajar", completed=True, completed_at=_at(2025, 1, 1)),
        ],
    )

    series = build_evolution_series(plan)

    keys = [p.period_key for p in series]
    assert keys == sorted(keys)
    assert keys[0] == "2024-01"
    for before, after in zip(series, series[1:]):
        assert after.cumulative_improvements >= before.cumulative_improvements
        assert after.cumulative_goals_completed >= before.cumulative_goals_completed
    assert series[-1].cumulative_improvements == 5
    assert series[-1].cumulative_goals_completed == 2


def test_completion_month_uses_utc():
    late_evening = datetime(2024, 2, 29, 23, 30, tzinfo=timezone.utc)
    plan = _plan(goal_results=[GoalResult("g1", "Respirar", completed=True, completed_at=late_evening)])

    assert [p.period_key for p in build_evolution_series(plan)] == ["2024-01", "2024-02"]


def test_goals_progress():
    assert _plan(short_term_goals=[], long_term_goals=[]).goals_progress() == 0

    plan = _plan(
        goal_results=[
            GoalResult("g1", "Respirar", completed=True, completed_at=_at(2024, 2, 1)),
            GoalResult("g2", "Dormir", completed=True, completed_at=_at(2024, 2, 1)),
            GoalResult("g3", "Trabalhar", completed=True, completed_at=_at(2024, 2, 1)),
        ]
    )
    assert plan.goals_progress() == 75


def test_sessions_progress_is_clamped():
    plan = _plan(estimated_sessions=12)

    assert plan.sessions_progress(15) == 100
    assert plan.sessions_progress(6) == 50
    assert plan.sessions_progress(1) == 8
    assert _plan(estimated_sessions=0).sessions_progress(3) == 0


@pytest.mark.asyncio
async def test_plan_progress(aggregator, ledger, add_session):
    plan = await ledger.create_or_replace(
        PATIENT_ID, PlanDraft(short_term_goals=["Respirar", "Dormir"], estimated_sessions=4)
    )
    await ledger.toggle_goal_completion(plan.plan_id, "Respirar")
    add_session("s1", day=1)
    add_session("s2", day=8)
    add_session("s3", day=15, status=SessionStatus.NO_SHOW)
    add_session("s4", day=22, notes=None)

    progress = await aggregator.plan_progress(plan.plan_id)

    assert progress.completed_goals == 1
    assert progress.total_goals == 2
    assert progress.goals_progress == 50
    assert progress.sessions_completed == 3
    assert progress.estimated_sessions == 4
    assert progress.sessions_progress == 75


@pytest.mark.asyncio
async def test_series_from_stored_plan(aggregator, ledger):
    plan = await ledger.create_or_replace(PATIENT_ID, PlanDraft(short_term_goals=["Respirar"]))
    await ledger.add_improvement(plan.plan_id, "Calmer", "Humor", date(2024, 6, 1))

    series = await aggregator.series(plan.plan_id)

    assert series[-1].cumulative_improvements == 1


@pytest.mark.asyncio
async def test_report_needs_two_qualifying_sessions(aggregator, narrative, report_repo, add_session):
    add_session("s1", day=1)
    add_session("s2", day=8, status=SessionStatus.CANCELLED)
    add_session("s3", day=15, notes="  ")

    with pytest.raises(InsufficientDataError) as exc_info:
        await aggregator.generate_evolution_report(PATIENT_ID)

    assert exc_info.value.details["qualifying_sessions"] == 1
    assert narrative.calls == []
    assert report_repo.items == []


@pytest.mark.asyncio
async def test_report_is_generated_and_stored(aggregator, narrative, add_session):
    add_session("s1", day=1, summary="Anxious")
    add_session("s2", day=8, notes=None, transcription="Spoke about family")
    narrative.content = "  Steady improvement.  "

    report = await aggregator.generate_evolution_report(PATIENT_ID)

    assert report.content == "Steady improvement."
    assert report.session_ids == ["s2", "s1"]
    kind, context = narrative.calls[0]
    assert kind == NarrativeKind.EVOLUTION
    assert context.patient_name == "Ana Souza"
    assert [d.summary for d in context.previous_sessions] == [None, "Anxious"]
    assert [r.report_id for r in await aggregator.list_reports(PATIENT_ID)] == [report.report_id]


@pytest.mark.asyncio
async def test_report_sends_at_most_ten_sessions(aggregator, narrative, add_session):
    for day in range(1, 13):
        add_session(f"s{day}", day=day)

    report = await aggregator.generate_evolution_report(PATIENT_ID)

    assert len(report.session_ids) == 10
    assert report.session_ids[0] == "s12"
    assert "s1" not in report.session_ids
    assert len(narrative.calls[0][1].previous_sessions) == 10


@pytest.mark.asyncio
async def test_report_for_unknown_patient(aggregator, narrative, add_session):
    add_session("s1", day=1, patient_id="ghost")
    add_session("s2", day=2, patient_id="ghost")

    with pytest.raises(PatientNotFoundError):
        await aggregator.generate_evolution_report("ghost")
    assert narrative.calls == []


@pytest.mark.asyncio
async def test_concurrent_report_is_rejected(aggregator, inflight, narrative, add_session):
    add_session("s1", day=1)
    add_session("s2", day=2)

    async with inflight.track(PATIENT_ID, OperationKind.EVOLUTION):
        with pytest.raises(OperationInProgressError):
            await aggregator.generate_evolution_report(PATIENT_ID)
    assert narrative.calls == []


@pytest.fixture
def mocked_aggregator(store, ledger, patient_repo, report_repo, inflight, clinical_settings):
    narrative = AsyncMock(spec=NarrativeService)
    narrative.generate.return_value = NarrativeResult(content="Report")
    aggregator = EvolutionAggregator(
        session_store=store,
        plan_ledger=ledger,
        patient_repository=patient_repo,
        report_repository=report_repo,
        narrative_service=narrative,
        inflight=inflight,
        settings=clinical_settings,
    )
    return aggregator, narrative


@pytest.mark.asyncio
async def test_narrative_collaborator_not_awaited_below_threshold(mocked_aggregator, add_session):
    aggregator, narrative = mocked_aggregator
    add_session("s1", day=1)

    with pytest.raises(InsufficientDataError):
        await aggregator.generate_evolution_report(PATIENT_ID)

    narrative.generate.assert_not_awaited()


@pytest.mark.asyncio
async def test_narrative_collaborator_awaited_once(mocked_aggregator, add_session):
    aggregator, narrative = mocked_aggregator
    add_session("s1", day=1)
    add_session("s2", day=2)

    report = await aggregator.generate_evolution_report(PATIENT_ID)

    assert report.content == "Report"
    narrative.generate.assert_awaited_once()
    assert narrative.generate.await_args.args[0] == NarrativeKind.EVOLUTION
