"""
Treatment plan ledger: single active plan, goal ledger and improvement log.
"""

from datetime import date

import pytest

from clinicrecords.application.dto.plan_dto import PlanDraft
from clinicrecords.core.exceptions import ExternalServiceError, NarrativeGenerationError
from clinicrecords.domain.enums.statuses import (
    GoalListKind,
    OperationKind,
    PlanProgressStatus,
    PlanStatus,
    SessionStatus,
)
from clinicrecords.domain.errors import (
    ActivePlanExistsError,
    GoalNotFoundError,
    InvalidStateError,
    OperationInProgressError,
    PatientNotFoundError,
    TreatmentPlanNotFoundError,
    ValidationError,
)

from fakes import PATIENT_ID


def _draft(**overrides):
    values = {
        "objectives": ["Reduce anxiety"],
        "short_term_goals": ["Respirar", "Dormir"],
        "long_term_goals": [],
    }
    values.update(overrides)
    return PlanDraft(**values)


@pytest.mark.asyncio
async def test_first_plan_is_active(ledger, plan_repo):
    plan = await ledger.create_or_replace(PATIENT_ID, _draft())

    assert plan.status == PlanStatus.ACTIVE
    assert plan.estimated_sessions == 12
    assert [g.text for g in plan.short_term_goals] == ["Respirar", "Dormir"]
    assert (await ledger.get_active(PATIENT_ID)).plan_id == plan.plan_id
    assert plan_repo.active_count(PATIENT_ID) == 1


@pytest.mark.asyncio
async def test_second_plan_without_replace_is_rejected(ledger, plan_repo):
    first = await ledger.create_or_replace(PATIENT_ID, _draft())

    with pytest.raises(ActivePlanExistsError) as exc_info:
        await ledger.create_or_replace(PATIENT_ID, _draft(objectives=["Other"]))

    assert exc_info.value.details["active_plan_id"] == first.plan_id
    assert len(plan_repo.items) == 1


@pytest.mark.asyncio
async def test_replace_archives_current_plan(ledger, plan_repo):
    first = await ledger.create_or_replace(PATIENT_ID, _draft())

    second = await ledger.create_or_replace(PATIENT_ID, _draft(objectives=["Other"]), replace=True)

    assert second.status == PlanStatus.ACTIVE
    assert (await ledger.get(first.plan_id)).status == PlanStatus.ARCHIVED
    assert plan_repo.active_count(PATIENT_ID) == 1
    assert [p.plan_id for p in await ledger.list_archived(PATIENT_ID)] == [first.plan_id]


@pytest.mark.asyncio
async def test_at_most_one_active_plan_across_operations(ledger, plan_repo):
    first = await ledger.create_or_replace(PATIENT_ID, _draft())
    await ledger.create_or_replace(PATIENT_ID, _draft(), replace=True)
    current = await ledger.get_active(PATIENT_ID)
    await ledger.archive(current.plan_id)
    assert plan_repo.active_count(PATIENT_ID) == 0
    await ledger.create_or_replace(PATIENT_ID, _draft())
    with pytest.raises(ActivePlanExistsError):
        await ledger.create_or_replace(PATIENT_ID, _draft())
    await ledger.create_or_replace(PATIENT_ID, _draft(), replace=True)

    assert plan_repo.active_count(PATIENT_ID) == 1
    assert len(await ledger.list_archived(PATIENT_ID)) == 3
    assert (await ledger.get(first.plan_id)).status == PlanStatus.ARCHIVED


@pytest.mark.asyncio
async def test_create_after_archive_succeeds(ledger):
    first = await ledger.create_or_replace(PATIENT_ID, _draft())
    await ledger.archive(first.plan_id)

    second = await ledger.create_or_replace(PATIENT_ID, _draft(), replace=False)

    assert second.status == PlanStatus.ACTIVE
    assert second.plan_id != first.plan_id


@pytest.mark.asyncio
async def test_archiving_twice_is_invalid(ledger):
    plan = await ledger.create_or_replace(PATIENT_ID, _draft())
    await ledger.archive(plan.plan_id)

    with pytest.raises(InvalidStateError):
        await ledger.archive(plan.plan_id)


@pytest.mark.asyncio
async def test_failed_replacement_reactivates_previous_plan(ledger, plan_repo):
    first = await ledger.create_or_replace(PATIENT_ID, _draft())
    plan_repo.fail_create = True

    with pytest.raises(ExternalServiceError) as exc_info:
        await ledger.create_or_replace(PATIENT_ID, _draft(), replace=True)

    details = exc_info.value.details
    assert details["archived_plan_id"] == first.plan_id
    assert details["compensated"] is True
    assert (await ledger.get(first.plan_id)).status == PlanStatus.ACTIVE
    assert plan_repo.active_count(PATIENT_ID) == 1


@pytest.mark.asyncio
async def test_failed_first_create_propagates(ledger, plan_repo):
    plan_repo.fail_create = True

    with pytest.raises(RuntimeError):
        await ledger.create_or_replace(PATIENT_ID, _draft())


@pytest.mark.asyncio
async def test_unknown_plan(ledger):
    with pytest.raises(TreatmentPlanNotFoundError):
        await ledger.get("missing")


@pytest.mark.asyncio
async def test_toggle_goal_by_text(ledger):
    plan = await ledger.create_or_replace(PATIENT_ID, _draft())
    assert plan.goal_results == []

    toggled = await ledger.toggle_goal_completion(plan.plan_id, "Respirar")

    assert len(toggled.goal_results) == 1
    result = toggled.goal_results[0]
    assert result.goal == "Respirar"
    assert result.completed is True
    assert result.completed_at is not None
    assert toggled.goals_progress() == 50


@pytest.mark.asyncio
async def test_toggle_is_self_inverse(ledger):
    plan = await ledger.create_or_replace(PATIENT_ID, _draft())

    await ledger.toggle_goal_completion(plan.plan_id, "Dormir")
    toggled = await ledger.toggle_goal_completion(plan.plan_id, "Dormir")

    result = toggled.goal_results[0]
    assert result.completed is False
    assert result.completed_at is None
    assert toggled.goals_progress() == 0


@pytest.mark.asyncio
async def test_toggle_unknown_goal(ledger):
    plan = await ledger.create_or_replace(PATIENT_ID, _draft())

    with pytest.raises(GoalNotFoundError):
        await ledger.toggle_goal_completion(plan.plan_id, "Correr")


@pytest.mark.asyncio
async def test_rename_keeps_goal_completion(ledger):
    plan = await ledger.create_or_replace(PATIENT_ID, _draft())
    goal_id = plan.short_term_goals[0].goal_id
    await ledger.toggle_goal_completion(plan.plan_id, goal_id)

    renamed = await ledger.rename_goal(plan.plan_id, goal_id, "Respirar fundo")

    assert renamed.short_term_goals[0].text == "Respirar fundo"
    assert renamed.goal_results[0].goal == "Respirar fundo"
    assert renamed.goal_results[0].completed is True
    assert renamed.completed_goal_count() == 1


@pytest.mark.asyncio
async def test_set_goal_result_without_completion(ledger):
    plan = await ledger.create_or_replace(PATIENT_ID, _draft())

    updated = await ledger.set_goal_result(plan.plan_id, "Dormir", "  Sleeps 6 hours  ")

    result = updated.goal_results[0]
    assert result.result == "Sleeps 6 hours"
    assert result.completed is False


@pytest.mark.asyncio
async def test_add_goal(ledger):
    plan = await ledger.create_or_replace(PATIENT_ID, _draft())

    updated = await ledger.add_goal(plan.plan_id, GoalListKind.LONG_TERM, "Return to work")

    assert [g.text for g in updated.long_term_goals] == ["Return to work"]
    assert updated.goals_progress() == 0
    assert len(updated.all_goals()) == 3


@pytest.mark.asyncio
async def test_identical_improvements_are_kept_apart(ledger):
    plan = await ledger.create_or_replace(PATIENT_ID, _draft())

    await ledger.add_improvement(plan.plan_id, "Slept through the night", "Sono", date(2024, 3, 1))
    updated = await ledger.add_improvement(plan.plan_id, "Slept through the night", "Sono", date(2024, 3, 8))

    assert len(updated.improvements) == 2
    assert [i.date for i in updated.improvements] == [date(2024, 3, 1), date(2024, 3, 8)]
    assert updated.improvements[0].improvement_id != updated.improvements[1].improvement_id


@pytest.mark.asyncio
async def test_improvement_category_is_validated(ledger):
    plan = await ledger.create_or_replace(PATIENT_ID, _draft())

    with pytest.raises(ValidationError):
        await ledger.add_improvement(plan.plan_id, "Better mood", "Happiness")


@pytest.mark.asyncio
async def test_improvement_defaults_to_today(ledger):
    plan = await ledger.create_or_replace(PATIENT_ID, _draft())

    updated = await ledger.add_improvement(plan.plan_id, "Better mood", "Humor")

    assert isinstance(updated.improvements[0].date, date)


@pytest.mark.asyncio
async def test_update_status_records_review(ledger):
    plan = await ledger.create_or_replace(PATIENT_ID, _draft())

    updated = await ledger.update_status(plan.plan_id, PlanProgressStatus.PROGREDINDO, "Good week")

    assert updated.current_status == PlanProgressStatus.PROGREDINDO
    assert updated.current_status_notes == "Good week"
    assert updated.last_review_date is not None


@pytest.mark.asyncio
async def test_archived_plan_can_still_be_edited(ledger):
    plan = await ledger.create_or_replace(PATIENT_ID, _draft())
    await ledger.archive(plan.plan_id)

    updated = await ledger.add_improvement(plan.plan_id, "Calmer", "Ansiedade", date(2024, 5, 2))

    assert updated.status == PlanStatus.ARCHIVED
    assert len(updated.improvements) == 1


@pytest.mark.asyncio
async def test_editing_goals_keeps_ids_of_unchanged_texts(ledger):
    plan = await ledger.create_or_replace(PATIENT_ID, _draft())
    kept_id = plan.short_term_goals[1].goal_id
    await ledger.toggle_goal_completion(plan.plan_id, "Dormir")

    updated = await ledger.update_plan(plan.plan_id, {"short_term_goals": ["Dormir", "Caminhar"]})

    assert [g.text for g in updated.short_term_goals] == ["Dormir", "Caminhar"]
    assert updated.short_term_goals[0].goal_id == kept_id
    assert updated.completed_goal_count() == 1
    assert updated.goals_progress() == 50


@pytest.mark.asyncio
async def test_update_rejects_unknown_fields(ledger):
    plan = await ledger.create_or_replace(PATIENT_ID, _draft())

    with pytest.raises(ValidationError):
        await ledger.update_plan(plan.plan_id, {"status": "archived"})


@pytest.mark.asyncio
async def test_generate_plan(ledger, plan_generator, add_session):
    add_session("s1", day=1)
    add_session("s2", day=8, status=SessionStatus.CANCELLED)
    add_session("s3", day=15, notes=None)

    plan = await ledger.generate_plan(PATIENT_ID, context="Work stress")

    assert plan.status == PlanStatus.ACTIVE
    assert plan.estimated_sessions == 10
    assert [g.text for g in plan.short_term_goals] == ["Respirar", "Dormir"]
    context = plan_generator.calls[0]
    assert context.patient_name == "Ana Souza"
    assert context.clinician_context == "Work stress"
    assert [d.session_id for d in context.sessions] == ["s1"]


@pytest.mark.asyncio
async def test_generate_plan_unknown_patient(ledger, plan_generator):
    with pytest.raises(PatientNotFoundError):
        await ledger.generate_plan("nobody")
    assert plan_generator.calls == []


@pytest.mark.asyncio
async def test_generate_plan_respects_active_plan(ledger, plan_generator):
    await ledger.create_or_replace(PATIENT_ID, _draft())

    with pytest.raises(ActivePlanExistsError):
        await ledger.generate_plan(PATIENT_ID)
    assert plan_generator.calls == []

    replaced = await ledger.generate_plan(PATIENT_ID, replace=True)
    assert (await ledger.get_active(PATIENT_ID)).plan_id == replaced.plan_id


@pytest.mark.asyncio
async def test_generated_plan_without_goals_is_rejected(ledger, plan_generator, plan_repo):
    plan_generator.plan = {"notes": "Nothing useful"}

    with pytest.raises(NarrativeGenerationError):
        await ledger.generate_plan(PATIENT_ID)
    assert plan_repo.items == {}


@pytest.mark.asyncio
async def test_concurrent_generation_is_rejected(ledger, inflight):
    async with inflight.track(PATIENT_ID, OperationKind.PLAN_GENERATION):
        with pytest.raises(OperationInProgressError):
            await ledger.generate_plan(PATIENT_ID)
