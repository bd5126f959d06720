import pytest

from plan_resolver.core.errors import PlanIntegrityError
from plan_resolver.schemas.plan import PlanOverride, PlanSource, ViolationCode
from plan_resolver.services.resolver import resolve, resolve_all


def test_pure_template_resolves_to_template_values(plan):
    view = resolve(plan, "branchA")
    assert view.price == 500000
    assert view.currency == "VND"
    assert view.is_active is True
    assert view.source is PlanSource.TEMPLATE
    assert view.override is None
    assert view.violations == []


def test_no_branch_gives_canonical_view(partial_plan):
    view = resolve(partial_plan)
    assert view.source is PlanSource.TEMPLATE
    assert view.price == 500000


def test_partial_override_only_replaces_price(partial_plan):
    view = resolve(partial_plan, "branchA")
    assert view.source is PlanSource.OVERRIDE
    assert view.price == 400000
    assert view.currency == "VND"
    assert view.is_active is True
    # untouched fields are inherited, not blanked
    assert view.name == partial_plan.name
    assert view.description == partial_plan.description
    assert view.benefits == partial_plan.benefits
    assert view.duration_in_months == partial_plan.duration_in_months


def test_override_reference_is_returned(partial_plan):
    view = resolve(partial_plan, "branchA")
    assert view.override == partial_plan.overrides[0]
    assert view.override.applies_to_branch_id == "branchA"


@pytest.mark.parametrize("branch_id", ["branchB", "branch-unknown"])
def test_branch_without_override_falls_back_to_template(partial_plan, branch_id):
    assert resolve(partial_plan, branch_id) == resolve(partial_plan, None)


def test_resolution_is_idempotent(paused_plan):
    assert resolve(paused_plan, "branchA") == resolve(paused_plan, "branchA")
    assert resolve(paused_plan, "branchB") == resolve(paused_plan, "branchB")


@pytest.mark.parametrize("branch_id, expected", [
    (None, PlanSource.TEMPLATE),
    ("branchA", PlanSource.OVERRIDE),
    ("branchB", PlanSource.OVERRIDE),
    ("branchC", PlanSource.TEMPLATE),
])
def test_source_is_override_only_when_one_targets_the_branch(paused_plan, branch_id, expected):
    assert resolve(paused_plan, branch_id).source is expected


def test_override_is_active_is_independent_of_template(paused_plan):
    assert resolve(paused_plan, "branchB").is_active is False
    assert resolve(paused_plan, "branchA").is_active is True
    assert resolve(paused_plan).is_active is True


def test_unset_override_fields_track_later_template_edits(partial_plan):
    edited = partial_plan.model_copy(update={"name": "Gold Plus", "benefits": ["Sauna"]})
    view = resolve(edited, "branchA")
    assert view.name == "Gold Plus"
    assert view.benefits == ["Sauna"]
    assert view.price == 400000


def test_override_with_every_field(plan_factory):
    override = PlanOverride(
        applies_to_branch_id="branchA",
        name="Gold (District 1)",
        description="Pool included",
        price=650000,
        currency="usd",
        duration_in_months=3,
        benefits=["Pool"],
        is_active=False,
    )
    view = resolve(plan_factory(overrides=[override]), "branchA")
    assert view.name == "Gold (District 1)"
    assert view.description == "Pool included"
    assert view.price == 650000
    assert view.currency == "USD"
    assert view.duration_in_months == 3
    assert view.benefits == ["Pool"]
    assert view.is_active is False


def test_empty_override_benefits_inherit(plan_factory):
    plan = plan_factory(overrides=[PlanOverride(applies_to_branch_id="branchA", benefits=[])])
    assert resolve(plan, "branchA").benefits == ["Gym floor", "Locker"]


def test_view_benefits_are_a_copy(plan):
    view = resolve(plan)
    view.benefits.append("Towel")
    assert plan.benefits == ["Gym floor", "Locker"]


def test_standalone_plan_with_overrides_is_flagged(standalone_plan):
    corrupted = standalone_plan.model_copy(update={
        "overrides": [PlanOverride(applies_to_branch_id="branchC", price=1)],
    })
    view = resolve(corrupted, "branchC")
    assert view.source is PlanSource.TEMPLATE
    assert view.price == 500000
    assert [v.code for v in view.violations] == [ViolationCode.STANDALONE_HAS_OVERRIDES]


def test_healthy_standalone_plan_is_not_flagged(standalone_plan):
    assert resolve(standalone_plan, "branchC").violations == []


def test_strict_integrity_raises(standalone_plan, strict_integrity):
    corrupted = standalone_plan.model_copy(update={
        "overrides": [PlanOverride(applies_to_branch_id="branchC", price=1)],
    })
    with pytest.raises(PlanIntegrityError) as exc:
        resolve(corrupted, "branchC")
    assert exc.value.plan_id == "plan-local"
    assert exc.value.violations[0].code is ViolationCode.STANDALONE_HAS_OVERRIDES


def test_resolve_all_keeps_order(plan, standalone_plan):
    pairs = resolve_all([standalone_plan, plan], "branchA")
    assert [template.id for template, _ in pairs] == ["plan-local", "plan-gold"]


def test_view_does_not_alias_template_override(plan_factory):
    plan = plan_factory(overrides=[PlanOverride(applies_to_branch_id="branchA", benefits=["Pool"])])
    view = resolve(plan, "branchA")
    view.override.benefits.append("Sauna")
    view.benefits.append("Spa")
    assert plan.overrides[0].benefits == ["Pool"]
    assert resolve(plan, "branchA").benefits == ["Pool"]
