import pytest

from plan_resolver.core.config import settings
from plan_resolver.schemas.plan import BranchRef, PlanOverride, PlanTemplate
from plan_resolver.services.branches import BranchDirectory


def make_plan(**overrides) -> PlanTemplate:
    """Plan template with sensible defaults; keyword arguments replace fields."""
    data = {
        "id": "plan-gold",
        "name": "Gold Membership",
        "description": "Full gym access",
        "price": 500000,
        "currency": "VND",
        "duration_in_months": 1,
        "benefits": ["Gym floor", "Locker"],
        "is_active": True,
        "is_template": True,
        "assigned_branches": ["branchA", "branchB"],
        "overrides": [],
    }
    data.update(overrides)
    return PlanTemplate(**data)


@pytest.fixture
def plan_factory():
    return make_plan


@pytest.fixture
def plan():
    return make_plan()


@pytest.fixture
def partial_plan():
    # branchA only changes the price
    return make_plan(overrides=[PlanOverride(applies_to_branch_id="branchA", price=400000)])


@pytest.fixture
def paused_plan():
    return make_plan(overrides=[
        PlanOverride(applies_to_branch_id="branchA", price=400000),
        PlanOverride(applies_to_branch_id="branchB", is_active=False),
    ])


@pytest.fixture
def standalone_plan():
    return make_plan(
        id="plan-local",
        name="Branch C Student Pass",
        is_template=False,
        assigned_branches=["branchC"],
    )


@pytest.fixture
def directory():
    return BranchDirectory([
        BranchRef(id="branchA", name="District 1", location="Ho Chi Minh City"),
        BranchRef(id="branchB", name="Thu Duc", location="Ho Chi Minh City"),
        BranchRef(id="branchC", name="Hoan Kiem", location="Ha Noi"),
    ])


@pytest.fixture
def strict_integrity(monkeypatch):
    monkeypatch.setattr(settings, "strict_integrity", True)
