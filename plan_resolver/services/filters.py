"""Search/status/view-mode filtering over the plans as a branch actually sees them."""

from typing import Iterable

from plan_resolver.schemas.plan import PlanFilter, PlanTemplate, ResolvedPlanView, StatusFilter, ViewMode
from plan_resolver.services.resolver import resolve


def matches_keyword(view: ResolvedPlanView, keyword: str) -> bool:
    """`keyword` is expected trimmed and lower-cased; empty matches everything."""
    if not keyword:
        return True
    if keyword in view.name.lower():
        return True
    if view.description and keyword in view.description.lower():
        return True
    return any(keyword in benefit.lower() for benefit in view.benefits)


def matches_status(view: ResolvedPlanView, status: StatusFilter) -> bool:
    if status is StatusFilter.ALL:
        return True
    if status is StatusFilter.ACTIVE:
        return view.is_active
    if status is StatusFilter.INACTIVE:
        return not view.is_active
    raise ValueError(f"Unknown status filter: {status!r}")


def matches_view_mode(template: PlanTemplate, mode: ViewMode) -> bool:
    if mode is ViewMode.ALL:
        return True
    if mode is ViewMode.BASE:
        return template.is_template
    if mode is ViewMode.CUSTOM:
        return not template.is_template
    raise ValueError(f"Unknown view mode: {mode!r}")


def filter_plans(templates: Iterable[PlanTemplate], criteria: PlanFilter | None = None) -> list[PlanTemplate]:
    criteria = criteria or PlanFilter()
    keyword = criteria.keyword

    result: list[PlanTemplate] = []
    for template in templates:
        if not matches_view_mode(template, criteria.view_mode):
            continue

        if (
            criteria.assigned_only
            and criteria.branch_id is not None
            and criteria.branch_id not in template.assigned_branches
        ):
            continue

        view = resolve(template, criteria.branch_id)
        if not matches_status(view, criteria.status):
            continue
        if not matches_keyword(view, keyword):
            continue

        result.append(template)

    return result
