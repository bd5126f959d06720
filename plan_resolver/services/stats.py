from typing import Iterable

from plan_resolver.schemas.plan import PlanStats, PlanTemplate


def aggregate(templates: Iterable[PlanTemplate]) -> PlanStats:
    """
    Fleet-wide counters. Always recomputed from the full collection.

    active_plans looks at the template switch only, not per-branch activity.
    An override counts as paused only when it sets is_active=False itself.
    """
    total = active = custom = paused = 0
    for template in templates:
        total += 1
        if template.is_active:
            active += 1
        custom += len(template.overrides)
        paused += sum(1 for o in template.overrides if o.is_active is False)

    return PlanStats(
        total_plans=total,
        active_plans=active,
        custom_versions=custom,
        paused_custom_versions=paused,
    )
