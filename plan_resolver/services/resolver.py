import logging

from plan_resolver.core.config import settings
from plan_resolver.core.errors import PlanIntegrityError
from plan_resolver.schemas.plan import (
    RESOLVABLE_FIELDS,
    PlanOverride,
    PlanSource,
    PlanTemplate,
    ResolvedPlanView,
)
from plan_resolver.services.registry import standalone_override_violation

logger = logging.getLogger(__name__)


def _effective(field: str, template: PlanTemplate, override: PlanOverride | None):
    if override is not None:
        value = getattr(override, field)
        if value is not None:
            return value
    return getattr(template, field)


def resolve(template: PlanTemplate, branch_id: str | None = None) -> ResolvedPlanView:
    """
    Effective plan attributes as seen from `branch_id`.

    No branch, or a branch without an override, gives the template view.
    Otherwise each attribute comes from the override when it sets it and
    from the template when it does not.

    A standalone plan that carries overrides is corrupted upstream data: the
    overrides are ignored and the problem is reported on `view.violations`
    (or raised, when settings.strict_integrity is on).
    """
    violations = []
    override = None

    if not template.is_template and template.overrides:
        violation = standalone_override_violation(template)
        if settings.strict_integrity:
            raise PlanIntegrityError([violation], plan_id=template.id)
        logger.warning("%s; resolving from template fields only", violation.message)
        violations.append(violation)
    else:
        override = template.override_for(branch_id)

    values = {field: _effective(field, template, override) for field in RESOLVABLE_FIELDS}
    values["benefits"] = list(values["benefits"])

    return ResolvedPlanView(
        **values,
        source=PlanSource.OVERRIDE if override is not None else PlanSource.TEMPLATE,
        override=override.model_copy(deep=True) if override is not None else None,
        violations=violations,
    )


def resolve_all(templates: list[PlanTemplate], branch_id: str | None = None) -> list[tuple[PlanTemplate, ResolvedPlanView]]:
    return [(template, resolve(template, branch_id)) for template in templates]
