"""
Override invariants for a plan template.

validate() reports every problem it finds so the caller can decide between
blocking the edit and warning about it; ensure_valid() is the blocking form
used by the mutation helpers.
"""

import logging
from typing import Iterable

from plan_resolver.core.errors import PlanIntegrityError
from plan_resolver.schemas.plan import IntegrityViolation, PlanTemplate, ViolationCode

logger = logging.getLogger(__name__)


def standalone_override_violation(template: PlanTemplate) -> IntegrityViolation:
    return IntegrityViolation(
        code=ViolationCode.STANDALONE_HAS_OVERRIDES,
        message=f"Standalone plan {template.id} carries {len(template.overrides)} override(s)",
    )


def validate(template: PlanTemplate) -> list[IntegrityViolation]:
    violations: list[IntegrityViolation] = []

    # 1. overrides must target an assigned branch
    assigned = set(template.assigned_branches)
    for override in template.overrides:
        if override.applies_to_branch_id not in assigned:
            violations.append(IntegrityViolation(
                code=ViolationCode.OVERRIDE_BRANCH_NOT_ASSIGNED,
                branch_id=override.applies_to_branch_id,
                message=f"Override targets branch {override.applies_to_branch_id} which is not assigned to plan {template.id}",
            ))

    # 2. one override per branch
    seen: set[str] = set()
    reported: set[str] = set()
    for branch_id in template.override_branch_ids:
        if branch_id in seen and branch_id not in reported:
            reported.add(branch_id)
            violations.append(IntegrityViolation(
                code=ViolationCode.DUPLICATE_OVERRIDE,
                branch_id=branch_id,
                message=f"Plan {template.id} has more than one override for branch {branch_id}",
            ))
        seen.add(branch_id)

    # 3. standalone plans: no overrides, exactly one branch
    if not template.is_template:
        if template.overrides:
            violations.append(standalone_override_violation(template))
        if len(template.assigned_branches) != 1:
            violations.append(IntegrityViolation(
                code=ViolationCode.STANDALONE_BRANCH_COUNT,
                message=(
                    f"Standalone plan {template.id} must be assigned to exactly one branch, "
                    f"found {len(template.assigned_branches)}"
                ),
            ))

    return violations


def is_valid(template: PlanTemplate) -> bool:
    return not validate(template)


def ensure_valid(template: PlanTemplate) -> PlanTemplate:
    violations = validate(template)
    if violations:
        logger.warning("Rejected plan %s: %d integrity violation(s)", template.id, len(violations))
        raise PlanIntegrityError(violations, plan_id=template.id)
    return template


def validate_collection(templates: Iterable[PlanTemplate]) -> dict[str, list[IntegrityViolation]]:
    """Plan id -> violations, for the plans that have any."""
    report = {}
    for template in templates:
        violations = validate(template)
        if violations:
            report[template.id] = violations
    return report
