"""
Copy-on-write edits of a plan's fields and branch overrides.

Every helper returns a new PlanTemplate and leaves its argument untouched.
Results go through registry.ensure_valid, so an edit that would break the
override invariants raises instead of producing a corrupted template.
"""

import logging
from datetime import datetime

from plan_resolver.core.errors import BranchSelectionError
from plan_resolver.schemas.edits import BranchSelection, BranchUpdateIn, OverrideFieldsIn, TemplateUpdateIn
from plan_resolver.schemas.plan import RESOLVABLE_FIELDS, PlanOverride, PlanTemplate
from plan_resolver.services.registry import ensure_valid
from plan_resolver.services.resolver import resolve

logger = logging.getLogger(__name__)


def _upsert(overrides: list[PlanOverride], override: PlanOverride) -> list[PlanOverride]:
    # keyed by branch: replace in place, drop any stray duplicates
    out = []
    replaced = False
    for existing in overrides:
        if existing.applies_to_branch_id == override.applies_to_branch_id:
            if not replaced:
                out.append(override)
                replaced = True
            continue
        out.append(existing)
    if not replaced:
        out.append(override)
    return out


def _with_overrides(template: PlanTemplate, overrides: list[PlanOverride]) -> PlanTemplate:
    # deep copies so the new record shares no lists with the old one
    return template.model_copy(
        update={"overrides": [override.model_copy(deep=True) for override in overrides]},
        deep=True,
    )


def upsert_override(template: PlanTemplate, override: PlanOverride) -> PlanTemplate:
    updated = ensure_valid(_with_overrides(template, _upsert(list(template.overrides), override)))
    logger.info("Plan %s: override saved for branch %s", template.id, override.applies_to_branch_id)
    return updated


def remove_override(template: PlanTemplate, branch_id: str) -> PlanTemplate:
    overrides = [o for o in template.overrides if o.applies_to_branch_id != branch_id]
    if len(overrides) == len(template.overrides):
        return template
    updated = ensure_valid(_with_overrides(template, overrides))
    logger.info("Plan %s: branch %s reverted to template", template.id, branch_id)
    return updated


def apply_branch_update(template: PlanTemplate, update: BranchUpdateIn) -> PlanTemplate:
    if not template.is_template:
        raise BranchSelectionError(
            f"Plan {template.id} is a standalone plan and cannot be customised per branch",
            plan_id=template.id,
        )

    unassigned = [b for b in update.target_branch_ids if b not in template.assigned_branches]
    if unassigned:
        raise BranchSelectionError(
            f"Branches {unassigned} are not assigned to plan {template.id}",
            plan_id=template.id,
        )

    overrides = [o for o in template.overrides if o.applies_to_branch_id not in update.revert_branch_ids]
    for branch_id in update.target_branch_ids:
        overrides = _upsert(overrides, update.data.to_override(branch_id))

    updated = ensure_valid(_with_overrides(template, overrides))
    logger.info(
        "Plan %s: customised %s, reverted %s",
        template.id, update.target_branch_ids, update.revert_branch_ids,
    )
    return updated


def apply_template_update(
    template: PlanTemplate,
    update: TemplateUpdateIn,
    updated_at: datetime | None = None,
) -> PlanTemplate:
    changes = update.changes()
    if not changes:
        return template
    if updated_at is not None:
        changes["updated_at"] = updated_at

    # re-validate so field constraints hold on the merged record
    candidate = PlanTemplate.model_validate({**template.model_dump(), **changes})
    updated = ensure_valid(candidate)
    logger.info("Plan %s: template fields updated (%s)", template.id, ", ".join(sorted(changes)))
    return updated


def draft_override(template: PlanTemplate, branch_id: str | None) -> OverrideFieldsIn:
    """
    Prefill for an override editor: what the branch currently sees.
    Not validated, the operator is expected to edit it before submitting.
    """
    view = resolve(template, branch_id)
    return OverrideFieldsIn.model_construct(**{field: getattr(view, field) for field in RESOLVABLE_FIELDS})


def edit_selection(template: PlanTemplate, focus_branch_id: str | None) -> BranchSelection:
    """Initial target/revert selection when an editor opens with a branch in focus."""
    if focus_branch_id is None or not template.is_template:
        return BranchSelection()
    if template.override_for(focus_branch_id) is not None:
        return BranchSelection(revert_branch_ids=[focus_branch_id])
    if focus_branch_id in template.assigned_branches:
        return BranchSelection(target_branch_ids=[focus_branch_id])
    return BranchSelection()
