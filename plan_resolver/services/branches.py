import logging
from typing import Iterable

from plan_resolver.schemas.plan import BranchPartition, BranchRef, PlanSource, PlanTemplate, ResolvedPlanView

logger = logging.getLogger(__name__)


class BranchDirectory:
    """Read-only id -> BranchRef lookup built from whatever branch store the caller has."""

    def __init__(self, branches: Iterable[BranchRef] = ()):
        self._branches = {branch.id: branch for branch in branches}

    def get(self, branch_id: str) -> BranchRef | None:
        return self._branches.get(branch_id)

    def __contains__(self, branch_id: object) -> bool:
        return branch_id in self._branches

    def __len__(self) -> int:
        return len(self._branches)


def branches_to_display(
    template: PlanTemplate,
    view: ResolvedPlanView,
    directory: BranchDirectory,
) -> list[BranchRef]:
    """
    Branches relevant to a resolved view.

    An override view only concerns its own branch; a template view concerns
    every assigned branch, in stored order. Ids that cannot be resolved are
    left out rather than shown as placeholders.
    """
    if view.source is PlanSource.OVERRIDE:
        branch_id = view.override.applies_to_branch_id if view.override is not None else None
        if branch_id is None or branch_id not in template.assigned_branches:
            return []
        branch = directory.get(branch_id)
        return [branch] if branch is not None else []

    shown = []
    for branch_id in template.assigned_branches:
        branch = directory.get(branch_id)
        if branch is None:
            logger.debug("Branch %s of plan %s is unknown; omitted", branch_id, template.id)
            continue
        shown.append(branch)
    return shown


def partition_branches(template: PlanTemplate) -> BranchPartition:
    """Assigned branches split by whether they inherit the template or carry an override."""
    customised = set(template.override_branch_ids)
    return BranchPartition(
        using_template=[b for b in template.assigned_branches if b not in customised],
        using_override=[b for b in template.assigned_branches if b in customised],
    )
