"""
Caller-side boundary around the pure resolver.

The resolver knows nothing about writes. This module keeps the collection a
console works on, allows one in-flight change per plan and rolls back
optimistic state when the upstream write fails.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Iterable, Iterator
from uuid import uuid4

from plan_resolver.core.errors import MutationInFlightError, PlanMutationError, PlanNotFoundError
from plan_resolver.schemas.plan import BranchRef, PlanFilter, PlanStats, PlanTemplate, ResolvedPlanView
from plan_resolver.services.branches import BranchDirectory, branches_to_display
from plan_resolver.services.filters import filter_plans
from plan_resolver.services.registry import ensure_valid
from plan_resolver.services.resolver import resolve
from plan_resolver.services.stats import aggregate

logger = logging.getLogger(__name__)

# (plan_id, is_active, branch_ids) -> the plan as stored upstream after the write
ToggleWriter = Callable[[str, bool, list[str]], PlanTemplate]


class MutationGuard:
    """Plan id -> in-progress token. At most one change per plan at a time."""

    def __init__(self):
        self._lock = threading.Lock()
        self._in_flight: dict[str, str] = {}

    def is_mutating(self, plan_id: str) -> bool:
        with self._lock:
            return plan_id in self._in_flight

    def in_flight(self) -> set[str]:
        with self._lock:
            return set(self._in_flight)

    @contextmanager
    def mutating(self, plan_id: str) -> Iterator[str]:
        token = uuid4().hex
        with self._lock:
            if plan_id in self._in_flight:
                raise MutationInFlightError(f"Plan {plan_id} already has a change in progress", plan_id=plan_id)
            self._in_flight[plan_id] = token
        try:
            yield token
        finally:
            with self._lock:
                if self._in_flight.get(plan_id) == token:
                    del self._in_flight[plan_id]


class PlanWorkspace:
    """
    The plan collection as a console holds it. Views, stats and filters are
    recomputed from the current collection on every call, never cached.
    """

    def __init__(self, plans: Iterable[PlanTemplate] = (), guard: MutationGuard | None = None):
        self._lock = threading.Lock()
        self._plans = list(plans)
        self.guard = guard or MutationGuard()

    @property
    def plans(self) -> list[PlanTemplate]:
        with self._lock:
            return list(self._plans)

    def get(self, plan_id: str) -> PlanTemplate:
        for plan in self.plans:
            if plan.id == plan_id:
                return plan
        raise PlanNotFoundError(f"Plan {plan_id} not found", plan_id=plan_id)

    def _put(self, template: PlanTemplate) -> None:
        with self._lock:
            for i, plan in enumerate(self._plans):
                if plan.id == template.id:
                    self._plans[i] = template
                    return
            self._plans.append(template)

    def view(self, plan_id: str, branch_id: str | None = None) -> ResolvedPlanView:
        return resolve(self.get(plan_id), branch_id)

    def branches(self, plan_id: str, branch_id: str | None, directory: BranchDirectory) -> list[BranchRef]:
        plan = self.get(plan_id)
        return branches_to_display(plan, resolve(plan, branch_id), directory)

    def stats(self) -> PlanStats:
        return aggregate(self.plans)

    def filter(self, criteria: PlanFilter | None = None) -> list[PlanTemplate]:
        return filter_plans(self.plans, criteria)

    def replace(self, template: PlanTemplate) -> PlanTemplate:
        """Swap in an edited (or newly created) plan as a whole."""
        ensure_valid(template)
        with self.guard.mutating(template.id):
            self._put(template)
        return template

    def toggle_active(self, plan_id: str, write: ToggleWriter) -> PlanTemplate:
        """
        Flip the template-level switch. The flip is visible immediately; the
        plan is then replaced by what `write` returns, or restored if it fails.
        """
        with self.guard.mutating(plan_id):
            # read under the guard: the snapshot is the latest committed record
            original = self.get(plan_id)
            branch_ids = list(original.assigned_branches)
            if not branch_ids:
                raise PlanMutationError(f"Plan {plan_id} is not assigned to any branch", plan_id=plan_id)

            target = not original.is_active
            self._put(original.model_copy(update={"is_active": target}, deep=True))
            try:
                fresh = write(plan_id, target, branch_ids)
                if fresh.id != plan_id:
                    raise PlanMutationError(
                        f"Write for plan {plan_id} returned plan {fresh.id}", plan_id=plan_id,
                    )
                ensure_valid(fresh)
            except Exception:
                self._put(original)
                logger.warning("Plan %s: status toggle failed, rolled back", plan_id)
                raise
            # the upstream record replaces fields and overrides together
            self._put(fresh)

        logger.info("Plan %s: is_active -> %s", plan_id, fresh.is_active)
        return fresh
