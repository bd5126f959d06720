"""Error types raised by the mutation paths. The resolver path never raises these by default."""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from plan_resolver.schemas.plan import IntegrityViolation


class PlanConfigError(Exception):
    code = "plan_config_error"

    def __init__(self, message: str, *, code: Optional[str] = None, plan_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.plan_id = plan_id


class PlanIntegrityError(PlanConfigError, ValueError):
    """A template (or an edit to it) breaks the override invariants."""
    code = "integrity_violation"

    def __init__(self, violations: "list[IntegrityViolation]", *, plan_id: Optional[str] = None):
        self.violations = list(violations)
        summary = "; ".join(v.message for v in self.violations) or "integrity violation"
        super().__init__(summary, plan_id=plan_id)


class BranchSelectionError(PlanConfigError, ValueError):
    code = "invalid_branch_selection"


class PlanNotFoundError(PlanConfigError, LookupError):
    code = "plan_not_found"


class MutationInFlightError(PlanConfigError):
    code = "mutation_in_flight"


class PlanMutationError(PlanConfigError):
    code = "mutation_failed"
