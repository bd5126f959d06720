import enum
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# Upstream records arrive camelCased (appliesToBranchId, isActive, ...);
# python code builds them with field names.
RECORD_CONFIG = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

# Attributes an override may replace, in display order
RESOLVABLE_FIELDS = (
    "name",
    "description",
    "price",
    "currency",
    "duration_in_months",
    "benefits",
    "is_active",
)


class PlanSource(str, enum.Enum):
    TEMPLATE = "template"
    OVERRIDE = "override"


class StatusFilter(str, enum.Enum):
    ALL = "all"
    ACTIVE = "active"
    INACTIVE = "inactive"


class ViewMode(str, enum.Enum):
    ALL = "all"
    BASE = "base"      # reusable templates
    CUSTOM = "custom"  # standalone, single-branch plans


class ViolationCode(str, enum.Enum):
    OVERRIDE_BRANCH_NOT_ASSIGNED = "override_branch_not_assigned"
    DUPLICATE_OVERRIDE = "duplicate_override"
    STANDALONE_HAS_OVERRIDES = "standalone_has_overrides"
    STANDALONE_BRANCH_COUNT = "standalone_branch_count"


def normalize_currency(value: str) -> str:
    code = value.strip().upper()
    if len(code) != 3 or not code.isalpha():
        raise ValueError("currency must be a 3-letter code")
    return code


class BranchRef(BaseModel):
    model_config = RECORD_CONFIG

    id: str
    name: str
    location: str = ""


class PlanOverride(BaseModel):
    """
    Branch-scoped diff against a template. None means "inherit", and is
    re-read from the template on every resolution.
    """
    model_config = RECORD_CONFIG

    applies_to_branch_id: str = Field(min_length=1)

    name: str | None = None
    description: str | None = None
    price: float | None = Field(default=None, ge=0)
    currency: str | None = None
    duration_in_months: int | None = Field(default=None, gt=0)
    benefits: list[str] | None = None
    is_active: bool | None = None

    @field_validator("currency")
    @classmethod
    def _currency(cls, value: str | None) -> str | None:
        return normalize_currency(value) if value is not None else None

    @field_validator("benefits")
    @classmethod
    def _empty_benefits_inherit(cls, value: list[str] | None) -> list[str] | None:
        # an empty list would blank the template bullets; treat it as unset
        return value or None

    def set_fields(self) -> list[str]:
        return [field for field in RESOLVABLE_FIELDS if getattr(self, field) is not None]


class PlanTemplate(BaseModel):
    model_config = RECORD_CONFIG

    id: str
    name: str
    description: str | None = None

    # Money; minor or major unit, consistent within a plan
    price: float = Field(ge=0)
    currency: str
    duration_in_months: int = Field(gt=0)

    benefits: list[str] = Field(default_factory=list)
    is_active: bool = True

    # False = standalone plan bound to a single branch, never overridden
    is_template: bool = True

    assigned_branches: list[str] = Field(default_factory=list)
    overrides: list[PlanOverride] = Field(default_factory=list)

    updated_at: datetime | None = None

    @field_validator("currency")
    @classmethod
    def _currency(cls, value: str) -> str:
        return normalize_currency(value)

    def override_for(self, branch_id: str | None) -> PlanOverride | None:
        if branch_id is None:
            return None
        for override in self.overrides:
            if override.applies_to_branch_id == branch_id:
                return override
        return None

    @property
    def override_branch_ids(self) -> list[str]:
        return [o.applies_to_branch_id for o in self.overrides]


class IntegrityViolation(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: ViolationCode
    message: str
    branch_id: str | None = None


class ResolvedPlanView(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str | None
    price: float
    currency: str
    duration_in_months: int
    benefits: list[str]
    is_active: bool

    source: PlanSource
    # the override to edit/toggle when source is OVERRIDE
    override: PlanOverride | None = None

    # inconsistencies noticed while resolving; empty for healthy data
    violations: list[IntegrityViolation] = Field(default_factory=list)


class PlanStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_plans: int = 0
    active_plans: int = 0
    custom_versions: int = 0
    paused_custom_versions: int = 0


class PlanFilter(BaseModel):
    model_config = ConfigDict(frozen=True)

    branch_id: str | None = None
    search_text: str = ""
    status: StatusFilter = StatusFilter.ALL
    view_mode: ViewMode = ViewMode.ALL

    # also drop plans not offered at branch_id
    assigned_only: bool = False

    @property
    def keyword(self) -> str:
        return self.search_text.strip().lower()


class BranchPartition(BaseModel):
    model_config = ConfigDict(frozen=True)

    using_template: list[str] = Field(default_factory=list)
    using_override: list[str] = Field(default_factory=list)
