from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from plan_resolver.core.config import settings
from plan_resolver.schemas.plan import RESOLVABLE_FIELDS, PlanOverride, PlanTemplate, normalize_currency

PAYLOAD_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def parse_benefits(value: Any) -> Any:
    """
    Benefits come from a textarea (one per line) or as a list.
    Blank entries are dropped, the rest trimmed.
    """
    if value is None:
        return None
    items = value.splitlines() if isinstance(value, str) else value
    return [item.strip() for item in items if isinstance(item, str) and item.strip()]


def dedupe_ids(ids: list[str]) -> list[str]:
    seen: set[str] = set()
    out = []
    for branch_id in ids:
        if branch_id and branch_id not in seen:
            seen.add(branch_id)
            out.append(branch_id)
    return out


class _PlanFieldsIn(BaseModel):
    """Shared cleaning for the editable plan attributes."""
    model_config = PAYLOAD_CONFIG

    @field_validator("name", check_fields=False)
    @classmethod
    def _name(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        if not value:
            raise ValueError("name is required")
        return value

    @field_validator("description", check_fields=False)
    @classmethod
    def _description(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    @field_validator("currency", check_fields=False)
    @classmethod
    def _currency(cls, value: str | None) -> str | None:
        return normalize_currency(value) if value is not None else None

    @field_validator("benefits", mode="before", check_fields=False)
    @classmethod
    def _benefits_text(cls, value: Any) -> Any:
        return parse_benefits(value)

    @field_validator("benefits", check_fields=False)
    @classmethod
    def _benefits(cls, value: list[str] | None) -> list[str] | None:
        if value is not None and not value:
            raise ValueError("at least one benefit is required")
        return value


class TemplateCreateIn(_PlanFieldsIn):
    name: str
    description: str | None = None
    price: float = Field(gt=0)
    currency: str = Field(default_factory=lambda: settings.default_currency)
    duration_in_months: int = Field(gt=0)
    benefits: list[str]
    assigned_branches: list[str]
    is_active: bool = True
    is_template: bool = True

    @field_validator("assigned_branches")
    @classmethod
    def _branches(cls, value: list[str]) -> list[str]:
        value = dedupe_ids(value)
        if not value:
            raise ValueError("at least one branch is required")
        return value

    @model_validator(mode="after")
    def _standalone_single_branch(self):
        if not self.is_template and len(self.assigned_branches) != 1:
            raise ValueError("a standalone plan must be assigned to exactly one branch")
        return self

    def to_template(self, plan_id: str, updated_at: datetime | None = None) -> PlanTemplate:
        return PlanTemplate(id=plan_id, updated_at=updated_at, **self.model_dump())


class TemplateUpdateIn(_PlanFieldsIn):
    """Template-scope edit. Only fields present in the payload change."""

    name: str | None = None
    description: str | None = None
    price: float | None = Field(default=None, gt=0)
    currency: str | None = None
    duration_in_months: int | None = Field(default=None, gt=0)
    benefits: list[str] | None = None
    assigned_branches: list[str] | None = None
    is_active: bool | None = None

    @field_validator("assigned_branches")
    @classmethod
    def _branches(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        value = dedupe_ids(value)
        if not value:
            raise ValueError("at least one branch is required")
        return value

    def changes(self) -> dict[str, Any]:
        # description may be cleared explicitly, the rest are required on a template
        return {
            field: value
            for field, value in self.model_dump(exclude_unset=True).items()
            if value is not None or field == "description"
        }


class OverrideFieldsIn(_PlanFieldsIn):
    """
    Values for a branch override. Unset fields keep inheriting from the
    template, so at least one field has to be given.
    """

    name: str | None = None
    description: str | None = None
    price: float | None = Field(default=None, gt=0)
    currency: str | None = None
    duration_in_months: int | None = Field(default=None, gt=0)
    benefits: list[str] | None = None
    is_active: bool | None = None

    @model_validator(mode="after")
    def _not_empty(self):
        if all(getattr(self, field) is None for field in RESOLVABLE_FIELDS):
            raise ValueError("override data is missing")
        return self

    def to_override(self, branch_id: str) -> PlanOverride:
        return PlanOverride(applies_to_branch_id=branch_id, **self.model_dump())


class BranchUpdateIn(BaseModel):
    """
    Branch-scope edit: target branches receive `data` as their override,
    revert branches go back to the template.
    """
    model_config = PAYLOAD_CONFIG

    target_branch_ids: list[str] = Field(default_factory=list)
    revert_branch_ids: list[str] = Field(default_factory=list)
    data: OverrideFieldsIn | None = None

    @field_validator("target_branch_ids", "revert_branch_ids")
    @classmethod
    def _ids(cls, value: list[str]) -> list[str]:
        return dedupe_ids(value)

    @model_validator(mode="after")
    def _selection(self):
        if not self.target_branch_ids and not self.revert_branch_ids:
            raise ValueError("select at least one branch to customise or revert")
        overlap = set(self.target_branch_ids) & set(self.revert_branch_ids)
        if overlap:
            raise ValueError(f"branches cannot be customised and reverted at once: {sorted(overlap)}")
        if self.target_branch_ids and self.data is None:
            raise ValueError("override data is required for target branches")
        return self


class BranchSelection(BaseModel):
    model_config = ConfigDict(frozen=True)

    target_branch_ids: list[str] = Field(default_factory=list)
    revert_branch_ids: list[str] = Field(default_factory=list)
