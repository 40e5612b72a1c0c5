# src/flowcond/branch.py
from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator

from .validation.grammar import Expr
from .validation.validator import ConditionValidator

_validator = ConditionValidator()

# -------------------------------
# Branch node
# -------------------------------


class BranchCondition(BaseModel):
    expr: str
    target: str
    label: str | None = None
    model_config = {"extra": "forbid", "frozen": True}

    @field_validator("expr")
    @classmethod
    def _expr_valid(cls, v: str) -> str:
        result = _validator.validate(v)
        if not result.valid:
            raise ValueError(result.error)
        return v.strip()

    @field_validator("target")
    @classmethod
    def _target_nonempty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("branch.condition.target must be a non-empty string")
        return v

    def compile(self) -> Expr:
        return _validator.parse(self.expr)


class BranchSpec(BaseModel):
    node_id: str
    conditions: list[BranchCondition] = Field(default_factory=list)
    default_target: str | None = None
    model_config = {"extra": "forbid"}

    @field_validator("node_id")
    @classmethod
    def _node_id_nonempty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("branch.node_id must be a non-empty string")
        return v

    @model_validator(mode="after")
    def _sanity(self) -> BranchSpec:
        if not self.conditions:
            raise ValueError("branch.conditions must not be empty")
        if self.default_target is not None and not self.default_target.strip():
            raise ValueError("branch.default_target must be a non-empty string when set")
        return self

    def variables(self) -> list[int]:
        """Sorted workflow-variable indexes referenced by any condition."""
        acc: set[int] = set()
        for c in self.conditions:
            acc |= c.compile().collect_variables()
        return sorted(acc)
