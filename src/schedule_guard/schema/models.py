"""
Pydantic models for the canonical schedule shape.

Used only to *check* structure. Schedules keep travelling as plain dicts so
metadata attached by the pipeline (validationMetadata, repair flags, unknown
generator keys) is never dropped by a dump/reload round trip. Every model
therefore allows extra keys.

Field-level provenance invariant:
  explicit -> confidence == 1.0 and at least one source citation
  inferred -> confidence < 1.0 and an inference rationale

The invariant is checked only when validation
runs with context {"provenance": True} (the default when no context is
given). Shape-only validation passes {"provenance": False}.
"""

from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, model_validator

OriginLiteral = Literal["explicit", "inferred"]


def checks_provenance(info: ValidationInfo) -> bool:
    context = info.context
    if not isinstance(context, dict):
        return True
    return context.get("provenance", True) is not False


class CitationModel(BaseModel):
    """A pointer into a source document. Sub-fields are audited, not required."""

    model_config = ConfigDict(extra="allow")

    documentName: str | None = None
    provider: str | None = None
    startChar: int | None = Field(None, ge=0)
    endChar: int | None = Field(None, ge=0)
    exactQuote: str | None = None
    retrievedAt: str | None = None


class InferenceRationaleModel(BaseModel):
    """How an inferred value was derived."""

    model_config = ConfigDict(extra="allow")

    method: str | None = None
    explanation: str | None = None
    supportingClaims: list[str] = Field(default_factory=list)
    confidence: float | None = Field(None, ge=0.0, le=1.0)


class FieldClaimModel(BaseModel):
    """Common shape of every fielded claim embedded in a task."""

    model_config = ConfigDict(extra="allow")

    origin: OriginLiteral
    confidence: float = Field(..., ge=0.0, le=1.0)
    sourceCitations: list[CitationModel] = Field(default_factory=list)
    inferenceRationale: InferenceRationaleModel | None = None

    @model_validator(mode="after")
    def check_provenance(self, info: ValidationInfo) -> "FieldClaimModel":
        if not checks_provenance(info):
            return self
        if self.origin == "explicit":
            if self.confidence != 1.0:
                raise ValueError(
                    f"explicit field must have confidence 1.0 (got {self.confidence})"
                )
            if not self.sourceCitations:
                raise ValueError("explicit field must carry at least one source citation")
        else:
            if self.confidence >= 1.0:
                raise ValueError("inferred field must have confidence below 1.0")
            if self.inferenceRationale is None:
                raise ValueError("inferred field must carry an inference rationale")
        return self


class DurationModel(FieldClaimModel):
    value: float = Field(..., ge=0)
    unit: str = "days"


class StartDateModel(FieldClaimModel):
    value: datetime | date


class RegulatoryRequirementModel(FieldClaimModel):
    isRequired: bool
    regulation: str | None = None


class ResourceModel(FieldClaimModel):
    value: Any = None


class TaskModel(BaseModel):
    """One schedule task."""

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    origin: OriginLiteral
    confidence: float = Field(..., ge=0.0, le=1.0)
    duration: DurationModel | None = None
    startDate: StartDateModel | None = None
    dependencies: list[str] = Field(default_factory=list)
    regulatoryRequirement: RegulatoryRequirementModel | None = None
    resources: list[ResourceModel | str] = Field(default_factory=list)
    validationMetadata: dict[str, Any] | None = None


class ScheduleModel(BaseModel):
    """A whole generated schedule."""

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., min_length=1)
    projectName: str | None = None
    tasks: list[TaskModel]
    metadata: dict[str, Any] | None = None
    validationMetadata: dict[str, Any] | None = None

    @model_validator(mode="after")
    def check_unique_task_ids(self) -> "ScheduleModel":
        seen: set[str] = set()
        for task in self.tasks:
            if task.id in seen:
                raise ValueError(f"duplicate task id: {task.id}")
            seen.add(task.id)
        return self
