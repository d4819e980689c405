from typing import Any, List, Literal, Optional
import structlog
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationInfo, field_validator

logger = structlog.get_logger()


def scalar_to_str(value: Any) -> Any:
    """Numbers arriving where text is expected are kept as their string form."""
    if isinstance(value, (int, float)):
        return str(value)
    return value


class TestStep(BaseModel):
    step: str
    data: str = ""
    result: str = ""

    @field_validator("step", "data", "result", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return scalar_to_str(value)


class TestCaseRequest(BaseModel):
    """One item of the incoming batch."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    requirement_id: str = Field(..., alias="requirementId", min_length=1)
    name: str = Field(..., min_length=1)
    objective: Optional[str] = None
    priority: Optional[str] = None
    # Either a list of step objects or a newline-delimited block; resolved by the step formatter
    steps: Any = None
    expected_result: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("expectedResult", "expectedresult", "expected_result"),
    )

    @field_validator("requirement_id", "name", mode="before")
    @classmethod
    def _coerce_required(cls, value: Any) -> Any:
        return scalar_to_str(value)

    @field_validator("objective", "priority", "expected_result", mode="before")
    @classmethod
    def _coerce_optional(cls, value: Any, info: ValidationInfo) -> Optional[str]:
        value = scalar_to_str(value)
        if value is None or isinstance(value, str):
            return value
        logger.warning("Ignoring non-text field", field=info.field_name, value_type=type(value).__name__)
        return None

    @property
    def project_key(self) -> str:
        return self.requirement_id.split("-", 1)[0]


class CreatedIssue(BaseModel):
    key: str
    id: str


class ItemOutcome(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    index: int
    name: Optional[str] = None
    requirement_id: Optional[str] = Field(default=None, alias="requirementId")
    status: Literal["created", "skipped", "failed"]
    reason: Optional[str] = None
    issue_key: Optional[str] = Field(default=None, alias="issueKey")


class BatchResult(BaseModel):
    created: int = 0
    skipped: int = 0
    failed: int = 0
    results: List[ItemOutcome] = Field(default_factory=list)

    def record(self, outcome: ItemOutcome) -> None:
        self.results.append(outcome)
        if outcome.status == "created":
            self.created += 1
        elif outcome.status == "skipped":
            self.skipped += 1
        else:
            self.failed += 1


class CreateTestsRequest(BaseModel):
    # Array of test cases, or the same array JSON-encoded as a string
    tests: Any = None


class CreateTestsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    created: int
    skipped: int
    failed: int = 0
    results: List[ItemOutcome] = Field(default_factory=list)
