"""Pydantic models for content comparison and multi-model A/B tests."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator

from lca.schemas.learning import utc_now_iso

VERSION_LABELS = ("A", "B", "C", "D")


class BenchmarkComparison(BaseModel):
    industry_average: dict[str, float] = {}
    performance: dict[str, dict[str, float]] = {}   # version label -> metric -> 0..1


class IndustryAnalysis(BaseModel):
    industry: str = "general"
    specific_metrics: dict[str, dict[str, float]] = {}  # version label -> metric -> 0..1
    industry_recommendations: list[str] = []
    benchmark_comparison: BenchmarkComparison = BenchmarkComparison()


class ComparisonAnalysis(BaseModel):
    """Structured comparison of two to four content versions.

    ``summary``, ``key_differences``, ``strengths``, ``weaknesses`` and
    ``recommendation`` are required; a response missing any of them is
    rejected. An out-of-range confidence is replaced with 0.8.
    """

    summary: str
    key_differences: list[str]
    strengths: dict[str, list[str]]
    weaknesses: dict[str, list[str]]
    recommendation: str
    confidence: float = 0.8
    industry_analysis: IndustryAnalysis | None = None

    @field_validator("confidence", mode="before")
    @classmethod
    def default_bad_confidence(cls, v: object) -> object:
        if isinstance(v, bool) or not isinstance(v, (int, float)) or not 0 <= v <= 1:
            return 0.8
        return v

    @model_validator(mode="after")
    def check_required_text(self) -> "ComparisonAnalysis":
        if not self.summary or not self.recommendation:
            raise ValueError("Invalid analysis response structure")
        return self


class ABTestModelConfig(BaseModel):
    model_id: str
    model_name: str = ""
    custom_prompt: str = ""
    temperature: float = 0.7


class ABTestConfig(BaseModel):
    """A multi-model test: one prompt, two or more models, scoring criteria."""

    name: str
    description: str = ""
    test_prompt: str
    models: list[ABTestModelConfig]
    comparison_criteria: list[str] = ["accuracy", "creativity", "clarity", "completeness"]
    created_at: str = Field(default_factory=utc_now_iso)

    @model_validator(mode="after")
    def check_runnable(self) -> "ABTestConfig":
        if not self.name.strip() or not self.test_prompt.strip():
            raise ValueError("A/B test needs a name and a test prompt")
        if len(self.models) < 2:
            raise ValueError("A/B test needs at least two models")
        self.comparison_criteria = [c for c in self.comparison_criteria if c.strip()]
        return self


class ABTestResult(BaseModel):
    model_id: str
    model_name: str
    response: str
    response_time: int           # milliseconds
    token_count: int             # whitespace-separated words
    scores: dict[str, int]       # criterion -> 1..10 (0 when the model call failed)
    timestamp: str = Field(default_factory=utc_now_iso)


class ABTestRun(BaseModel):
    config: ABTestConfig
    results: list[ABTestResult] = []
