"""Content comparison agent: structured A/B(/C/D) analysis of content versions."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from lca.agents.base import BaseAgent, extract_json
from lca.agents.comparison.prompts import INDUSTRY_METRICS, build_analysis_prompt
from lca.schemas.comparison import VERSION_LABELS, ComparisonAnalysis
from lca.shared.llm_client import LLMClient

logger = logging.getLogger(__name__)

COMPARE_TEMPERATURE = 0.3
COMPARE_MAX_TOKENS = 4_000

SYSTEM_PROMPT = (
    "You are an expert A/B testing analyst. Follow the user's instructions and reply "
    "with a single JSON object only."
)

_WINNER_RE = re.compile(r"Version\s+([A-D])", re.IGNORECASE)
_LABEL_RE = re.compile(r"^(?:version\s*)?([A-D])$", re.IGNORECASE)

# camelCase keys some models still produce
_KEY_ALIASES = {
    "keyDifferences": "key_differences",
    "industryAnalysis": "industry_analysis",
    "specificMetrics": "specific_metrics",
    "industryRecommendations": "industry_recommendations",
    "benchmarkComparison": "benchmark_comparison",
    "industryAverage": "industry_average",
}
# Maps whose keys are version labels
_PER_VERSION_KEYS = {"strengths", "weaknesses", "specific_metrics", "performance"}


def parse_winner(recommendation: str) -> str | None:
    """``"A"``..``"D"`` from the first "Version X" mention, else None."""
    m = _WINNER_RE.search(recommendation or "")
    return m.group(1).upper() if m else None


def confidence_band(value: float) -> str:
    """``high`` from 0.8, ``medium`` from 0.6, else ``low``. Used for metrics too."""
    if value >= 0.8:
        return "high"
    if value >= 0.6:
        return "medium"
    return "low"


def _normalize_label(key: str) -> str:
    m = _LABEL_RE.match(key.strip().replace("_", " "))
    return m.group(1).upper() if m else key


def _normalize_keys(value: Any, parent: str | None = None) -> Any:
    if isinstance(value, dict):
        out = {}
        for key, inner in value.items():
            key = _KEY_ALIASES.get(key, key)
            if parent in _PER_VERSION_KEYS:
                key = _normalize_label(key)
            out[key] = _normalize_keys(inner, key)
        return out
    if isinstance(value, list):
        return [_normalize_keys(v, parent) for v in value]
    return value


class ComparisonAgent(BaseAgent):
    """Compares two to four content versions for a given industry."""

    def __init__(self, client: LLMClient, *, model: str | None = None) -> None:
        super().__init__(client)
        self.model = model

    @property
    def name(self) -> str:
        return "A/B Comparison"

    def get_system_prompt(self) -> str:
        return SYSTEM_PROMPT

    def parse_output(self, raw_text: str) -> ComparisonAnalysis:
        data = _normalize_keys(extract_json(raw_text))
        return ComparisonAnalysis(**data)

    async def compare(
        self,
        versions: list[str],
        industry: str = "general",
        *,
        model: str | None = None,
        temperature: float = COMPARE_TEMPERATURE,
    ) -> ComparisonAnalysis:
        """Analyse ``versions`` (labelled A, B, ... in order).

        Raises ``ValueError`` for an unsupported industry, fewer than two or
        more than four versions, or when every version is blank.
        """
        if industry not in INDUSTRY_METRICS:
            raise ValueError(f"Unsupported industry: {industry}")
        if not 2 <= len(versions) <= len(VERSION_LABELS):
            raise ValueError(f"Compare between 2 and {len(VERSION_LABELS)} versions, got {len(versions)}")
        if not any(v.strip() for v in versions):
            raise ValueError("At least one version must have content")

        labelled = dict(zip(VERSION_LABELS, versions))
        logger.info("Comparing %d versions (%s industry)", len(labelled), industry)

        try:
            return await self._complete_with_retry(
                self.get_system_prompt(),
                build_analysis_prompt(industry, labelled),
                self.parse_output,
                model=model or self.model,
                temperature=temperature,
                max_tokens=COMPARE_MAX_TOKENS,
            )
        except (ValueError, json.JSONDecodeError, KeyError) as exc:
            raise ValueError(f"Failed to parse analysis response: {exc}") from exc
