"""Multi-model A/B test runner with heuristic response scoring."""

from __future__ import annotations

import logging
import time
from typing import Callable

from lca.agents.comparison.prompts import DEFAULT_SYSTEM_PROMPT
from lca.schemas.comparison import ABTestConfig, ABTestResult
from lca.shared.llm_client import LLMClient

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, str], None]
"""Called with (model label, status) as each model runs."""


def generate_scores(response: str, criteria: list[str]) -> dict[str, int]:
    """Score a response 1-10 per criterion from surface features of the text."""
    scores: dict[str, int] = {}
    for criterion in criteria:
        score = 5
        if len(response) > 500:
            score += 2
        elif len(response) > 200:
            score += 1

        kind = criterion.lower()
        if kind == "accuracy":
            score += -1 if ("error" in response or "incorrect" in response) else 1
        elif kind == "creativity":
            score += 2 if ("creative" in response or "innovative" in response) else 0
        elif kind == "clarity":
            score += 1 if len(response.split(".")) > 3 else 0
        elif kind == "completeness":
            score += 2 if len(response) > 300 else 1
        elif kind == "relevance":
            score += 1 if len(response) > 100 else 0
        elif kind == "helpfulness":
            score += 1 if ("help" in response or "assist" in response) else 0

        scores[criterion] = min(10, max(1, score))
    return scores


def average_score(result: ABTestResult) -> float:
    if not result.scores:
        return 0.0
    return sum(result.scores.values()) / len(result.scores)


def best_result(results: list[ABTestResult]) -> ABTestResult | None:
    """Highest average score; the earliest result wins a tie."""
    best: ABTestResult | None = None
    for r in results:
        if best is None or average_score(r) > average_score(best):
            best = r
    return best


class ABTestRunner:
    """Sends one prompt to each configured model in turn and scores the replies."""

    def __init__(self, client: LLMClient) -> None:
        self.client = client

    async def run(
        self,
        config: ABTestConfig,
        *,
        on_progress: ProgressCallback | None = None,
    ) -> list[ABTestResult]:
        """Run every model sequentially; a failing model is recorded, not raised."""
        results: list[ABTestResult] = []
        for model_cfg in config.models:
            label = model_cfg.model_name or model_cfg.model_id
            if on_progress:
                on_progress(label, "running")
            start = time.perf_counter()
            try:
                response = await self.client.chat_completion(
                    messages=[{"role": "user", "content": config.test_prompt}],
                    system=model_cfg.custom_prompt or DEFAULT_SYSTEM_PROMPT,
                    model=model_cfg.model_id,
                    temperature=model_cfg.temperature,
                )
            except Exception as exc:
                elapsed_ms = int((time.perf_counter() - start) * 1000)
                logger.warning("A/B test model %s failed: %s", model_cfg.model_id, exc)
                results.append(ABTestResult(
                    model_id=model_cfg.model_id,
                    model_name=label,
                    response=f"Error: {exc}",
                    response_time=elapsed_ms,
                    token_count=0,
                    scores={c: 0 for c in config.comparison_criteria},
                ))
                if on_progress:
                    on_progress(label, f"failed: {exc}")
                continue

            elapsed_ms = int((time.perf_counter() - start) * 1000)
            results.append(ABTestResult(
                model_id=model_cfg.model_id,
                model_name=label,
                response=response,
                response_time=elapsed_ms,
                token_count=len(response.split(" ")),
                scores=generate_scores(response, config.comparison_criteria),
            ))
            if on_progress:
                on_progress(label, "done")
        return results
