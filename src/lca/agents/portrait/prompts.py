"""Prompts for knowledge-topic extraction and learning portrait generation."""

from __future__ import annotations

import json
from typing import Any


def build_topics_prompt(educational_level: str) -> str:
    return f"""\
You are an expert educational analyst. Analyze the conversation history to identify specific \
knowledge topics and assess the learner's mastery level for each topic.

For each topic identified, determine:
- strength: The learner demonstrates clear understanding, asks advanced questions, or shows confidence
- gap: The learner shows confusion, asks basic questions repeatedly, or struggles with the concept
- developing: The learner is actively learning but hasn't fully mastered it yet

Output a JSON object with a "topics" key containing an array with this exact structure:
{{
  "topics": [
    {{
      "topic": "Topic name (e.g., 'Light-dependent reactions', 'Calvin Cycle')",
      "mastery_level": "strength" | "gap" | "developing",
      "confidence": 0.0-1.0,
      "evidence_count": number of times mentioned,
      "last_mentioned": "ISO timestamp",
      "related_topics": ["related topic 1", "related topic 2"]
    }}
  ]
}}

Focus on:
- Specific, named concepts (not generic terms like "biology" or "science")
- Topics that appear multiple times or show clear learning patterns
- Topics where mastery level can be reasonably inferred from the conversation
- Educational level: {educational_level}

Return only valid JSON, no additional text."""


def build_topics_request(conversation: str) -> str:
    return (
        "Analyze this conversation history and extract knowledge topics:\n\n"
        f"{conversation}\n\n"
        "Identify 5-15 specific knowledge topics and assess mastery level for each."
    )


PORTRAIT_SYSTEM_PROMPT = """\
You are a learning science advisor. Generate a comprehensive learning portrait based on real user data.

Output JSON with these keys:
- summary: Brief overview of learning style and patterns
- preferred_style: Learning style preference (concise, detailed, example-driven, step-by-step, visual)
- strengths: Key learning strengths identified
- challenges: Areas for improvement
- pacing: Learning pace and intensity
- recommendations: Specific actionable recommendations
- next_questions: Array of 3-5 personalized follow-up questions

Base your analysis on the provided data patterns. Keep responses specific and actionable."""


def build_portrait_request(analysis: dict[str, Any], topics: list[dict[str, str]]) -> str:
    parts = ["User Learning Data Analysis:", json.dumps(analysis, indent=2)]
    if topics:
        parts += ["", "Knowledge Topics Identified:", json.dumps(topics, indent=2)]
    parts += ["", "Generate a personalized learning portrait based on this data."]
    return "\n".join(parts)
