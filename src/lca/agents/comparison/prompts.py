"""Industry metric tables and the analysis prompt for content comparison."""

from __future__ import annotations

import json

# industry -> metric -> what the analyst should look for
INDUSTRY_METRICS: dict[str, dict[str, str]] = {
    "general": {
        "content_quality": "Analyze overall content quality including structure, flow, and coherence.",
        "readability": "Evaluate readability and accessibility for general audiences.",
        "engagement": "Assess potential for audience engagement and interaction.",
        "clarity": "Measure clarity of communication and message delivery.",
    },
    "ecommerce": {
        "conversion_potential": (
            "Analyze the conversion potential based on call-to-action effectiveness, value "
            "proposition clarity, and purchase motivation triggers."
        ),
        "product_appeal": (
            "Evaluate product appeal based on benefit highlighting, feature descriptions, and "
            "emotional connection."
        ),
        "price_sensitivity": "Assess price sensitivity indicators and value communication effectiveness.",
        "urgency_creation": (
            "Measure urgency creation through scarcity, time-limited offers, and action prompts."
        ),
    },
    "education": {
        "learning_difficulty": "Analyze the learning difficulty level appropriate for the target audience.",
        "knowledge_coverage": "Evaluate the comprehensiveness of knowledge coverage and topic depth.",
        "engagement_potential": "Assess potential for student engagement and interaction.",
        "clarity_score": "Measure clarity of explanations and concept presentation.",
    },
    "marketing": {
        "open_rate_potential": "Analyze subject line effectiveness and email open rate potential.",
        "click_rate_potential": "Evaluate call-to-action effectiveness and click-through potential.",
        "engagement_score": "Assess potential for social media engagement and sharing.",
        "spam_risk": "Evaluate spam risk factors and deliverability issues.",
    },
    "healthcare": {
        "credibility_score": "Evaluate medical accuracy and source credibility.",
        "accessibility": "Assess readability for patients with varying health literacy levels.",
        "compliance_risk": "Identify potential regulatory compliance issues.",
        "patient_trust": "Measure trust-building elements and patient confidence factors.",
    },
    "finance": {
        "trust_score": "Evaluate trust-building elements and credibility indicators.",
        "risk_clarity": "Assess clarity of risk disclosure and financial implications.",
        "regulatory_compliance": "Check for regulatory compliance and legal requirements.",
        "persuasion_effectiveness": (
            "Measure persuasion effectiveness while maintaining ethical standards."
        ),
    },
    "technology": {
        "technical_accuracy": "Evaluate technical accuracy and implementation feasibility.",
        "complexity_management": "Assess how well technical complexity is managed and explained.",
        "user_friendliness": "Measure user-friendliness and accessibility for non-technical users.",
        "innovation_appeal": "Evaluate innovation appeal and cutting-edge technology presentation.",
    },
}

DEFAULT_SYSTEM_PROMPT = "You are a helpful AI assistant."


def build_analysis_prompt(industry: str, versions: dict[str, str]) -> str:
    """Prompt asking for a JSON comparison of the labelled versions.

    ``versions`` maps labels (``A``..``D``) to content. Raises ``ValueError``
    for an industry without a metric table.
    """
    metrics = INDUSTRY_METRICS.get(industry)
    if metrics is None:
        raise ValueError(f"Unsupported industry: {industry}")

    labels = list(versions)

    def per_version(value: object) -> dict[str, object]:
        return {label: value for label in labels}

    metric_slots = {m: "0.0-1.0" for m in metrics}

    shape = {
        "summary": f"A brief overall comparison of all versions with {industry} context",
        "key_differences": [f"Main differences between the versions relevant to {industry}"],
        "strengths": per_version([f"Strengths in {industry} context"]),
        "weaknesses": per_version([f"Weaknesses in {industry} context"]),
        "recommendation": (
            f"Which version to choose and why (name it as 'Version X'), considering "
            f"{industry} best practices"
        ),
        "confidence": "0.0-1.0",
        "industry_analysis": {
            "industry": industry,
            "specific_metrics": per_version(metric_slots),
            "industry_recommendations": [
                f"Specific recommendations for {industry} optimization",
                f"Best practices for {industry} content",
                "Industry-specific improvement suggestions",
            ],
            "benchmark_comparison": {
                "industry_average": metric_slots,
                "performance": per_version(metric_slots),
            },
        },
    }

    content_blocks = "\n\n".join(f"Version {label}:\n{text}" for label, text in versions.items())
    focus = "\n".join(f"- {m}: {desc}" for m, desc in metrics.items())

    return f"""\
You are an expert A/B testing analyst specializing in {industry} content. Please analyze the \
following {len(labels)} versions of content and provide a comprehensive comparison.

{content_blocks}

Please provide your analysis as a JSON object with exactly this shape (version labels as keys):
{json.dumps(shape, indent=2)}

Focus on {industry}-specific factors:
{focus}

Provide specific, actionable insights for {industry} content optimization. All metric values and \
the confidence score are numbers from 0.0 to 1.0; the confidence should reflect how certain you \
are about your analysis."""
