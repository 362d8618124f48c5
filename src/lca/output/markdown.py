"""Markdown renderers for portraits, cards, comparisons, A/B runs and timelines."""

from __future__ import annotations

from lca.agents.comparison.agent import confidence_band, parse_winner
from lca.agents.comparison.runner import average_score, best_result
from lca.analytics.topics import group_topics, topic_stats
from lca.schemas.cards import KnowledgeCard
from lca.schemas.comparison import ABTestRun, ComparisonAnalysis
from lca.schemas.portrait import LearningPortrait
from lca.schemas.timeline import Timeline

_MASTERY_ICONS = {"strength": "🟢", "developing": "🟡", "gap": "🔴"}


def _bullets(items: list[str]) -> list[str]:
    return [f"- {item}" for item in items]


def render_portrait(portrait: LearningPortrait) -> str:
    sections: list[str] = ["# Learning Portrait\n", f"*Last updated: {portrait.last_updated}*\n"]

    if portrait.summary:
        sections.append("## Summary\n")
        sections.append(portrait.summary + "\n")

    sections.append("## Learning Profile\n")
    for label, value in (
        ("Preferred style", portrait.preferred_style),
        ("Strengths", portrait.strengths),
        ("Challenges", portrait.challenges),
        ("Pacing", portrait.pacing),
        ("Recommendations", portrait.recommendations),
    ):
        sections.append(f"- **{label}:** {value or 'N/A'}")
    sections.append("")

    if portrait.next_questions:
        sections.append("## Questions to Explore Next\n")
        sections.extend(_bullets(portrait.next_questions))
        sections.append("")

    if portrait.usage_metrics:
        m = portrait.usage_metrics
        sections.append("## Usage (last 30 days)\n")
        sections.append("| Messages | Yours | Assistant | Active days | Avg per day |")
        sections.append("|----------|-------|-----------|-------------|-------------|")
        sections.append(
            f"| {m.total_messages_30d} | {m.user_messages} | {m.assistant_messages} "
            f"| {m.sessions_30d} | {m.avg_messages_per_session} |"
        )
        sections.append("")

    if portrait.learning_patterns:
        p = portrait.learning_patterns
        sections.append("## Question Patterns\n")
        sections.append(f"- Questions asked: {p.total_questions}")
        sections.append(f"- Example requests: {p.example_requests}")
        sections.append(f"- Explanation requests: {p.explanation_requests}")
        sections.append(f"- Code requests: {p.code_requests}")
        sections.append(f"- Comparison requests: {p.comparison_requests}")
        sections.append("")

    if portrait.recent_activity:
        r = portrait.recent_activity
        sections.append("## Recent Activity\n")
        sections.append(f"- Messages in the last 7 days: {r.last_7_days_messages}")
        sections.append(f"- Most active day: {r.most_active_day}")
        sections.append(f"- Preferred time: {r.preferred_time}")
        sections.append("")

    if portrait.knowledge_topics:
        stats = topic_stats(portrait.knowledge_topics)
        sections.append("## Knowledge Map\n")
        sections.append(
            f"{stats.total} topics: {stats.strengths} strengths ({stats.strength_percentage}%), "
            f"{stats.developing} developing ({stats.developing_percentage}%), "
            f"{stats.gaps} gaps ({stats.gap_percentage}%)\n"
        )
        for mastery, topics in group_topics(portrait.knowledge_topics).items():
            if not topics:
                continue
            sections.append(f"### {_MASTERY_ICONS.get(mastery, '⚪')} {mastery.title()}\n")
            for t in topics:
                line = f"- **{t.topic}** (confidence {t.confidence:.0%}, {t.evidence_count} mentions)"
                if t.related_topics:
                    line += f"; related: {', '.join(t.related_topics)}"
                sections.append(line)
            sections.append("")

    return "\n".join(sections)


def render_card(card: KnowledgeCard) -> str:
    c = card.content
    sections: list[str] = [f"# {card.title}\n"]
    if card.tags:
        sections.append(" ".join(f"`{tag}`" for tag in card.tags) + "\n")
    if c.core_concept:
        sections.append("## Core Concept\n")
        sections.append(c.core_concept + "\n")
    for heading, items in (
        ("Key Points", c.key_points),
        ("Examples", c.examples),
        ("Related Concepts", c.related_concepts),
        ("Memory Tips", c.memory_tips),
        ("Practice Questions", c.practice_questions),
    ):
        if items:
            sections.append(f"## {heading}\n")
            sections.extend(_bullets(items))
            sections.append("")
    sections.append(f"*Template: {card.template} | Created: {card.created_at}*\n")
    return "\n".join(sections)


def render_comparison(analysis: ComparisonAnalysis, versions: list[str]) -> str:
    sections: list[str] = ["# Content Comparison\n"]
    winner = parse_winner(analysis.recommendation)
    sections.append(
        f"**Recommended:** {f'Version {winner}' if winner else 'No clear winner'} "
        f"| **Confidence:** {analysis.confidence:.0%} ({confidence_band(analysis.confidence)})\n"
    )
    sections.append("## Summary\n")
    sections.append(analysis.summary + "\n")

    if analysis.key_differences:
        sections.append("## Key Differences\n")
        sections.extend(_bullets(analysis.key_differences))
        sections.append("")

    for label, text in zip("ABCD", versions):
        sections.append(f"## Version {label}\n")
        sections.append("> " + text.strip().replace("\n", "\n> ") + "\n")
        if analysis.strengths.get(label):
            sections.append("**Strengths:**")
            sections.extend(_bullets(analysis.strengths[label]))
        if analysis.weaknesses.get(label):
            sections.append("**Weaknesses:**")
            sections.extend(_bullets(analysis.weaknesses[label]))
        sections.append("")

    ia = analysis.industry_analysis
    if ia and ia.specific_metrics:
        labels = sorted(ia.specific_metrics)
        metrics = sorted({m for scores in ia.specific_metrics.values() for m in scores})
        sections.append(f"## Industry Metrics ({ia.industry})\n")
        sections.append("| Metric | " + " | ".join(labels) + " |")
        sections.append("|--------|" + "|".join("---" for _ in labels) + "|")
        for metric in metrics:
            cells = []
            for label in labels:
                score = ia.specific_metrics[label].get(metric)
                cells.append("-" if score is None else f"{score:.0%} ({confidence_band(score)})")
            sections.append(f"| {metric} | " + " | ".join(cells) + " |")
        sections.append("")
        if ia.industry_recommendations:
            sections.append("### Industry Recommendations\n")
            sections.extend(_bullets(ia.industry_recommendations))
            sections.append("")

    sections.append("## Recommendation\n")
    sections.append(analysis.recommendation + "\n")
    return "\n".join(sections)


def render_ab_test(run: ABTestRun) -> str:
    cfg = run.config
    sections: list[str] = [f"# A/B Test: {cfg.name}\n"]
    if cfg.description:
        sections.append(f"*{cfg.description}*\n")
    sections.append("## Prompt\n")
    sections.append(f"```\n{cfg.test_prompt}\n```\n")

    criteria = cfg.comparison_criteria
    sections.append("## Scores\n")
    sections.append("| Model | " + " | ".join(criteria) + " | Average | Time (ms) | Words |")
    sections.append("|-------|" + "|".join("---" for _ in criteria) + "|---------|-----------|-------|")
    for r in run.results:
        cells = " | ".join(str(r.scores.get(c, 0)) for c in criteria)
        sections.append(
            f"| {r.model_name} | {cells} | {average_score(r):.1f} | {r.response_time} | {r.token_count} |"
        )
    sections.append("")

    best = best_result(run.results)
    if best:
        sections.append(f"**Best:** {best.model_name} ({average_score(best):.1f})\n")

    sections.append("## Responses\n")
    for r in run.results:
        sections.append(f"### {r.model_name} (`{r.model_id}`)\n")
        sections.append(r.response + "\n")
    return "\n".join(sections)


def render_timeline(timeline: Timeline) -> str:
    s = timeline.summary
    sections: list[str] = [f"# Learning Timeline ({timeline.range})\n"]
    sections.append(
        f"- **Messages:** {s.total_messages}\n"
        f"- **Sessions:** {s.total_sessions}\n"
        f"- **Average per day:** {s.avg_daily_messages}"
    )
    if s.peak_day.messages:
        sections.append(f"- **Peak day:** {s.peak_day.day_name} {s.peak_day.date} ({s.peak_day.messages} messages)")
    sections.append("")

    sections.append("| Date | Day | Messages | Sessions | Avg length | Examples | Explanations | Code | Comparisons |")
    sections.append("|------|-----|----------|----------|------------|----------|--------------|------|-------------|")
    for d in timeline.timeline:
        day = f"*{d.day_name}*" if d.is_weekend else d.day_name
        p = d.patterns
        sections.append(
            f"| {d.date} | {day} | {d.messages} | {d.sessions} | {d.avg_session_length} "
            f"| {p.example_requests} | {p.explanation_requests} | {p.code_requests} | {p.comparison_requests} |"
        )
    sections.append("")
    return "\n".join(sections)
