"""Prompts for Deep Dive question suggestions and answers."""

_QUESTIONS_FORMAT = """\
Return JSON with format:
{{
  "questions": [
    {{"id": "1", "question": "brief question text", "category": "{categories}"}}
  ]
}}"""

SUGGESTION_PROMPTS: dict[str, str] = {
    "code": (
        "Generate 3-4 focused questions about the selected code. Focus on:\n"
        "- Code explanation and functionality\n"
        "- Best practices and improvements\n"
        "- Common issues and debugging\n"
        "- Performance considerations\n"
        + _QUESTIONS_FORMAT.format(categories="Explanation|Best Practice|Debugging|Performance")
    ),
    "data": (
        "Generate 3-4 analytical questions about the selected data. Focus on:\n"
        "- Data interpretation and meaning\n"
        "- Trends and patterns\n"
        "- Implications and insights\n"
        "- Comparisons and context\n"
        + _QUESTIONS_FORMAT.format(categories="Interpretation|Analysis|Implications|Comparison")
    ),
    "concept": (
        "Generate 3-4 educational questions about the selected concept. Focus on:\n"
        "- Definition and explanation\n"
        "- Examples and applications\n"
        "- Related concepts and connections\n"
        "- Practical usage\n"
        + _QUESTIONS_FORMAT.format(categories="Definition|Examples|Connections|Applications")
    ),
    "general": (
        "Generate 3-4 concise exploration questions about the selected text. "
        + _QUESTIONS_FORMAT.format(categories="Definition|Example|Context|Detail")
    ),
}

ANSWER_SYSTEM_PROMPT = (
    "Answer the user's question about their selected text. Be concise, clear, and directly "
    "address their question. Use examples when helpful."
)

SUGGESTION_CONTEXT_CHARS = 500
ANSWER_CONTEXT_CHARS = 600


def build_suggestion_request(selected: str, original_content: str, original_question: str = "") -> str:
    parts = [f'Selected: "{selected}"', f"From context: {original_content[:SUGGESTION_CONTEXT_CHARS]}..."]
    if original_question:
        parts.append(f"Original question: {original_question}")
    parts.append("Generate focused questions to help understand this selection better.")
    return "\n\n".join(parts)


def build_answer_request(selected: str, original_content: str, question: str) -> str:
    return (
        f'Selected text: "{selected}"\n\n'
        f"Context: {original_content[:ANSWER_CONTEXT_CHARS]}...\n\n"
        f"Question: {question}\n\n"
        "Please answer this question about the selected text."
    )
