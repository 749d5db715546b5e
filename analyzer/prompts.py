"""
Performance Analysis Prompts for the Gemini API

Renders a Summary plus instructions into the prompt text sent to Gemini.
"""

from typing import Optional

from models import Summary


def get_default_instructions(language: str = "Serbian") -> str:
    """
    Instructions used when the caller does not supply any.

    Args:
        language: Language the model is asked to answer in.

    Returns:
        Instruction text appended after the report summary.
    """
    return f"""You are a web performance expert. Analyze these Google Lighthouse performance results and provide a clear explanation in {language} language. Include:
- Overall performance summary
- What each score means (Performance, FCP, LCP, TBT, CLS, Speed Index)
- Top 3 specific recommendations to improve the score
- Priority level for each recommendation (High/Medium/Low)

Keep the explanation concise but actionable. Use simple language that non-technical users can understand."""


def _format_number(value) -> str:
    if isinstance(value, float) and not value.is_integer():
        return f"{value:.2f}"
    return str(int(value)) if isinstance(value, float) else str(value)


def render_prompt(summary: Summary, instructions: Optional[str] = None) -> str:
    """
    Flatten a Summary into prompt text.

    One line per populated field in a fixed order: target, score, metrics,
    opportunities, third parties. A blank line and the instructions follow.

    Args:
        summary: Summary built by summarize_report()
        instructions: Text appended after the summary; defaults to
                      get_default_instructions()

    Returns:
        Prompt string for Gemini.
    """
    lines = []

    if summary.target:
        lines.append(f"URL: {summary.target}")

    if summary.score is not None:
        lines.append(
            f"Performance score: {_format_number(summary.score)} "
            f"({summary.score * 100:.0f}/100)"
        )

    if summary.metrics:
        lines.append("Metrics:")
        for name, value in summary.metrics.items():
            display = value if isinstance(value, str) else _format_number(value)
            lines.append(f"- {name}: {display}")

    if summary.opportunities:
        lines.append("Opportunities:")
        for opportunity in summary.opportunities:
            label = opportunity.id
            if opportunity.title:
                label = f"{label} ({opportunity.title})"
            if opportunity.wasted is not None:
                note = f"saves ~{_format_number(opportunity.wasted)} ms"
            elif opportunity.wasted_bytes is not None:
                note = f"saves ~{_format_number(opportunity.wasted_bytes)} bytes"
            elif opportunity.score is not None:
                note = f"score {_format_number(opportunity.score)}"
            else:
                note = "no estimate"
            lines.append(f"- {label}: {note}")

    if summary.third_parties:
        lines.append("Third parties:")
        for party in summary.third_parties:
            origins = ", ".join(party.origins)
            lines.append(f"- {party.name}: {origins}" if origins else f"- {party.name}")

    lines.append("")
    lines.append(instructions if instructions is not None else get_default_instructions())

    return "\n".join(lines)
