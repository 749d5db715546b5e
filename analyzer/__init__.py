# Analyzer package - report summarization and prompt building
from .prompts import get_default_instructions, render_prompt
from .summarizer import build_prompt, summarize_report

__all__ = [
    "get_default_instructions",
    "render_prompt",
    "build_prompt",
    "summarize_report",
]
