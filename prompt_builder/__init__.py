"""
Reader AI - Prompt Builder
Task prompts for chapter summaries and book recommendations
"""

from prompt_builder.builder import (
    PromptBuilder,
    get_prompt_builder,
    init_prompt_builder,
    SUMMARY_TEMPLATE,
    RECOMMENDATION_TEMPLATE,
)

__all__ = [
    "PromptBuilder",
    "get_prompt_builder",
    "init_prompt_builder",
    "SUMMARY_TEMPLATE",
    "RECOMMENDATION_TEMPLATE",
]
