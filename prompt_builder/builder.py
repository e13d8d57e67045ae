"""
Reader AI - Prompt Builder
Renders the summary and recommendation prompts sent to providers
"""

from string import Template
from typing import Optional

SUMMARY_TEMPLATE = Template("""\
Write a concise summary of the chapter "$chapter_title" from the novel "$book_name".

Requirements:
1. $min_chars-$max_chars characters
2. Cover the main plot of this chapter
3. Mention the key characters and events
4. Plain, fluent prose

Chapter content:
$content

Output only the summary, with no other commentary.""")

RECOMMENDATION_TEMPLATE = Template("""\
You are a professional web-novel recommendation assistant. The user will describe \
the kind of book they want to read; recommend $count novels that fit.

Requirements:
1. You must reply in JSON
2. Each book has: title, author, reason (at most $reason_chars characters), tags (an array)
3. Recommended books must really exist and be reasonably well known
4. Prefer completed works or popular ongoing serials

User request: $query

Reply strictly in the following JSON format with nothing else:
{
  "recommendations": [
    {"title": "Title", "author": "Author", "reason": "Why it fits", "tags": ["tag1", "tag2"]}
  ]
}""")


class PromptBuilder:
    """
    Renders task prompts from fixed templates.

    Rendering is deterministic: the same arguments always give the same prompt.
    """

    def __init__(
        self,
        summary_min_chars: int = 100,
        summary_max_chars: int = 200,
        recommendation_count: int = 5,
        reason_max_chars: int = 50
    ):
        self.summary_min_chars = summary_min_chars
        self.summary_max_chars = summary_max_chars
        self.recommendation_count = recommendation_count
        self.reason_max_chars = reason_max_chars

    def build_summary_prompt(
        self,
        book_name: str,
        chapter_title: str,
        prepared_content: str
    ) -> str:
        """
        Build the chapter summary prompt.

        Args:
            book_name: Title of the book
            chapter_title: Title of the chapter
            prepared_content: Chapter text already cleaned and truncated

        Returns:
            The rendered prompt
        """
        return SUMMARY_TEMPLATE.substitute(
            book_name=book_name,
            chapter_title=chapter_title,
            min_chars=self.summary_min_chars,
            max_chars=self.summary_max_chars,
            content=prepared_content
        )

    def build_recommendation_prompt(self, user_query: str) -> str:
        """Build the prompt asking for a JSON list of recommended books."""
        return RECOMMENDATION_TEMPLATE.substitute(
            count=self.recommendation_count,
            reason_chars=self.reason_max_chars,
            query=user_query.strip()
        )


# Global prompt builder instance
_prompt_builder: Optional[PromptBuilder] = None


def get_prompt_builder() -> PromptBuilder:
    """Get the global prompt builder instance."""
    global _prompt_builder
    if _prompt_builder is None:
        import config
        _prompt_builder = PromptBuilder(
            summary_min_chars=config.SUMMARY_MIN_CHARS,
            summary_max_chars=config.SUMMARY_MAX_CHARS,
            recommendation_count=config.RECOMMENDATION_COUNT,
            reason_max_chars=config.RECOMMENDATION_REASON_MAX_CHARS
        )
    return _prompt_builder


def init_prompt_builder(**kwargs) -> PromptBuilder:
    """Initialize the global prompt builder."""
    global _prompt_builder
    _prompt_builder = PromptBuilder(**kwargs)
    return _prompt_builder
