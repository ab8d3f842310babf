"""
Base prompt template class.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class PromptTemplate:
    """
    A prompt with str.format placeholders.

    Literal braces in JSON examples are doubled ({{ }}). Formatting is strict:
    a missing placeholder value raises KeyError, so a prompt is always fully
    determined by its inputs.

    Usage:
        template = PromptTemplate(template="Summarize:\n{content}", description="Summary")
        prompt = template.format(content="...")
    """
    template: str
    description: str = ""

    def format(self, **kwargs) -> str:
        return self.template.format(**kwargs)

    def __str__(self) -> str:
        return f"PromptTemplate({self.description})"
