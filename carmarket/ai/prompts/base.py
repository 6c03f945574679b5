"""Base prompt class."""

from typing import Any, Dict, List


class Prompt:
    """Base class for all prompts."""

    # Keys the model reply must contain for the prompt to be considered answered
    required_fields: tuple[str, ...] = ()

    def __init__(self, template: str, system_prompt: str):
        """Initialize the prompt.

        Args:
            template: The prompt template string
            system_prompt: The system prompt
        """
        self.template = template
        self.system_prompt = system_prompt

    def format(self, **kwargs: Any) -> str:
        """Format the prompt template with variables.

        Args:
            **kwargs: Variables to format the template with

        Returns:
            str: The formatted prompt
        """
        return self.template.format(**kwargs)

    def render(self) -> str:
        """The prompt text as sent to the model."""
        return self.format()

    def missing_fields(self, reply: Dict[str, Any]) -> List[str]:
        """Required fields absent from a parsed model reply."""
        return [field for field in self.required_fields if field not in reply]
