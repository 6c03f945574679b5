"""Prompt for turning a buyer's car photo into a search hint."""

from carmarket.ai.prompts.base import Prompt

SYSTEM_PROMPT = """You help buyers find cars similar to the one in their photo.
Only return the raw JSON object, without markdown or explanations."""

TEMPLATE = """Analyze this car image and extract the following information for a search query:
1. Make (manufacturer)
2. Body type (SUV, Sedan, Hatchback, Convertible, Coupe, Wagon, Pickup, etc.)
3. Color

Format your response as a clean JSON object with these fields:
{{
  "make": "",
  "bodyType": "",
  "color": "",
  "confidence": 0.0
}}

For confidence, provide a value between 0 and 1 representing how confident you are in your overall identification.
Only respond with the JSON object, nothing else.
"""


class CarSearchPrompt(Prompt):
    required_fields = ("make", "bodyType", "color")

    def __init__(self):
        super().__init__(template=TEMPLATE, system_prompt=SYSTEM_PROMPT)
