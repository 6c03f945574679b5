"""Prompt for extracting listing attributes from a car photo."""

import json

from carmarket.ai.prompts.base import Prompt
from carmarket.schemas.cars import BodyType, FuelType, Transmission

SYSTEM_PROMPT = """You are an automotive expert helping a dealership list cars for sale.
You look at a photo of a car and describe it as a structured listing.
Never include any explanations, code, or markdown formatting in your response - only return the raw JSON object."""

TEMPLATE = """Analyze the given car image and extract the most accurate possible details.

IMPORTANT RULES:
- You MUST choose values ONLY from the allowed lists below.
- If unsure, pick the closest reasonable option.
- Do NOT invent brands or formats.
- Output MUST be valid JSON only (no markdown, no explanation).

ALLOWED VALUES:

Fuel Type (choose exactly one):
{fuel_types}

Transmission (choose exactly one):
{transmissions}

Body Type (choose exactly one):
{body_types}

DATA RULES:
- "price" must be a NUMBER ONLY in the form of string (no "$", no commas, no text, no extra spaces)
- "mileage" must be a realistic whole number in kilometers
- "year" must be a realistic 4-digit number
- "description" must be short, clean, and suitable for a car listing
- If any detail is uncertain, make a reasonable guess

Extract the following fields:
1. Make (manufacturer)
2. Model
3. Year (approximate but realistic)
4. Color
5. Body Type (from allowed list)
6. Mileage (realistic number)
7. Fuel Type (from allowed list)
8. Transmission (from allowed list)
9. Price (number only, no currency symbols)
10. Short description for a car listing

Return the response in this EXACT JSON format:

{{
  "make": "",
  "model": "",
  "year": 0000,
  "color": "",
  "price": "",
  "mileage": 0,
  "bodyType": "",
  "fuelType": "",
  "transmission": "",
  "description": "",
  "confidence": 0.0
}}

- "confidence" must be a number between 0 and 1 representing how confident you are in your overall identification.
- Respond with ONLY the JSON object.
"""


class CarAttributesPrompt(Prompt):
    """Prompt asking for every attribute of a listing, constrained to the closed value sets."""

    required_fields = (
        "make",
        "model",
        "year",
        "color",
        "bodyType",
        "price",
        "mileage",
        "fuelType",
        "transmission",
        "description",
    )

    def __init__(self):
        super().__init__(template=TEMPLATE, system_prompt=SYSTEM_PROMPT)

    def render(self) -> str:
        return self.format(
            fuel_types=json.dumps(FuelType.values()),
            transmissions=json.dumps(Transmission.values()),
            body_types=json.dumps(BodyType.values()),
        )
