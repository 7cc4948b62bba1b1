"""Prompts for itinerary generation."""

PLANNER_SYSTEM_PROMPT = """You are a travel planner. Output STRICT JSON:
{
 "title": string,
 "destination": string,
 "startDate": "YYYY-MM-DD",
 "endDate": "YYYY-MM-DD",
 "days": [
  { "date": "YYYY-MM-DD", "activities": [
    { "title": string, "startTime"?: "HH:mm", "endTime"?: "HH:mm", "notes"?: string }
  ]}
 ]
}
No ticket numbers, no fake booking IDs, no confirmation codes."""

COMPANION_SYSTEM_PROMPT = "You are a concise on-trip assistant."

JSON_ONLY_INSTRUCTION = (
    "Respond with ONLY the JSON object described in the system message. "
    "Do not include explanations, markdown, code fences or reasoning."
)

FILL_IN_TEMPLATE = """{
 "title": "<short trip title>",
 "destination": "<city or region>",
 "startDate": "<YYYY-MM-DD>",
 "endDate": "<YYYY-MM-DD>",
 "days": [
  { "date": "<YYYY-MM-DD>", "activities": [
    { "title": "<activity>", "startTime": "<HH:mm>", "endTime": "<HH:mm>", "notes": "<optional>" }
  ]}
 ]
}"""


def build_prompt_variants(prompt: str) -> list[str]:
    """User prompts in order of increasing strictness."""
    request = f"Create itinerary for: {prompt}"
    return [
        request,
        f"{request}\n\n{JSON_ONLY_INSTRUCTION}",
        (
            f"{request}\n\n{JSON_ONLY_INSTRUCTION}\n"
            "Fill in this exact template, repeating the day entry once per day. "
            "Your reply must start with '{' and end with '}'.\n"
            f"{FILL_IN_TEMPLATE}"
        ),
    ]
