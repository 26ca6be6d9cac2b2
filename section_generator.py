from openai import OpenAI
from dotenv import load_dotenv
import os

from company_context import build_company_context

load_dotenv()
client = OpenAI(api_key=os.getenv("OPENAI_API_KEY"))
MODEL = os.getenv("OPENAI_TEXT_MODEL", "gpt-4o-mini")

SECTION_THEMES = [
    "Current industry trends and innovations",
    "Practical tips and best practices",
    "Success stories or case studies",
]

def generate_newsletter_sections(company: dict, industry_summary: str) -> str:
    themes = "\n".join(f"{i}. {theme}" for i, theme in enumerate(SECTION_THEMES, start=1))
    response = client.chat.completions.create(
        model=MODEL,
        messages=[
            {
                "role": "system",
                "content": (
                    "You are a newsletter generator who writes engaging, actionable content "
                    "for businesses and briefs image designers on the matching visuals."
                )
            },
            {
                "role": "user",
                "content": f"""
Generate a 3-section newsletter for the company below, one section per theme:
{themes}

Rules:
- Each section has a heading and a short body of 3-4 sentences.
- Make every section relevant to the company and reference the industry insights.
- End the last section by steering readers toward the primary call to action.
- For each section add an "image_prompt": a specific, photorealistic, business-appropriate
  scene for AI image generation, under 200 characters, with no text in the image.

Company:
{build_company_context(company)}

Industry insights:
{industry_summary}

Return a JSON object with key "sections": an array of exactly 3 objects with keys
"heading", "body", "image_prompt".
"""}
        ],
        temperature=0.7,
        response_format={ "type": "json_object" }
    )
    return response.choices[0].message.content
