from openai import OpenAI
from dotenv import load_dotenv
import os

from company_context import build_company_context

load_dotenv()
client = OpenAI(api_key=os.getenv("OPENAI_API_KEY"))
MODEL = os.getenv("OPENAI_TEXT_MODEL", "gpt-4o-mini")

def generate_industry_summary(company: dict) -> str:
    response = client.chat.completions.create(
        model=MODEL,
        messages=[
            {
                "role": "system",
                "content": "You are a professional newsletter writer specializing in business content."
            },
            {
                "role": "user",
                "content": f"""
Write a brief summary of the company's industry for the opening of its newsletter.
Cover up to 3 current trends, statistics, or opportunities that matter to the target audience.
Write 2-3 short paragraphs of plain text separated by blank lines. No markdown, no headings.

Company:
{build_company_context(company)}
"""}
        ],
        temperature=0.7,
    )
    return (response.choices[0].message.content or "").strip()
