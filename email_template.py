from datetime import datetime
from html import escape
from typing import Dict, List, Optional

from utils import split_paragraphs

STYLES = """
    body { font-family: Arial, sans-serif; line-height: 1.6; margin: 0; padding: 0; background-color: #f4f4f4; }
    .container { max-width: 600px; margin: 0 auto; padding: 20px; background-color: #ffffff; }
    .header { text-align: center; padding: 20px; background-color: #f8f9fa; }
    .notice { padding: 15px; margin-bottom: 20px; background-color: #fff8e1; border: 1px solid #ffe082; border-radius: 5px; color: #6d4c00; }
    .summary { padding: 20px; background-color: #f8f9fa; border-radius: 5px; margin-bottom: 30px; }
    .section { margin-bottom: 30px; padding: 20px; border: 1px solid #e9ecef; border-radius: 5px; }
    .section-title { color: #333; font-size: 24px; margin-bottom: 15px; }
    .section-content { color: #555; font-size: 16px; }
    .section-image { width: 100%; max-width: 550px; height: auto; margin: 15px 0; border-radius: 5px; }
    .footer { text-align: center; padding: 20px; background-color: #f8f9fa; color: #666; font-size: 14px; }
    @media only screen and (max-width: 600px) {
        .container { width: 100%; padding: 10px; }
        .section-title { font-size: 20px; }
        .section-content { font-size: 14px; }
    }
"""

DRAFT_NOTICE = (
    "This is your newsletter draft. Please review the content and let us know "
    "if you'd like any changes before it goes out to your contacts."
)

def _paragraphs_html(text: Optional[str]) -> str:
    return "".join(f"<p>{escape(p)}</p>" for p in split_paragraphs(text))

def _section_html(section: Dict) -> str:
    heading = escape(section.get("heading") or "")
    image = ""
    if section.get("image_url"):
        image = (
            f'<img src="{escape(section["image_url"], quote=True)}" '
            f'alt="{heading}" class="section-image" />'
        )
    return f"""
      <div class="section">
        <h2 class="section-title">{heading}</h2>
        {image}
        <div class="section-content">{_paragraphs_html(section.get("body"))}</div>
      </div>"""

def generate_email_html(
    company_name: str,
    industry_summary: str,
    sections: List[Dict],
    draft: bool = False,
    view_url: Optional[str] = None,
) -> str:
    name = escape(company_name or "")
    year = datetime.now().year
    notice = f'<div class="notice">{escape(DRAFT_NOTICE)}</div>' if draft else ""
    view_online = (
        f'<p><a href="{escape(view_url, quote=True)}">View this newsletter online</a></p>'
        if view_url else ""
    )
    title_suffix = "Newsletter Draft" if draft else "Newsletter"

    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{name} {title_suffix}</title>
  <style>{STYLES}</style>
</head>
<body>
  <div class="container">
    {notice}
    <div class="header"><h1>{name}</h1></div>
    <div class="summary">
      <h2>Industry Insights</h2>
      {_paragraphs_html(industry_summary)}
    </div>
    {"".join(_section_html(s) for s in sections)}
    <div class="footer">
      {view_online}
      <p>&copy; {year} {name}. All rights reserved.</p>
      <p>You received this email because you subscribed to our newsletter.</p>
    </div>
  </div>
</body>
</html>"""

def generate_plain_text(
    company_name: str,
    industry_summary: str,
    sections: List[Dict],
    draft: bool = False,
    view_url: Optional[str] = None,
) -> str:
    """Plain-text alternative for email clients without HTML support"""
    lines = []
    if draft:
        lines += [DRAFT_NOTICE, ""]
    lines += [f"{company_name} Newsletter", "", "Industry Insights", "-" * 17, (industry_summary or "").strip(), ""]

    for section in sections:
        heading = section.get("heading") or ""
        lines += [heading, "-" * len(heading), (section.get("body") or "").strip(), ""]

    if view_url:
        lines += [f"View online: {view_url}", ""]
    lines += [
        f"© {datetime.now().year} {company_name}. All rights reserved.",
        "You received this email because you subscribed to our newsletter.",
    ]
    return "\n".join(lines).strip()
