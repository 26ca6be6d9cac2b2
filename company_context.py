from typing import Dict

def build_company_context(company: Dict) -> str:
    return f"""
COMPANY: {company.get("company_name") or "Unknown"}
INDUSTRY: {company.get("industry") or "General business"}
WEBSITE: {company.get("website_url") or "n/a"}
TARGET AUDIENCE: {company.get("target_audience") or "General audience"}
AUDIENCE DESCRIPTION: {company.get("audience_description") or "Business professionals"}
NEWSLETTER OBJECTIVES: {company.get("newsletter_objectives") or "Engage and inform the audience"}
PRIMARY CALL TO ACTION: {company.get("primary_cta") or "Contact us to learn more"}
""".strip()
