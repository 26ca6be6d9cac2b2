import re
from typing import Dict, Optional

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\+?[\d\s\-()]+$")
URL_PATTERN = re.compile(r"^https?://.+", re.IGNORECASE)

# field -> message shown when the field is blank
REQUIRED_FIELDS = {
    "company_name": "Company name is required",
    "website_url": "Website URL is required",
    "contact_email": "Email is required",
    "phone_number": "Phone number is required",
    "industry": "Please select an industry",
    "target_audience": "Target audience is required",
    "audience_description": "Audience description is required",
    "newsletter_objectives": "Newsletter objectives are required",
    "primary_cta": "Primary CTA is required",
}


def is_valid_email(value: Optional[str]) -> bool:
    return bool(value) and EMAIL_PATTERN.match(value.strip()) is not None


def validate_onboarding_form(
    fields: Dict[str, Optional[str]],
    csv_filename: Optional[str] = None,
    csv_size: int = 0,
    max_csv_size: int = 5 * 1024 * 1024,
) -> Dict[str, str]:
    """
    Check the onboarding form and return a field -> message map.
    An empty map means the form is valid. The contact list is optional.
    """
    errors: Dict[str, str] = {}

    for name, message in REQUIRED_FIELDS.items():
        value = fields.get(name)
        if not value or not value.strip():
            errors[name] = message

    website_url = (fields.get("website_url") or "").strip()
    if website_url and not URL_PATTERN.match(website_url):
        errors["website_url"] = "Please enter a valid URL starting with http:// or https://"

    contact_email = (fields.get("contact_email") or "").strip()
    if contact_email and not is_valid_email(contact_email):
        errors["contact_email"] = "Please enter a valid email address"

    phone_number = (fields.get("phone_number") or "").strip()
    if phone_number and not PHONE_PATTERN.match(phone_number):
        errors["phone_number"] = "Please enter a valid phone number"

    if csv_filename and csv_size > 0:
        if not csv_filename.lower().endswith(".csv"):
            errors["contact_list"] = "Please upload a CSV file"
        elif csv_size > max_csv_size:
            errors["contact_list"] = f"File size should be less than {max_csv_size // (1024 * 1024)}MB"

    return errors
