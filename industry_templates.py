from typing import Dict, List

from errors import NotFoundError

# Starting points for the onboarding form; users are expected to customise them.
INDUSTRY_TEMPLATES: Dict[str, Dict[str, str]] = {
    "technology": {
        "industry": "Technology & Software",
        "icon": "💻",
        "target_audience": "Tech-savvy professionals, IT decision-makers, and business leaders",
        "audience_description": (
            "Our target audience consists of professionals who value innovative solutions. "
            "They are typically aged 25-55, working in technology-related roles or making "
            "technology decisions for their organizations."
        ),
        "newsletter_objectives": (
            "Share industry insights, product updates, and tech trends. "
            "Establish thought leadership in the tech space."
        ),
        "primary_cta": "Explore our latest solutions or schedule a demo.",
    },
    "healthcare": {
        "industry": "Healthcare & Medical",
        "icon": "🏥",
        "target_audience": "Healthcare professionals, medical administrators, and wellness enthusiasts",
        "audience_description": (
            "Our audience includes medical practitioners, healthcare administrators, and "
            "individuals interested in health and wellness. They value evidence-based "
            "information and professional development."
        ),
        "newsletter_objectives": (
            "Provide updates on medical innovations, industry best practices, and healthcare insights."
        ),
        "primary_cta": "Book a consultation or learn more about our services.",
    },
    "education": {
        "industry": "Education & E-learning",
        "icon": "📚",
        "target_audience": "Educators, school administrators, and education technology professionals",
        "audience_description": (
            "We serve education professionals seeking innovative teaching methods and "
            "administrative solutions. This includes K-12 teachers, university faculty, "
            "and EdTech decision-makers."
        ),
        "newsletter_objectives": "Share educational resources, industry updates, and teaching strategies.",
        "primary_cta": "Discover our educational resources or sign up for a workshop.",
    },
    "retail": {
        "industry": "Retail & E-commerce",
        "icon": "🛍️",
        "target_audience": "Retail business owners, store managers, and retail industry professionals",
        "audience_description": (
            "Our audience includes retail decision-makers looking to optimize their operations "
            "and stay competitive. They are interested in retail trends, technology, and "
            "customer experience."
        ),
        "newsletter_objectives": "Provide retail industry insights, trend analysis, and business strategies.",
        "primary_cta": "Explore our retail solutions or request a consultation.",
    },
    "finance": {
        "industry": "Finance & Banking",
        "icon": "💰",
        "target_audience": "Financial professionals, investors, and business decision-makers",
        "audience_description": (
            "We target finance industry professionals seeking market insights and financial "
            "solutions. This includes investment managers, financial advisors, and corporate "
            "finance leaders."
        ),
        "newsletter_objectives": "Deliver financial market analysis, industry trends, and expert insights.",
        "primary_cta": "Schedule a financial consultation or learn about our services.",
    },
    "marketing": {
        "industry": "Marketing & Advertising",
        "icon": "📈",
        "target_audience": "Marketing managers, advertising professionals, brand strategists",
        "audience_description": (
            "Marketing professionals seeking to improve campaign performance and ROI. They focus "
            "on audience engagement, conversion optimization, and brand building."
        ),
        "newsletter_objectives": (
            "Share marketing trends, provide campaign strategies, discuss digital innovation, "
            "and showcase successful marketing campaigns."
        ),
        "primary_cta": "Get Marketing Analysis",
    },
}

def get_industry_names() -> List[Dict[str, str]]:
    return [
        {"value": key, "label": template["industry"], "icon": template["icon"]}
        for key, template in INDUSTRY_TEMPLATES.items()
    ]

def get_industry_template(key: str) -> Dict[str, str]:
    template = INDUSTRY_TEMPLATES.get((key or "").lower())
    if template is None:
        raise NotFoundError(f"Unknown industry: {key}")
    return {"value": key.lower(), **template}
