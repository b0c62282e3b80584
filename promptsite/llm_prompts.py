from __future__ import annotations

from typing import Dict, List, Optional

from promptsite.analyzer import PromptAnalysis

SYSTEM_INSTRUCTION = """You are an expert web designer and developer who specializes in creating beautiful, responsive websites with modern designs.

Task: Generate a complete, production-ready HTML file based on the following user request.

Requirements:
- Create a single HTML file with embedded CSS (using Tailwind CSS).
- The site should be fully responsive and work well on mobile, tablet, and desktop.
- Include appropriate semantic HTML5 elements (header, nav, main, section, article, aside, footer).
- Use Tailwind CSS for styling (already linked via CDN: https://cdn.tailwindcss.com).
- Create a beautiful, modern, professional design with appealing color schemes that match the site's purpose.
- Include realistic placeholder content relevant to the site's purpose.
- Ensure all sections are well-organized with proper spacing and typography.
- Add subtle animations or hover effects where appropriate (using Tailwind's transition classes).
- Implement a user-friendly navigation system with mobile responsiveness.
- Add a functioning contact form in a relevant section.
- Include appropriate meta tags for SEO.
- Add social media links in the footer.
- No external JavaScript dependencies except Tailwind CSS CDN.
- Include a favicon link (can use a generic one).
- Use modern UI/UX patterns appropriate for the website type.

Color Scheme:
- Choose a cohesive color palette (3-5 colors) that suits the website's purpose.
- Use these colors consistently throughout the site.
- Ensure sufficient contrast for accessibility.

Layout Best Practices:
- Use a clean, grid-based layout system.
- Follow visual hierarchy principles.
- Maintain balanced white space.
- Use Tailwind's container classes for content width management.

Return ONLY the complete HTML code without any explanations or markdown."""


WEBSITE_TEMPLATES: Dict[str, Dict[str, object]] = {
    "restaurant": {
        "title": "RESTAURANT-SPECIFIC FEATURES",
        "features": [
            "Menu sections with appetizers, mains, desserts, drinks",
            "Online reservation system with time slots",
            "Location and hours prominently displayed",
            "Chef's special or daily specials section",
            "Customer reviews and testimonials",
            "Photo gallery of food and restaurant ambiance",
            "Contact info with phone number for reservations",
            "Social media integration for Instagram food photos",
            "Delivery and takeout options",
            "About the chef/restaurant story",
        ],
        "color_schemes": ["warm and appetizing", "elegant dining", "rustic and cozy", "modern and fresh"],
    },
    "portfolio": {
        "title": "PORTFOLIO-SPECIFIC FEATURES",
        "features": [
            "Hero section with professional headshot and tagline",
            "Skills and expertise showcase",
            "Project gallery with case studies",
            "Work experience timeline",
            "Client testimonials and recommendations",
            "Downloadable resume/CV",
            "Contact form for project inquiries",
            "Social media and professional network links",
            "About section with personal story",
            "Services offered with pricing (optional)",
        ],
        "color_schemes": ["creative and bold", "minimal and professional", "artistic and vibrant", "clean and modern"],
    },
    "ecommerce": {
        "title": "E-COMMERCE-SPECIFIC FEATURES",
        "features": [
            "Product showcase with grid layout",
            "Featured products and bestsellers",
            "Shopping cart icon and functionality hints",
            "Product categories and filters",
            "Customer reviews and ratings display",
            "Promotional banners and sale sections",
            "Newsletter signup for deals",
            "Trust badges and security indicators",
            "Shipping and return policy information",
            "Customer support contact options",
        ],
        "color_schemes": [
            "trustworthy and professional",
            "vibrant and energetic",
            "luxury and premium",
            "friendly and approachable",
        ],
    },
    "saas": {
        "title": "SAAS-SPECIFIC FEATURES",
        "features": [
            "Clear value proposition and benefits",
            "Feature comparison tables",
            "Pricing tiers with recommended plan",
            "Free trial or demo call-to-action",
            "Customer testimonials and case studies",
            "Integration showcase with popular tools",
            "Security and compliance badges",
            "FAQ section addressing common concerns",
            "Getting started guide or onboarding flow",
            "API documentation links",
        ],
        "color_schemes": ["tech-forward and modern", "trustworthy and corporate", "innovative and bold", "clean and efficient"],
    },
    "agency": {
        "title": "AGENCY-SPECIFIC FEATURES",
        "features": [
            "Service offerings with detailed descriptions",
            "Case studies and client success stories",
            "Team member profiles and expertise",
            "Client logos and testimonials",
            "Process or methodology explanation",
            "Industry specializations",
            "Contact form for project inquiries",
            "Blog or insights section",
            "Awards and recognition display",
            "Partnership and certification badges",
        ],
        "color_schemes": [
            "professional and authoritative",
            "creative and dynamic",
            "corporate and trustworthy",
            "modern and innovative",
        ],
    },
    "blog": {
        "title": "BLOG-SPECIFIC FEATURES",
        "features": [
            "Featured article with large image",
            "Recent posts grid layout",
            "Category navigation and tags",
            "Author bio and profile",
            "Search functionality hint",
            "Newsletter subscription",
            "Social sharing buttons",
            "Related articles suggestions",
            "Comment section design",
            "Archive and date-based navigation",
        ],
        "color_schemes": ["readable and comfortable", "magazine-style and editorial", "minimal and clean", "vibrant and engaging"],
    },
    "visa": {
        "title": "VISA/IMMIGRATION SERVICE FEATURES",
        "features": [
            "Clear visa type categories with icons and descriptions",
            "Step-by-step application process visualization",
            "Document requirements checklist with upload areas",
            "Government compliance badges and certifications",
            "Real-time application status tracking interface",
            "Multilingual support indicators",
            "Consulate/embassy location finder",
            "Processing time estimates with guarantees",
            "Customer testimonials with success stories",
            "Live chat support with expert agents",
            "FAQ section addressing common concerns",
            "Emergency contact information",
            "Cultural integration tips and resources",
            "Partner logos (airlines, hotels, insurance)",
            "Trust signals (SSL, GDPR compliance, approval rates)",
        ],
        "color_schemes": [
            "official and trustworthy",
            "patriotic flag colors",
            "professional government blue",
            "international and multicultural",
        ],
    },
    "legal": {
        "title": "LEGAL SERVICES FEATURES",
        "features": [
            "Practice area specializations clearly defined",
            "Attorney profiles with credentials and experience",
            "Case study results and success rates",
            "Free consultation booking system",
            "Legal resource library and guides",
            "Client testimonials and reviews",
            "Professional association memberships",
            "Awards and recognition display",
            "Contact forms for different legal needs",
            "Emergency legal hotline information",
            "Fee structure transparency",
            "Multi-language support for international clients",
        ],
        "color_schemes": [
            "authoritative and professional",
            "classic legal blue",
            "trustworthy and conservative",
            "modern and approachable",
        ],
    },
    "medical": {
        "title": "MEDICAL/HEALTHCARE FEATURES",
        "features": [
            "Services and specializations overview",
            "Doctor profiles with qualifications",
            "Online appointment booking system",
            "Patient portal access hints",
            "Insurance information and accepted plans",
            "Location and hours with emergency contacts",
            "Patient testimonials and success stories",
            "Medical certifications and accreditations",
            "Health resources and educational content",
            "Telemedicine options",
            "Emergency contact information",
            "Multilingual support for diverse patients",
        ],
        "color_schemes": [
            "clean medical white and blue",
            "calming and trustworthy",
            "professional healthcare green",
            "modern and accessible",
        ],
    },
    "education": {
        "title": "EDUCATION/TRAINING FEATURES",
        "features": [
            "Course catalog with detailed descriptions",
            "Faculty profiles and qualifications",
            "Student success stories and testimonials",
            "Admission requirements and application process",
            "Campus tour virtual elements",
            "Academic calendar and important dates",
            "Student resources and support services",
            "Alumni network and career outcomes",
            "Financial aid and scholarship information",
            "Online learning platform integration",
            "International student services",
            "Campus life and extracurricular activities",
        ],
        "color_schemes": [
            "academic and scholarly",
            "inspiring and motivational",
            "youthful and energetic",
            "traditional and prestigious",
        ],
    },
}

DESIGN_TRENDS: Dict[str, List[str]] = {
    "typography": [
        "Variable font usage with dynamic weights",
        "Oversized headlines with thin body text",
        "Mixed serif and sans-serif combinations",
        "Improved readability with optimal line spacing",
    ],
    "layouts": [
        "Asymmetrical grid systems",
        "Floating navigation elements",
        "Overlapping content sections",
        "Card-based layouts with depth",
        "Masonry grids for dynamic content",
    ],
    "colors": [
        "Gradient overlays and mesh gradients",
        "High contrast color combinations",
        "Monochromatic with accent colors",
        "Accessibility-first color choices",
    ],
    "interactions": [
        "Micro-interactions on hover states",
        "Smooth page transitions",
        "Interactive elements with feedback",
        "Progressive disclosure of information",
    ],
}

INDUSTRY_TRUST_SIGNALS: Dict[str, List[str]] = {
    "finance": ["trust badges", "security certificates", "regulatory compliance"],
    "healthcare": ["privacy notices", "medical certifications", "patient portals"],
    "education": ["accreditation badges", "student portals", "course catalogs"],
}

_INDUSTRY_TEMPLATE_KEYS = {"healthcare": "medical", "education": "education"}


def guidance_key(analysis: PromptAnalysis, prompt: str) -> Optional[str]:
    """Pick the WEBSITE_TEMPLATES entry for a request, or None for plain businesses."""
    text = (prompt or "").lower()
    if "visa" in text:
        return "visa"
    if "lawyer" in text or "legal" in text or "attorney" in text:
        return "legal"
    if analysis.business_type in WEBSITE_TEMPLATES:
        return analysis.business_type
    return _INDUSTRY_TEMPLATE_KEYS.get(analysis.industry)


def _bullets(items: List[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


def build_site_prompt(prompt: str, analysis: PromptAnalysis) -> str:
    sections: List[str] = [SYSTEM_INSTRUCTION]

    key = guidance_key(analysis, prompt)
    template = WEBSITE_TEMPLATES.get(key) if key else None
    if template:
        sections.append(f"{template['title']}:\n{_bullets(list(template['features']))}")

    analysis_lines = [
        f"- Website type: {analysis.business_type}",
        f"- Industry: {analysis.industry}",
        f"- Color mood: {analysis.color_mood}",
    ]
    if analysis.features:
        analysis_lines.append(f"- Requested features: {', '.join(analysis.features)}")
    if template:
        analysis_lines.append(f"- Suggested color directions: {', '.join(template['color_schemes'])}")
    trust = INDUSTRY_TRUST_SIGNALS.get(analysis.industry)
    if trust:
        analysis_lines.append(f"- Trust signals to include: {', '.join(trust)}")
    sections.append("Request analysis:\n" + "\n".join(analysis_lines))

    trend_lines = [f"- {name.capitalize()}: {'; '.join(items)}" for name, items in DESIGN_TRENDS.items()]
    sections.append("Current design trends to draw from:\n" + "\n".join(trend_lines))

    sections.append(f'User request: "{prompt}". Create a complete, beautiful website for this purpose.')
    return "\n\n".join(sections)


def build_edit_prompt(instruction: str, html: str) -> str:
    return (
        f'Edit this HTML based on the following request: "{instruction}".\n'
        f"Apply the changes to this HTML: {html}\n"
        "Return the complete HTML document with your changes.\n"
        "Start with <!DOCTYPE html> and end with </html>."
    )
