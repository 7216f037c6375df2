import logging
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

FALLBACK_WELCOME_INTRO = (
    "Thanks for joining Signalist. You now have the tools to track markets and make smarter moves."
)

PERSONALIZED_WELCOME_EMAIL_PROMPT = """Write a short, warm welcome paragraph (2-3 sentences) for a new user of a stock-tracking app.
Tailor it to the profile below. Mention one concrete way the watchlist and daily news email can help them.
Do not give investment advice. Output plain text only.

User profile:
{{userProfile}}
"""


def build_welcome_prompt(user: Dict[str, Any]) -> str:
    profile = "\n".join([
        f"- Country: {user.get('country') or 'N/A'}",
        f"- Investment goals: {user.get('investment_goals') or 'N/A'}",
        f"- Risk tolerance: {user.get('risk_tolerance') or 'N/A'}",
        f"- Preferred industry: {user.get('preferred_industry') or 'N/A'}",
    ])
    return PERSONALIZED_WELCOME_EMAIL_PROMPT.replace("{{userProfile}}", profile)


def compose_welcome_intro(user: Dict[str, Any], generate: Callable[[str], Optional[str]]) -> str:
    """Personalised intro text, or the stock intro if the model gives nothing usable."""
    try:
        text = generate(build_welcome_prompt(user))
    except Exception as e:
        logger.error(f"Welcome intro generation failed for {user.get('email')}: {e}")
        return FALLBACK_WELCOME_INTRO
    if not text or not text.strip():
        return FALLBACK_WELCOME_INTRO
    return text.strip()
