"""
Review draft generation.

render_template() is the always-available path. ReviewGenerator adds the AI
path on top of it when a credential is configured and falls back to the
template for the same inputs on any AI failure, so generate() never raises.
"""
import logging
import math
import random
from typing import Optional

import requests

from .ai_client import AiDraftClient
from .catalog import DEFAULT_LANGUAGE, PLACEHOLDER, get_bucket, resolve_language
from .config import AiAssisted, GenerationMode, TemplateOnly, generation_mode_from_settings

logger = logging.getLogger(__name__)

DEFAULT_RATING = 5


def clamp_rating(value) -> int:
    """
    Nearest whole star in [1, 5], rounding halves up.

    Accepts numbers and numeric strings: 0 -> 1, 6 -> 5, 2.5 -> 3, 3.7 -> 4.
    NaN becomes the default rating. Non-numeric input raises ValueError.
    """
    number = float(value)
    if math.isnan(number):
        return DEFAULT_RATING
    if math.isinf(number):
        return 5 if number > 0 else 1
    return max(1, min(5, math.floor(number + 0.5)))


def render_template(business_name: str, rating=DEFAULT_RATING, language=DEFAULT_LANGUAGE,
                    rng: Optional[random.Random] = None) -> str:
    bucket = get_bucket(language, clamp_rating(rating))
    template = (rng or random).choice(bucket)
    return template.replace(PLACEHOLDER, business_name).strip()


class ReviewGenerator:
    """Produces one draft per call according to the generation mode"""

    def __init__(self, mode: Optional[GenerationMode] = None, rng: Optional[random.Random] = None,
                 session: Optional[requests.Session] = None):
        self.mode = mode if mode is not None else generation_mode_from_settings()
        self.rng = rng
        self.session = session

    @property
    def uses_ai(self) -> bool:
        return isinstance(self.mode, AiAssisted)

    def generate(self, business_name: str, location: Optional[str] = None,
                 description: Optional[str] = None, rating=DEFAULT_RATING,
                 language=DEFAULT_LANGUAGE) -> str:
        """
        Never raises: AI failures fall back to a template, and a rating that
        is not a number is treated as the default.
        """
        try:
            stars = clamp_rating(rating)
        except (TypeError, ValueError):
            logger.warning(f'Rating {rating!r} is not a number, using {DEFAULT_RATING}')
            stars = DEFAULT_RATING
        language = resolve_language(language)

        if isinstance(self.mode, TemplateOnly):
            return render_template(business_name, stars, language, rng=self.rng)

        client = AiDraftClient(self.mode, session=self.session)
        try:
            return client.request_draft(
                business_name,
                location=location,
                description=description,
                rating=stars,
                language=language,
            )
        except Exception as e:
            logger.warning(
                f'AI review generation failed for {business_name}, falling back to templates: {e}'
            )
            return render_template(business_name, stars, language, rng=self.rng)


def generate_review(business_name: str, location: Optional[str] = None,
                    description: Optional[str] = None, rating=DEFAULT_RATING,
                    language=DEFAULT_LANGUAGE, rng: Optional[random.Random] = None) -> str:
    """Draft using the mode configured in settings"""
    return ReviewGenerator(rng=rng).generate(
        business_name,
        location=location,
        description=description,
        rating=rating,
        language=language,
    )
