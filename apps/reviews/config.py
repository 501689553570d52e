"""
How review drafts are generated: templates only, or AI with template fallback.
"""
from dataclasses import dataclass
from typing import Optional, Union

from django.conf import settings

PLACEHOLDER_API_KEYS = frozenset({'', 'your-api-key-here', 'your_api_key_here', 'changeme'})

DEFAULT_API_URL = 'https://openrouter.ai/api/v1/chat/completions'
DEFAULT_MODEL = 'openrouter/auto'


@dataclass(frozen=True)
class TemplateOnly:
    """No AI credential configured"""


@dataclass(frozen=True)
class AiAssisted:
    api_key: str
    api_url: str = DEFAULT_API_URL
    model: str = DEFAULT_MODEL
    timeout: float = 10.0
    temperature: float = 0.7
    max_tokens: int = 100
    site_url: str = ''
    app_title: str = 'ReviewPasta'


GenerationMode = Union[TemplateOnly, AiAssisted]


def is_configured_key(api_key: Optional[str]) -> bool:
    return (api_key or '').strip().lower() not in PLACEHOLDER_API_KEYS


def generation_mode_from_settings() -> GenerationMode:
    api_key = getattr(settings, 'OPENROUTER_API_KEY', '')
    if not is_configured_key(api_key):
        return TemplateOnly()

    return AiAssisted(
        api_key=api_key.strip(),
        api_url=getattr(settings, 'OPENROUTER_API_URL', DEFAULT_API_URL),
        model=getattr(settings, 'OPENROUTER_MODEL', DEFAULT_MODEL),
        timeout=getattr(settings, 'AI_DRAFT_TIMEOUT', 10.0),
        temperature=getattr(settings, 'AI_DRAFT_TEMPERATURE', 0.7),
        max_tokens=getattr(settings, 'AI_DRAFT_MAX_TOKENS', 100),
        site_url=getattr(settings, 'SITE_URL', ''),
    )
