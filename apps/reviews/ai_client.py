"""
AI review drafts through OpenRouter chat completions.

One request per draft, no retries. Failures surface as DraftGenerationError
subclasses (or requests exceptions for transport problems); the generator
turns all of them into a template draft.
"""
import logging
from typing import Optional

import requests

from .catalog import DEFAULT_LANGUAGE, resolve_language
from .config import AiAssisted

logger = logging.getLogger(__name__)


TONE_BY_RATING = {
    5: 'positive and satisfied',
    4: 'positive',
    3: 'neutral, mixed',
    2: 'disappointed but constructive',
    1: 'disappointed and critical',
}


class DraftGenerationError(Exception):
    """AI draft could not be produced"""


class UpstreamHttpError(DraftGenerationError):
    def __init__(self, status: int):
        self.status = status
        super().__init__(f'OpenRouter API error: {status}')


class EmptyCompletionError(DraftGenerationError):
    def __init__(self, message: str = 'No review generated'):
        super().__init__(message)


class MalformedCompletionError(EmptyCompletionError):
    """Response body is not JSON"""


def build_prompt(
    business_name: str,
    rating: int,
    language=DEFAULT_LANGUAGE,
    location: Optional[str] = None,
    description: Optional[str] = None,
) -> str:
    """
    Compose the instruction sent to the model.

    'Nordic Brew (Specialty coffee) in Iași' style context, then rating,
    language, tone and length rules, one per line.
    """
    language_name = resolve_language(language).label

    context = business_name
    if description:
        context += f' ({description})'
    if location:
        context += f' in {location}'

    return (
        f'Write a short, natural Google review for {context}.\n'
        f'Rating: {rating} stars\n'
        f'Language: {language_name}\n'
        f'Tone: {TONE_BY_RATING[rating]}\n'
        'Style: Conversational, authentic, like a real person\n'
        'Length: 1-2 sentences, keep it brief\n'
        '\n'
        f'Write ONLY the review text in {language_name}, no quotes, no formatting.'
    )


class AiDraftClient:
    """
    Client for the chat completions endpoint.

    Usage:
        client = AiDraftClient(generation_mode_from_settings())
        text = client.request_draft('Nordic Brew', rating=5, language='en')
    """

    def __init__(self, config: AiAssisted, session: Optional[requests.Session] = None):
        self.config = config
        self._session = session

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def _headers(self) -> dict:
        headers = {
            'Authorization': f'Bearer {self.config.api_key}',
            'Content-Type': 'application/json',
            'X-Title': self.config.app_title,
        }
        if self.config.site_url:
            headers['HTTP-Referer'] = self.config.site_url
        return headers

    def request_draft(
        self,
        business_name: str,
        location: Optional[str] = None,
        description: Optional[str] = None,
        rating: int = 5,
        language=DEFAULT_LANGUAGE,
    ) -> str:
        prompt = build_prompt(
            business_name, rating, language,
            location=location, description=description,
        )
        payload = {
            'model': self.config.model,
            'messages': [{'role': 'user', 'content': prompt}],
            'temperature': self.config.temperature,
            'max_tokens': self.config.max_tokens,
        }

        response = self.session.post(
            self.config.api_url,
            json=payload,
            headers=self._headers(),
            timeout=self.config.timeout,
        )

        if not response.ok:
            raise UpstreamHttpError(response.status_code)

        try:
            data = response.json()
        except ValueError:
            raise MalformedCompletionError('OpenRouter returned a non-JSON body')

        text = self._extract_text(data)
        if not text:
            raise EmptyCompletionError()

        logger.debug(f'AI draft generated for {business_name} ({rating} stars)')
        return text

    @staticmethod
    def _extract_text(data) -> str:
        """choices[0].message.content, trimmed; '' when any level is missing"""
        if not isinstance(data, dict):
            return ''
        choices = data.get('choices') or []
        if not choices or not isinstance(choices[0], dict):
            return ''
        message = choices[0].get('message') or {}
        content = message.get('content') if isinstance(message, dict) else None
        if not isinstance(content, str):
            return ''
        return content.strip()
