"""
Review draft templates.

Short, natural drafts per language and star rating. Each template carries the
business name placeholder exactly once; validate_catalog() checks that every
(language, rating) bucket is non-empty and well formed, and runs at startup.
"""
from typing import Dict, Tuple

from django.core.exceptions import ImproperlyConfigured
from django.db import models

PLACEHOLDER = '{business}'

RATINGS = (1, 2, 3, 4, 5)


class Language(models.TextChoices):
    """Draft language; the label is the language name used in AI prompts"""
    EN = 'en', 'English'
    RO = 'ro', 'Romanian'


DEFAULT_LANGUAGE = Language.EN


REVIEW_TEMPLATES: Dict[str, Dict[int, Tuple[str, ...]]] = {
    Language.EN: {
        5: (
            'Great experience at {business}! Definitely recommend.',
            '{business} was excellent. Will come back.',
            'Really happy with {business}. Good quality and service.',
            'Highly recommend {business}. Very satisfied.',
            '{business} exceeded my expectations. Great place.',
            'Fantastic service at {business}. Worth every penny.',
            'Love {business}! Everything was perfect.',
            "{business} is the real deal. Won't disappoint.",
        ),
        4: (
            'Good experience at {business}. Would return.',
            '{business} is solid. No complaints.',
            'Happy with my visit to {business}.',
            '{business} was nice. Good service.',
            'Enjoyed {business}. Delivered what I expected.',
            'Pleasant experience at {business}. Recommended.',
            '{business} did a good job. Satisfied overall.',
        ),
        3: (
            '{business} was okay. Nothing special.',
            'Average experience at {business}.',
            '{business} is decent, could be better.',
            "It's alright at {business}. Nothing stands out.",
            '{business} met basic expectations.',
            'Mixed feelings about {business}.',
        ),
        2: (
            'Disappointed with {business}. Expected more.',
            '{business} was below expectations.',
            'Not impressed with {business}.',
            '{business} needs improvement in several areas.',
            'Had issues at {business}. Not great.',
        ),
        1: (
            'Poor experience at {business}.',
            '{business} was not good. Would not recommend.',
            "Disappointed with {business}. Won't return.",
            'Bad service at {business}. Not worth it.',
            '{business} fell well short. Avoid.',
        ),
    },
    Language.RO: {
        5: (
            'Experiență grozavă la {business}! Recomand cu încredere.',
            '{business} a fost excelent. Cu siguranță mă voi întoarce.',
            'Foarte mulțumit de {business}. Calitate și servicii bune.',
            'Recomand cu căldură {business}. Foarte satisfăcut.',
            '{business} a depășit așteptările. Loc grozav.',
            'Servicii fantastice la {business}. Merită fiecare ban.',
            'Îmi place {business}! Totul a fost perfect.',
            '{business} este de încredere. Nu vei fi dezamăgit.',
        ),
        4: (
            'Experiență bună la {business}. M-aș întoarce.',
            '{business} este solid. Fără probleme.',
            'Mulțumit de vizita la {business}.',
            '{business} a fost plăcut. Servicii bune.',
            'M-am bucurat de {business}. A îndeplinit așteptările.',
            'Experiență plăcută la {business}. Recomand.',
            '{business} a făcut treabă bună. Mulțumit în general.',
        ),
        3: (
            '{business} a fost ok. Nimic special.',
            'Experiență medie la {business}.',
            '{business} este decent, ar putea fi mai bine.',
            'E în regulă la {business}. Nimic remarcabil.',
            '{business} a îndeplinit așteptările de bază.',
            'Sentimente mixte despre {business}.',
        ),
        2: (
            'Dezamăgit de {business}. Mă așteptam la mai mult.',
            '{business} a fost sub așteptări.',
            'Nu sunt impresionat de {business}.',
            '{business} necesită îmbunătățiri în mai multe zone.',
            'Am avut probleme la {business}. Nu prea bine.',
        ),
        1: (
            'Experiență slabă la {business}.',
            '{business} nu a fost bine. Nu recomand.',
            'Dezamăgit de {business}. Nu mă voi întoarce.',
            'Servicii proaste la {business}. Nu merită.',
            '{business} a fost mult sub așteptări. Evitați.',
        ),
    },
}


def resolve_language(code) -> Language:
    """'ro', 'RO', 'ro-RO' -> Language.RO; anything unknown -> English"""
    if isinstance(code, Language):
        return code
    prefix = str(code or '').strip().lower().replace('_', '-').split('-')[0]
    if prefix in Language.values:
        return Language(prefix)
    return DEFAULT_LANGUAGE


def get_bucket(language, rating: int) -> Tuple[str, ...]:
    return REVIEW_TEMPLATES[resolve_language(language)][rating]


def validate_catalog(templates=None) -> None:
    """Raise ImproperlyConfigured if any bucket is missing, empty or malformed"""
    templates = REVIEW_TEMPLATES if templates is None else templates

    for language in Language:
        buckets = templates.get(language)
        if not buckets:
            raise ImproperlyConfigured(f'No review templates for language {language.value}')
        for rating in RATINGS:
            bucket = buckets.get(rating)
            if not bucket:
                raise ImproperlyConfigured(
                    f'No review templates for {language.value}, {rating} stars'
                )
            for template in bucket:
                if template.count(PLACEHOLDER) != 1:
                    raise ImproperlyConfigured(
                        f'Template must contain {PLACEHOLDER} exactly once: {template!r}'
                    )
