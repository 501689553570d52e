"""Tests for review draft generation: templates, AI client, fallback, views."""

import random
from unittest.mock import MagicMock, patch

import requests
from django.core.exceptions import ImproperlyConfigured
from django.test import SimpleTestCase, TestCase, override_settings
from django.urls import reverse

from apps.businesses.models import Business
from .ai_client import (
    AiDraftClient,
    EmptyCompletionError,
    MalformedCompletionError,
    TONE_BY_RATING,
    UpstreamHttpError,
    build_prompt,
)
from .catalog import PLACEHOLDER, REVIEW_TEMPLATES, Language, resolve_language, validate_catalog
from .config import AiAssisted, TemplateOnly, generation_mode_from_settings
from .generator import ReviewGenerator, clamp_rating, generate_review, render_template


def filled(language, rating, name):
    return {t.replace(PLACEHOLDER, name) for t in REVIEW_TEMPLATES[language][rating]}


def fake_response(status=200, json_data=None, json_error=False):
    response = MagicMock()
    response.status_code = status
    response.ok = 200 <= status < 300
    if json_error:
        response.json.side_effect = ValueError('No JSON object could be decoded')
    else:
        response.json.return_value = json_data
    return response


def completion(text):
    return {'choices': [{'message': {'role': 'assistant', 'content': text}}]}


AI_MODE = AiAssisted(api_key='sk-test', site_url='https://reviewpasta.test')


class CatalogTests(SimpleTestCase):

    def test_every_bucket_non_empty_with_one_placeholder(self):
        for language in Language:
            for rating in range(1, 6):
                bucket = REVIEW_TEMPLATES[language][rating]
                self.assertTrue(bucket, f'{language} {rating}')
                for template in bucket:
                    self.assertEqual(template.count(PLACEHOLDER), 1, template)

    def test_validate_catalog_passes(self):
        validate_catalog()

    def test_validate_catalog_rejects_empty_bucket(self):
        broken = {lang: dict(buckets) for lang, buckets in REVIEW_TEMPLATES.items()}
        broken[Language.RO][3] = ()
        with self.assertRaises(ImproperlyConfigured):
            validate_catalog(broken)

    def test_validate_catalog_rejects_missing_placeholder(self):
        broken = {lang: dict(buckets) for lang, buckets in REVIEW_TEMPLATES.items()}
        broken[Language.EN][5] = ('Great place!',)
        with self.assertRaises(ImproperlyConfigured):
            validate_catalog(broken)

    def test_resolve_language(self):
        self.assertEqual(resolve_language('ro'), Language.RO)
        self.assertEqual(resolve_language('ro-RO'), Language.RO)
        self.assertEqual(resolve_language('EN_us'), Language.EN)
        self.assertEqual(resolve_language('de'), Language.EN)
        self.assertEqual(resolve_language(None), Language.EN)


class ClampRatingTests(SimpleTestCase):

    def test_clamps_and_rounds(self):
        cases = {0: 1, 1: 1, 6: 5, 3.7: 4, 2.5: 3, 1.49: 1, -3: 1, '4': 4, '4.6': 5}
        for value, expected in cases.items():
            self.assertEqual(clamp_rating(value), expected, value)

    def test_non_finite(self):
        self.assertEqual(clamp_rating(float('inf')), 5)
        self.assertEqual(clamp_rating(float('-inf')), 1)
        self.assertEqual(clamp_rating(float('nan')), 5)

    def test_non_numeric_raises(self):
        with self.assertRaises(ValueError):
            clamp_rating('five')


class RenderTemplateTests(SimpleTestCase):

    def test_five_star_english(self):
        draft = render_template('Acme', 5, 'en')
        self.assertIn(draft, filled(Language.EN, 5, 'Acme'))

    def test_one_star_romanian(self):
        draft = render_template('Acme', 1, 'ro')
        self.assertIn(draft, filled(Language.RO, 1, 'Acme'))

    def test_out_of_range_rating_uses_nearest_bucket(self):
        self.assertIn(render_template('Acme', 0, 'en'), filled(Language.EN, 1, 'Acme'))
        self.assertIn(render_template('Acme', 9, 'en'), filled(Language.EN, 5, 'Acme'))
        self.assertIn(render_template('Acme', 3.7, 'en'), filled(Language.EN, 4, 'Acme'))

    def test_unknown_language_falls_back_to_english(self):
        self.assertIn(render_template('Acme', 3, 'fr'), filled(Language.EN, 3, 'Acme'))

    def test_name_substituted_verbatim(self):
        name = 'Café {Ω} & Co.'
        draft = render_template(name, 4, 'en', rng=random.Random(3))
        self.assertIn(name, draft)
        self.assertNotIn(PLACEHOLDER, draft)
        self.assertEqual(draft, draft.strip())

    def test_seeded_rng_is_reproducible(self):
        first = render_template('Acme', 5, 'en', rng=random.Random(42))
        second = render_template('Acme', 5, 'en', rng=random.Random(42))
        self.assertEqual(first, second)

    def test_all_templates_reachable(self):
        rng = random.Random(0)
        seen = {render_template('Acme', 2, 'ro', rng=rng) for _ in range(500)}
        self.assertEqual(seen, filled(Language.RO, 2, 'Acme'))


class GenerationModeTests(SimpleTestCase):

    @override_settings(OPENROUTER_API_KEY='')
    def test_empty_key_is_template_only(self):
        self.assertEqual(generation_mode_from_settings(), TemplateOnly())

    @override_settings(OPENROUTER_API_KEY='your-api-key-here')
    def test_placeholder_key_is_template_only(self):
        self.assertEqual(generation_mode_from_settings(), TemplateOnly())

    @override_settings(OPENROUTER_API_KEY='sk-live', OPENROUTER_MODEL='openrouter/auto', AI_DRAFT_TIMEOUT=5.0)
    def test_real_key_is_ai_assisted(self):
        mode = generation_mode_from_settings()
        self.assertIsInstance(mode, AiAssisted)
        self.assertEqual(mode.api_key, 'sk-live')
        self.assertEqual(mode.timeout, 5.0)


class PromptTests(SimpleTestCase):

    def test_full_context(self):
        prompt = build_prompt('Nordic Brew', 4, 'ro', location='Iași', description='Specialty coffee')
        self.assertIn('for Nordic Brew (Specialty coffee) in Iași.', prompt)
        self.assertIn('Rating: 4 stars', prompt)
        self.assertIn('Language: Romanian', prompt)
        self.assertIn('Tone: positive', prompt)
        self.assertIn('1-2 sentences', prompt)
        self.assertIn('Write ONLY the review text in Romanian, no quotes, no formatting.', prompt)

    def test_optional_context_omitted(self):
        prompt = build_prompt('Nordic Brew', 3, 'en')
        self.assertIn('for Nordic Brew.', prompt)
        self.assertNotIn(' in ', prompt.splitlines()[0])
        self.assertIn(f'Tone: {TONE_BY_RATING[3]}', prompt)


class AiDraftClientTests(SimpleTestCase):

    def setUp(self):
        self.session = MagicMock()
        self.client = AiDraftClient(AI_MODE, session=self.session)

    def test_returns_trimmed_completion(self):
        self.session.post.return_value = fake_response(json_data=completion('  Lovely coffee.  \n'))

        text = self.client.request_draft('Nordic Brew', rating=5, language='en')

        self.assertEqual(text, 'Lovely coffee.')
        args, kwargs = self.session.post.call_args
        self.assertEqual(args[0], AI_MODE.api_url)
        self.assertEqual(kwargs['headers']['Authorization'], 'Bearer sk-test')
        self.assertEqual(kwargs['headers']['HTTP-Referer'], 'https://reviewpasta.test')
        self.assertEqual(kwargs['headers']['X-Title'], 'ReviewPasta')
        self.assertEqual(kwargs['json']['temperature'], 0.7)
        self.assertEqual(kwargs['json']['max_tokens'], 100)
        self.assertEqual(kwargs['json']['messages'][0]['role'], 'user')
        self.assertEqual(kwargs['timeout'], 10.0)

    def test_http_error(self):
        self.session.post.return_value = fake_response(status=500)
        with self.assertRaises(UpstreamHttpError) as ctx:
            self.client.request_draft('Nordic Brew')
        self.assertEqual(ctx.exception.status, 500)

    def test_empty_choices(self):
        self.session.post.return_value = fake_response(json_data={'choices': []})
        with self.assertRaises(EmptyCompletionError):
            self.client.request_draft('Nordic Brew')

    def test_blank_content(self):
        self.session.post.return_value = fake_response(json_data=completion('   '))
        with self.assertRaises(EmptyCompletionError):
            self.client.request_draft('Nordic Brew')

    def test_non_json_body(self):
        self.session.post.return_value = fake_response(json_error=True)
        with self.assertRaises(MalformedCompletionError):
            self.client.request_draft('Nordic Brew')


class ReviewGeneratorTests(SimpleTestCase):

    def test_template_only_makes_no_network_call(self):
        session = MagicMock()
        generator = ReviewGenerator(TemplateOnly(), session=session)

        draft = generator.generate('Acme', rating=5, language='en')

        self.assertIn(draft, filled(Language.EN, 5, 'Acme'))
        session.post.assert_not_called()

    def test_ai_success_returned_verbatim(self):
        session = MagicMock()
        session.post.return_value = fake_response(json_data=completion('Great coffee and friendly staff.'))
        generator = ReviewGenerator(AI_MODE, session=session)

        self.assertEqual(generator.generate('Acme', rating=5), 'Great coffee and friendly staff.')

    def test_fallback_on_every_failure_kind(self):
        failures = [
            fake_response(status=503),
            fake_response(json_data={'choices': []}),
            fake_response(json_error=True),
            requests.Timeout('timed out'),
            requests.ConnectionError('refused'),
            RuntimeError('unexpected'),
        ]
        for failure in failures:
            session = MagicMock()
            if isinstance(failure, Exception):
                session.post.side_effect = failure
            else:
                session.post.return_value = failure
            generator = ReviewGenerator(AI_MODE, session=session)

            with self.assertLogs('apps.reviews.generator', level='WARNING'):
                draft = generator.generate('Acme', rating=1, language='ro')

            self.assertIn(draft, filled(Language.RO, 1, 'Acme'))
            self.assertEqual(session.post.call_count, 1)

    def test_ai_receives_clamped_rating(self):
        session = MagicMock()
        session.post.return_value = fake_response(json_data=completion('Fine.'))
        ReviewGenerator(AI_MODE, session=session).generate('Acme', rating=7)

        prompt = session.post.call_args.kwargs['json']['messages'][0]['content']
        self.assertIn('Rating: 5 stars', prompt)

    def test_non_numeric_rating_uses_default(self):
        generator = ReviewGenerator(TemplateOnly())
        for rating in (None, 'five', [3]):
            with self.assertLogs('apps.reviews.generator', level='WARNING'):
                draft = generator.generate('Acme', rating=rating, language='en')
            self.assertIn(draft, filled(Language.EN, 5, 'Acme'))

    @override_settings(OPENROUTER_API_KEY='')
    def test_generate_review_uses_settings(self):
        self.assertIn(generate_review('Acme', rating=2, language='en'), filled(Language.EN, 2, 'Acme'))


@override_settings(OPENROUTER_API_KEY='')
class ReviewViewTests(TestCase):

    def setUp(self):
        self.business = Business.objects.create(
            name='Nordic Brew Coffee',
            place_id='ChIJ-test',
            location='Iași, Romania',
        )

    def test_review_page(self):
        response = self.client.get(reverse('reviews:page', args=['nordic-brew-coffee']))
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'Nordic Brew Coffee')
        self.assertIn(response.context['draft'], filled(Language.EN, 5, 'Nordic Brew Coffee'))

    def test_review_page_unknown_slug(self):
        response = self.client.get(reverse('reviews:page', args=['missing']))
        self.assertEqual(response.status_code, 404)

    def test_draft_api(self):
        url = reverse('reviews:draft', args=['nordic-brew-coffee'])
        response = self.client.get(url, {'rating': '1', 'lang': 'ro', 'token': '17'})

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['rating'], 1)
        self.assertEqual(data['language'], 'ro')
        self.assertEqual(data['token'], '17')
        self.assertIn(data['review'], filled(Language.RO, 1, 'Nordic Brew Coffee'))

    def test_draft_api_clamps_rating(self):
        url = reverse('reviews:draft', args=['nordic-brew-coffee'])
        response = self.client.get(url, {'rating': '9'})
        self.assertEqual(response.json()['rating'], 5)

    def test_draft_api_rejects_non_numeric_rating(self):
        url = reverse('reviews:draft', args=['nordic-brew-coffee'])
        response = self.client.get(url, {'rating': 'lots'})
        self.assertEqual(response.status_code, 400)

    @override_settings(OPENROUTER_API_KEY='sk-live')
    @patch('apps.reviews.ai_client.requests.Session.post')
    def test_draft_api_falls_back_when_ai_times_out(self, mock_post):
        mock_post.side_effect = requests.Timeout('timed out')
        url = reverse('reviews:draft', args=['nordic-brew-coffee'])

        response = self.client.get(url, {'rating': '3', 'lang': 'en'})

        self.assertEqual(response.status_code, 200)
        self.assertIn(response.json()['review'], filled(Language.EN, 3, 'Nordic Brew Coffee'))

    def test_google_redirect(self):
        response = self.client.get(reverse('reviews:google', args=['nordic-brew-coffee']))
        self.assertRedirects(
            response,
            'https://search.google.com/local/writereview?placeid=ChIJ-test',
            fetch_redirect_response=False
        )
