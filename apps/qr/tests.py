"""Tests for QR code generation, sharing helpers and QR views."""

import io
import re
import tempfile
import xml.etree.ElementTree as ET
from pathlib import Path
from unittest.mock import MagicMock

import zxingcpp
from django.test import SimpleTestCase, TestCase, override_settings
from django.urls import reverse
from PIL import Image, ImageDraw

from apps.accounts.models import User
from apps.businesses.models import Business
from .services import (
    QR_BORDER,
    QR_SIZES,
    ClipboardOrShareUnavailable,
    EncodingError,
    ShareCancelled,
    ShareOutcome,
    build_review_url,
    copy_review_link,
    encode_raster,
    encode_raster_png,
    encode_vector,
    qr_filename,
    sanitize_filename,
    save_qr_code,
    share_qr_code,
)

REVIEW_URL = 'https://reviewpasta.test/review/nordic-brew-coffee'
SAMPLE_URL = 'https://example.com/review/acme'

SQUARE = re.compile(r'M([\d.]+),([\d.]+)H([\d.]+)V([\d.]+)H[\d.]+z')


def svg_squares(markup):
    """Dark module squares of an SVG path as (x0, y0, x1, y1) in viewBox units"""
    root = ET.fromstring(markup)
    d = ''.join(el.get('d', '') for el in root.iter() if el.tag.endswith('path'))
    return [tuple(float(v) for v in m) for m in SQUARE.findall(d)]


def rasterize_svg(markup, scale=8):
    root = ET.fromstring(markup)
    extent = float(root.get('viewBox').split()[2])
    img = Image.new('RGB', (int(extent * scale),) * 2, 'white')
    draw = ImageDraw.Draw(img)
    for x0, y0, x1, y1 in svg_squares(markup):
        draw.rectangle([x0 * scale, y0 * scale, x1 * scale - 1, y1 * scale - 1], fill='black')
    return img


class EncoderTests(SimpleTestCase):

    def test_raster_exact_size(self):
        for size in QR_SIZES:
            img = encode_raster(REVIEW_URL, size)
            self.assertEqual(img.size, (size, size))

    def test_raster_black_on_white(self):
        img = encode_raster(REVIEW_URL, 256)
        colors = {color for _, color in img.getcolors()}
        self.assertEqual(colors, {(0, 0, 0), (255, 255, 255)})
        # Quiet zone corner is white
        self.assertEqual(img.getpixel((0, 0)), (255, 255, 255))

    def test_png_bytes(self):
        payload = encode_raster_png(REVIEW_URL, 512)
        self.assertTrue(payload.startswith(b'\x89PNG'))
        self.assertEqual(Image.open(io.BytesIO(payload)).size, (512, 512))

    def test_vector_declares_size(self):
        markup = encode_vector(REVIEW_URL, 1024)
        root = ET.fromstring(markup)
        self.assertTrue(root.tag.endswith('svg'))
        self.assertEqual(root.get('width'), '1024')
        self.assertEqual(root.get('height'), '1024')
        self.assertIn('path', markup)

    def test_invalid_size(self):
        with self.assertRaises(ValueError):
            encode_raster(REVIEW_URL, 300)
        with self.assertRaises(ValueError):
            encode_vector(REVIEW_URL, 0)

    def test_overflow_raises_encoding_error(self):
        with self.assertRaises(EncodingError):
            encode_raster('https://example.com/' + 'x' * 3000, 256)

    def test_raster_decodes_to_url(self):
        for url in (SAMPLE_URL, REVIEW_URL):
            for size in QR_SIZES:
                result = zxingcpp.read_barcode(encode_raster(url, size))
                self.assertIsNotNone(result, f'{url} at {size}px')
                self.assertEqual(result.text, url)

    def test_vector_geometry_matches_view_box(self):
        markup = encode_vector(SAMPLE_URL, 512)
        root = ET.fromstring(markup)
        _, _, width, height = root.get('viewBox').split()
        self.assertEqual(width, height)
        extent = int(width)

        squares = svg_squares(markup)
        self.assertTrue(squares)
        # dark modules sit inside the quiet zone on every side
        self.assertEqual(min(s[0] for s in squares), QR_BORDER)
        self.assertEqual(min(s[1] for s in squares), QR_BORDER)
        self.assertEqual(max(s[2] for s in squares), extent - QR_BORDER)
        self.assertEqual(max(s[3] for s in squares), extent - QR_BORDER)
        for x0, y0, x1, y1 in squares:
            self.assertEqual((x1 - x0, y1 - y0), (1, 1))

    def test_vector_decodes_to_url(self):
        for size in QR_SIZES:
            result = zxingcpp.read_barcode(rasterize_svg(encode_vector(SAMPLE_URL, size)))
            self.assertIsNotNone(result, f'svg at {size}px')
            self.assertEqual(result.text, SAMPLE_URL)


class LinkAndFilenameTests(SimpleTestCase):

    def test_build_review_url(self):
        self.assertEqual(
            build_review_url('nordic-brew-coffee', 'https://reviewpasta.test/'),
            REVIEW_URL
        )

    @override_settings(SITE_URL='https://site.test')
    def test_build_review_url_default_origin(self):
        self.assertEqual(build_review_url('cafe'), 'https://site.test/review/cafe')

    def test_sanitize_filename(self):
        self.assertEqual(sanitize_filename('Nordic Brew Coffee!'), 'nordic-brew-coffee')
        self.assertEqual(sanitize_filename('  --Café & Bar--  '), 'caf-bar')
        self.assertEqual(qr_filename('Nordic Brew Coffee!', 'svg'), 'nordic-brew-coffee-qr-code.svg')


class ShareTests(SimpleTestCase):

    def setUp(self):
        self.save = MagicMock(return_value='qrcodes/x.png')

    def test_shared(self):
        share = MagicMock()
        outcome = share_qr_code(b'png', 'Nordic Brew', share, save=self.save)

        self.assertEqual(outcome, ShareOutcome.SHARED)
        share.assert_called_once_with(b'png', 'nordic-brew-qr-code.png')
        self.save.assert_not_called()

    def test_no_share_capability_saves(self):
        self.assertEqual(share_qr_code(b'png', 'Nordic Brew', None, save=self.save), ShareOutcome.SAVED)
        self.save.assert_called_once_with(b'png', 'Nordic Brew', 'png')

    def test_unavailable_saves(self):
        share = MagicMock(side_effect=ClipboardOrShareUnavailable())
        self.assertEqual(share_qr_code(b'png', 'Nordic Brew', share, save=self.save), ShareOutcome.SAVED)
        self.save.assert_called_once()

    def test_cancelled_is_not_an_error(self):
        share = MagicMock(side_effect=ShareCancelled())
        self.assertEqual(share_qr_code(b'png', 'Nordic Brew', share, save=self.save), ShareOutcome.CANCELLED)
        self.save.assert_not_called()

    def test_other_failure_saves(self):
        share = MagicMock(side_effect=OSError('broken pipe'))
        self.assertEqual(share_qr_code(b'png', 'Nordic Brew', share, save=self.save), ShareOutcome.SAVED)

    def test_copy_review_link(self):
        clipboard = MagicMock()
        url = copy_review_link('nordic-brew-coffee', clipboard, origin='https://reviewpasta.test')

        self.assertEqual(url, REVIEW_URL)
        clipboard.assert_called_once_with(REVIEW_URL)

    def test_copy_without_clipboard(self):
        with self.assertRaises(ClipboardOrShareUnavailable):
            copy_review_link('nordic-brew-coffee', None)

    def test_save_qr_code_to_storage(self):
        with tempfile.TemporaryDirectory() as media_root:
            with override_settings(MEDIA_ROOT=media_root):
                name = save_qr_code('<svg/>', 'Nordic Brew', 'svg')
                self.assertTrue(name.startswith('qrcodes/nordic-brew-qr-code'))
                self.assertTrue(name.endswith('.svg'))


class QRViewTests(TestCase):

    def setUp(self):
        Business.objects.create(name='Nordic Brew Coffee', place_id='p1')

    def test_png(self):
        response = self.client.get(reverse('qr:image', args=['nordic-brew-coffee']), {'size': '256'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response['Content-Type'], 'image/png')
        self.assertEqual(Image.open(io.BytesIO(response.content)).size, (256, 256))

    def test_svg_download(self):
        response = self.client.get(
            reverse('qr:image', args=['nordic-brew-coffee']),
            {'format': 'svg', 'download': '1'}
        )
        self.assertEqual(response['Content-Type'], 'image/svg+xml')
        self.assertEqual(
            response['Content-Disposition'],
            'attachment; filename="nordic-brew-coffee-qr-code.svg"'
        )

    def test_invalid_params(self):
        url = reverse('qr:image', args=['nordic-brew-coffee'])
        self.assertEqual(self.client.get(url, {'size': '300'}).status_code, 400)
        self.assertEqual(self.client.get(url, {'size': 'big'}).status_code, 400)
        self.assertEqual(self.client.get(url, {'format': 'gif'}).status_code, 400)

    def test_unknown_business(self):
        response = self.client.get(reverse('qr:image', args=['missing']))
        self.assertEqual(response.status_code, 404)

    def test_review_link(self):
        response = self.client.get(reverse('qr:link', args=['nordic-brew-coffee']))
        self.assertEqual(response.json(), {'url': 'http://testserver/review/nordic-brew-coffee'})

    def test_png_decodes_to_review_page(self):
        response = self.client.get(reverse('qr:image', args=['nordic-brew-coffee']))
        result = zxingcpp.read_barcode(Image.open(io.BytesIO(response.content)))
        self.assertEqual(result.text, 'http://testserver/review/nordic-brew-coffee')

    def test_save_requires_login(self):
        response = self.client.post(reverse('qr:save', args=['nordic-brew-coffee']))
        self.assertEqual(response.status_code, 302)

    def test_save_stores_file(self):
        user = User.objects.create_user(email='owner@example.com', password='pass12345')
        self.client.force_login(user)

        with tempfile.TemporaryDirectory() as media_root:
            with override_settings(MEDIA_ROOT=media_root):
                response = self.client.post(
                    reverse('qr:save', args=['nordic-brew-coffee']),
                    {'format': 'svg', 'size': '512'}
                )
                self.assertEqual(response.status_code, 200)
                name = response.json()['name']
                self.assertTrue(name.startswith('qrcodes/nordic-brew-coffee-qr-code'))
                self.assertTrue((Path(media_root) / name).exists())

        response = self.client.post(reverse('qr:save', args=['nordic-brew-coffee']), {'size': '300'})
        self.assertEqual(response.status_code, 400)
