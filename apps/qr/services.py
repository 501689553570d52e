"""
QR code service for review links.

All QR logic lives here; views stay thin (request/response only).
share_qr_code and copy_review_link take the platform share and clipboard
as callables: the web page gets them from the browser via the link endpoint,
native wrappers pass their own. save_qr_code backs the save endpoint and the
share fallback.
Codes are black on white with the highest error correction level, since they
get printed and scanned by phone cameras in poor light.
"""
import enum
import io
import logging
import re
from typing import Callable, Optional, Union

import qrcode
import qrcode.image.svg
from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from PIL import Image
from qrcode.exceptions import DataOverflowError

logger = logging.getLogger(__name__)

QR_SIZES = (256, 512, 1024)
DEFAULT_QR_SIZE = 512
QR_FORMATS = ('png', 'svg')
QR_BORDER = 2
QR_UPLOAD_DIR = 'qrcodes'

Payload = Union[bytes, str]


class EncodingError(Exception):
    """Target URL does not fit in a QR symbol"""


class ClipboardOrShareUnavailable(Exception):
    """Platform has no clipboard/share capability"""


class ShareCancelled(Exception):
    """User dismissed the share sheet"""


class ShareOutcome(enum.Enum):
    SHARED = 'shared'
    SAVED = 'saved'
    CANCELLED = 'cancelled'


def _validate_size(pixel_size: int) -> int:
    if pixel_size not in QR_SIZES:
        raise ValueError(f'QR size must be one of {", ".join(map(str, QR_SIZES))}')
    return pixel_size


def _make_qr(target_url: str) -> qrcode.QRCode:
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_H,
        box_size=10,
        border=QR_BORDER,
    )
    qr.add_data(target_url)
    try:
        qr.make(fit=True)
    except DataOverflowError as e:
        logger.error(f'QR encoding failed for {len(target_url)} characters: {e}')
        raise EncodingError('The link is too long to fit in a QR code') from e
    return qr


def encode_raster(target_url: str, pixel_size: int = DEFAULT_QR_SIZE) -> Image.Image:
    """
    QR code as a PIL image of exactly pixel_size x pixel_size.

    Scaled with nearest-neighbour resampling so module edges stay sharp.
    """
    _validate_size(pixel_size)
    qr = _make_qr(target_url)
    img = qr.make_image(fill_color='black', back_color='white').get_image()
    img = img.convert('RGB')
    return img.resize((pixel_size, pixel_size), Image.Resampling.NEAREST)


def encode_raster_png(target_url: str, pixel_size: int = DEFAULT_QR_SIZE) -> bytes:
    buffer = io.BytesIO()
    encode_raster(target_url, pixel_size).save(buffer, format='PNG')
    return buffer.getvalue()


def encode_vector(target_url: str, pixel_size: int = DEFAULT_QR_SIZE) -> str:
    """QR code as SVG markup declaring pixel_size width and height"""
    _validate_size(pixel_size)
    qr = _make_qr(target_url)
    img = qr.make_image(image_factory=qrcode.image.svg.SvgPathFillImage)

    # box_size 10 puts path coordinates in module units
    modules = qr.modules_count + 2 * QR_BORDER
    root = img.get_image()
    root.set('width', str(pixel_size))
    root.set('height', str(pixel_size))
    root.set('viewBox', f'0 0 {modules} {modules}')
    return img.to_string(encoding='unicode')


def build_review_url(slug: str, origin: Optional[str] = None) -> str:
    origin = (origin or settings.SITE_URL).rstrip('/')
    return f'{origin}/review/{slug}'


def sanitize_filename(name: str) -> str:
    """'Nordic Brew Coffee!' -> 'nordic-brew-coffee'"""
    return re.sub(r'[^a-z0-9]+', '-', (name or '').lower()).strip('-')


def qr_filename(business_name: str, fmt: str) -> str:
    return f'{sanitize_filename(business_name) or "business"}-qr-code.{fmt}'


def save_qr_code(payload: Payload, business_name: str, fmt: str) -> str:
    """Store the QR file through the default storage; returns the stored name"""
    if isinstance(payload, str):
        payload = payload.encode('utf-8')
    name = default_storage.save(
        f'{QR_UPLOAD_DIR}/{qr_filename(business_name, fmt)}',
        ContentFile(payload),
    )
    logger.info(f'Saved QR code {name}')
    return name


def share_qr_code(
    payload: Payload,
    business_name: str,
    share: Optional[Callable[[Payload, str], None]],
    fmt: str = 'png',
    save: Callable[[Payload, str, str], str] = save_qr_code,
) -> ShareOutcome:
    """
    Hand the QR file to a platform share callable, saving it when sharing
    is unavailable or fails. A cancelled share is not an error and saves nothing.
    """
    if share is None:
        save(payload, business_name, fmt)
        return ShareOutcome.SAVED

    try:
        share(payload, qr_filename(business_name, fmt))
    except ShareCancelled:
        return ShareOutcome.CANCELLED
    except ClipboardOrShareUnavailable:
        save(payload, business_name, fmt)
        return ShareOutcome.SAVED
    except Exception as e:
        logger.warning(f'Sharing QR code for {business_name} failed, saving instead: {e}')
        save(payload, business_name, fmt)
        return ShareOutcome.SAVED

    return ShareOutcome.SHARED


def copy_review_link(slug: str, clipboard: Optional[Callable[[str], None]], origin: Optional[str] = None) -> str:
    """Write the plain review URL to the clipboard callable and return it"""
    if clipboard is None:
        raise ClipboardOrShareUnavailable('Clipboard is not available')
    url = build_review_url(slug, origin)
    clipboard(url)
    return url
