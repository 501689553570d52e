from django.contrib.auth.mixins import LoginRequiredMixin
from django.core.files.storage import default_storage
from django.http import Http404, HttpResponse, JsonResponse
from django.views import View

from apps.businesses.services import get_business_store
from .services import (
    DEFAULT_QR_SIZE,
    QR_FORMATS,
    EncodingError,
    build_review_url,
    encode_raster_png,
    encode_vector,
    qr_filename,
    save_qr_code,
)

CONTENT_TYPES = {
    'png': 'image/png',
    'svg': 'image/svg+xml',
}


def _get_business_or_404(slug):
    business = get_business_store().get_business_by_slug(slug)
    if business is None:
        raise Http404('Business not found')
    return business


def _origin(request):
    return f'{request.scheme}://{request.get_host()}'


class QRImageView(View):
    """QR code image of a business review link"""

    def get(self, request, slug):
        business = _get_business_or_404(slug)

        try:
            size = int(request.GET.get('size', DEFAULT_QR_SIZE))
        except ValueError:
            return JsonResponse({'error': 'Size must be a number'}, status=400)

        fmt = request.GET.get('format', 'png').lower()
        if fmt not in QR_FORMATS:
            return JsonResponse({'error': 'Format must be png or svg'}, status=400)

        url = build_review_url(business.slug, _origin(request))
        try:
            if fmt == 'svg':
                payload = encode_vector(url, size)
            else:
                payload = encode_raster_png(url, size)
        except (ValueError, EncodingError) as e:
            return JsonResponse({'error': str(e)}, status=400)

        response = HttpResponse(payload, content_type=CONTENT_TYPES[fmt])
        if request.GET.get('download'):
            filename = qr_filename(business.name, fmt)
            response['Content-Disposition'] = f'attachment; filename="{filename}"'
        return response


class ReviewLinkView(View):
    """Plain review URL for the copy-link button"""

    def get(self, request, slug):
        business = _get_business_or_404(slug)
        return JsonResponse({'url': build_review_url(business.slug, _origin(request))})


class QRSaveView(LoginRequiredMixin, View):
    """Store the QR file in media storage and return where it landed"""

    def post(self, request, slug):
        business = _get_business_or_404(slug)

        fmt = request.POST.get('format', 'png').lower()
        if fmt not in QR_FORMATS:
            return JsonResponse({'error': 'Format must be png or svg'}, status=400)

        url = build_review_url(business.slug, _origin(request))
        try:
            size = int(request.POST.get('size', DEFAULT_QR_SIZE))
            payload = encode_vector(url, size) if fmt == 'svg' else encode_raster_png(url, size)
        except (ValueError, EncodingError) as e:
            return JsonResponse({'error': str(e)}, status=400)

        name = save_qr_code(payload, business.name, fmt)
        return JsonResponse({'name': name, 'url': default_storage.url(name)})
