from django.http import Http404, JsonResponse
from django.shortcuts import redirect, render
from django.utils import translation
from django.views.decorators.http import require_GET

from apps.businesses.services import get_business_store
from .catalog import Language, resolve_language
from .generator import DEFAULT_RATING, clamp_rating, generate_review


def _get_business_or_404(slug):
    business = get_business_store().get_business_by_slug(slug)
    if business is None:
        raise Http404('Business not found')
    return business


def review_page(request, slug):
    """Public review page: stars, draft, copy button, Google link"""
    business = _get_business_or_404(slug)
    language = resolve_language(request.GET.get('lang') or translation.get_language())

    draft = generate_review(
        business.name,
        location=business.location or None,
        description=business.description or None,
        rating=DEFAULT_RATING,
        language=language,
    )

    return render(request, 'reviews/review_page.html', {
        'business': business,
        'draft': draft,
        'rating': DEFAULT_RATING,
        'language': language,
        'languages': Language.choices,
        'stars': range(1, 6),
        'can_edit': get_business_store().can_edit_business(business.id, request.user),
    })


@require_GET
def draft_api(request, slug):
    """JSON draft for a star rating; the caller's token is echoed back"""
    business = _get_business_or_404(slug)

    try:
        rating = clamp_rating(request.GET.get('rating', DEFAULT_RATING))
    except (TypeError, ValueError):
        return JsonResponse({'error': 'Rating must be a number'}, status=400)

    language = resolve_language(request.GET.get('lang') or translation.get_language())

    review = generate_review(
        business.name,
        location=business.location or None,
        description=business.description or None,
        rating=rating,
        language=language,
    )

    return JsonResponse({
        'review': review,
        'rating': rating,
        'language': language.value,
        'token': request.GET.get('token', ''),
    })


def open_google_review(request, slug):
    business = _get_business_or_404(slug)
    return redirect(business.get_google_review_url())
