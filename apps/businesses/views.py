from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.http import JsonResponse
from django.shortcuts import redirect, render
from django.utils.translation import gettext as _
from django.views.decorators.http import require_POST

from .models import DESCRIPTION_MAX_LENGTH
from .services import BusinessError, get_business_store


def index(request):
    """Business list, newest first"""
    store = get_business_store()
    return render(request, 'businesses/index.html', {
        'businesses': store.get_all_businesses(),
    })


@login_required
def add_business(request):
    """Add-business form; the signed-in user becomes the owner"""
    form_data = {}

    if request.method == 'POST':
        form_data = {
            'name': request.POST.get('name', ''),
            'place_id': request.POST.get('place_id', ''),
            'location': request.POST.get('location', ''),
            'description': request.POST.get('description', ''),
        }
        store = get_business_store()
        try:
            business_id = store.add_business({**form_data, 'owner': request.user})
        except BusinessError as e:
            messages.error(request, e.message)
        else:
            business = store.get_business(business_id)
            messages.success(request, _('Business added'))
            if business is not None:
                return redirect('reviews:page', slug=business.slug)
            return redirect('businesses:index')

    return render(request, 'businesses/add.html', {
        'form_data': form_data,
        'description_max_length': DESCRIPTION_MAX_LENGTH,
    })


@require_POST
def edit_description(request, business_id):
    """Update a business description (owner or admin)"""
    store = get_business_store()

    if not store.can_edit_business(business_id, request.user):
        return JsonResponse({'error': _('You cannot edit this business')}, status=403)

    try:
        store.update_business_description(business_id, request.POST.get('description', ''))
    except BusinessError as e:
        return JsonResponse({'error': e.message}, status=e.status)

    business = store.get_business(business_id)
    return JsonResponse({
        'success': True,
        'description': business.description if business else '',
    })


@login_required
def admin_businesses(request):
    """Admin table of all businesses"""
    if not request.user.is_admin:
        return redirect('businesses:index')

    store = get_business_store()
    return render(request, 'businesses/admin_list.html', {
        'businesses': store.get_all_businesses(),
    })


@login_required
@require_POST
def admin_delete_business(request, business_id):
    if not request.user.is_admin:
        return redirect('businesses:index')

    store = get_business_store()
    business = store.get_business(business_id)
    try:
        store.delete_business(business_id)
    except BusinessError as e:
        messages.error(request, e.message)
    else:
        messages.success(request, _('%(name)s deleted') % {'name': business.name})

    return redirect('businesses:admin_list')
