from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.shortcuts import get_object_or_404, redirect, render
from django.utils.translation import gettext as _
from django.views.decorators.http import require_POST

from .models import WaitlistEntry
from .services import (
    WaitlistError,
    approve_entry,
    join_waitlist,
    list_entries,
    set_status,
    status_counts,
)


SIGNUP_FIELDS = (
    'email', 'phone_number', 'name', 'business_name', 'business_description', 'business_url', 'message',
)


def signup(request):
    """Waitlist signup form"""
    form_data = {}

    if request.method == 'POST':
        form_data = {field: request.POST.get(field, '') for field in SIGNUP_FIELDS}
        try:
            join_waitlist(form_data)
        except WaitlistError as e:
            messages.error(request, e.message)
        else:
            return render(request, 'waitlist/signup.html', {'submitted': True})

    return render(request, 'waitlist/signup.html', {'form_data': form_data})


def _is_admin(request):
    return request.user.is_admin


@login_required
def admin_waitlist(request):
    if not _is_admin(request):
        return redirect('businesses:index')

    status = request.GET.get('status', 'all')
    query = request.GET.get('q', '')

    return render(request, 'waitlist/admin_list.html', {
        'entries': list_entries(status, query),
        'counts': status_counts(),
        'status': status,
        'query': query,
        'statuses': WaitlistEntry.Status.choices,
        'magic_link': request.session.pop('waitlist_magic_link', None),
    })


@login_required
@require_POST
def approve(request, entry_id):
    """Approve and show the one-time sign-in link to copy"""
    if not _is_admin(request):
        return redirect('businesses:index')

    entry = get_object_or_404(WaitlistEntry, id=entry_id)
    entry, link = approve_entry(entry)

    request.session['waitlist_magic_link'] = {'email': entry.email, 'url': link}
    messages.success(request, _('%(email)s approved. Copy the sign-in link below.') % {'email': entry.email})
    return redirect('waitlist:admin_list')


@login_required
@require_POST
def reject(request, entry_id):
    return _update_status(request, entry_id, WaitlistEntry.Status.REJECTED)


@login_required
@require_POST
def reset(request, entry_id):
    return _update_status(request, entry_id, WaitlistEntry.Status.PENDING)


def _update_status(request, entry_id, status):
    if not _is_admin(request):
        return redirect('businesses:index')

    entry = get_object_or_404(WaitlistEntry, id=entry_id)
    set_status(entry, status)
    messages.success(request, _('Status updated to %(status)s') % {'status': status.label})
    return redirect('waitlist:admin_list')
