"""Views for accounts app."""

import logging

from django.shortcuts import render, redirect
from django.contrib.auth import authenticate, login, logout
from django.contrib import messages
from django.utils.http import url_has_allowed_host_and_scheme
from django.utils.translation import gettext as _

from .services.magic_link import resolve_magic_link

logger = logging.getLogger(__name__)


def login_view(request):
    """Handle user login."""
    if request.user.is_authenticated:
        return redirect('businesses:index')

    if request.method == 'POST':
        email = request.POST.get('email', '').strip().lower()
        password = request.POST.get('password', '')

        if not email or not password:
            messages.error(request, _('Enter your email and password'))
        else:
            user = authenticate(request, username=email, password=password)
            if user is not None:
                login(request, user)
                next_url = request.GET.get('next', '/')
                if not url_has_allowed_host_and_scheme(next_url, allowed_hosts={request.get_host()}):
                    next_url = '/'
                return redirect(next_url)
            else:
                messages.error(request, _('Wrong email or password'))

    return render(request, 'accounts/login.html')


def logout_view(request):
    """Handle user logout."""
    logout(request)
    return redirect('businesses:index')


def magic_login(request, uidb64, token):
    """Sign in through a one-time link issued on waitlist approval."""
    user = resolve_magic_link(uidb64, token)
    if user is None:
        messages.error(request, _('This sign-in link is invalid or has already been used'))
        return redirect('accounts:login')

    login(request, user, backend='django.contrib.auth.backends.ModelBackend')
    logger.info(f'User {user.email} signed in with a magic link')
    return redirect('businesses:index')
