import uuid
from django.db import models
from django.utils.translation import gettext_lazy as _


class WaitlistEntry(models.Model):
    """Request for access from a business owner"""

    class Status(models.TextChoices):
        PENDING = 'pending', _('Pending')
        APPROVED = 'approved', _('Approved')
        REJECTED = 'rejected', _('Rejected')

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField('Email', unique=True)
    phone_number = models.CharField('Phone', max_length=50)
    name = models.CharField('Name', max_length=200)
    business_name = models.CharField('Business name', max_length=200)
    business_description = models.TextField('Business description')
    business_url = models.CharField('Business website', max_length=500)
    message = models.TextField('Message', blank=True)

    status = models.CharField(
        'Status',
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True
    )

    created_at = models.DateTimeField('Created', auto_now_add=True)
    updated_at = models.DateTimeField('Updated', auto_now=True)

    class Meta:
        verbose_name = 'Waitlist entry'
        verbose_name_plural = 'Waitlist'
        ordering = ['-created_at']

    def __str__(self):
        return f'{self.email} ({self.business_name})'
