import uuid
from django.db import models
from django.utils import timezone
from django.utils.text import slugify
from unidecode import unidecode

GOOGLE_WRITE_REVIEW_URL = 'https://search.google.com/local/writereview?placeid={place_id}'

DESCRIPTION_MAX_LENGTH = 500


def make_slug(name: str) -> str:
    """URL slug from a business name: 'Scorpions Kick Boxing Iași' -> 'scorpions-kick-boxing-iasi'"""
    return slugify(unidecode(name or ''))[:100]


class Business(models.Model):
    """Business that collects Google reviews through its review link"""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField('Name', max_length=200)
    slug = models.SlugField('URL', max_length=100, unique=True)
    place_id = models.CharField(
        'Google Place ID',
        max_length=255,
        help_text='Used for the Google "write a review" link'
    )
    location = models.CharField('Location', max_length=255, blank=True)
    description = models.TextField('Description', blank=True)

    owner = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        related_name='businesses',
        verbose_name='Owner',
        blank=True,
        null=True
    )

    # Not auto_now_add: migrated records keep their original timestamp
    created_at = models.DateTimeField('Created', default=timezone.now, db_index=True)

    class Meta:
        verbose_name = 'Business'
        verbose_name_plural = 'Businesses'
        ordering = ['-created_at']

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = make_slug(self.name)
        super().save(*args, **kwargs)

    def get_review_path(self):
        """Path of the public review page"""
        return f'/review/{self.slug}'

    def get_google_review_url(self):
        """Google 'write a review' page for this place"""
        return GOOGLE_WRITE_REVIEW_URL.format(place_id=self.place_id)

    def to_record(self) -> dict:
        """Plain dict used by the local JSON store"""
        return {
            'id': str(self.id),
            'name': self.name,
            'slug': self.slug,
            'place_id': self.place_id,
            'location': self.location or None,
            'description': self.description or None,
            'owner_id': str(self.owner_id) if self.owner_id else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
