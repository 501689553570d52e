from django.contrib import admin

from .models import Business


@admin.register(Business)
class BusinessAdmin(admin.ModelAdmin):
    list_display = ('name', 'slug', 'location', 'owner', 'created_at')
    search_fields = ('name', 'slug', 'location', 'place_id')
    list_filter = ('created_at',)
    raw_id_fields = ('owner',)
    readonly_fields = ('slug',)
