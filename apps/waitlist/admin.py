from django.contrib import admin

from .models import WaitlistEntry


@admin.register(WaitlistEntry)
class WaitlistEntryAdmin(admin.ModelAdmin):
    list_display = ('email', 'name', 'business_name', 'status', 'created_at')
    list_filter = ('status',)
    search_fields = ('email', 'name', 'business_name')
    readonly_fields = ('created_at', 'updated_at')
