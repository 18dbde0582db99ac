from django.contrib import admin

from core.models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("created_at", "level", "title", "key", "read")
    list_filter = ("level", "read")
    search_fields = ("title", "message", "key")
    readonly_fields = ("title", "message", "level", "key", "action_url", "action_label", "created_at")

    actions = ["mark_read"]

    @admin.action(description="Mark as read")
    def mark_read(self, request, queryset):
        updated = queryset.filter(read=False).update(read=True)
        self.message_user(request, f"{updated} notification(s) marked as read.")
