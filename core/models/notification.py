from django.db import models


class Notification(models.Model):
    """In-app notification written by the engine (low stock, payments).

    ``key`` groups notifications about the same subject so repeated alerts
    can be debounced, e.g. ``low_stock:42``.
    """

    class Level(models.TextChoices):
        INFO = "info", "Info"
        SUCCESS = "success", "Success"
        WARNING = "warning", "Warning"
        ERROR = "error", "Error"

    title = models.CharField(max_length=255)
    message = models.TextField()
    level = models.CharField(max_length=10, choices=Level.choices, default=Level.INFO)

    key = models.CharField(max_length=120, blank=True, default="", db_index=True)
    action_url = models.CharField(max_length=255, blank=True, default="")
    action_label = models.CharField(max_length=80, blank=True, default="")

    read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [models.Index(fields=["key", "created_at"])]

    def __str__(self):
        return self.title
