from .notification import Notification
