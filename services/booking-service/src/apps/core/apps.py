from django.apps import AppConfig


class CoreConfig(AppConfig):
    """Bookings, room lines, maintenance windows and the waitlist."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.core'
    label = 'booking'
    verbose_name = 'Booking Availability'
