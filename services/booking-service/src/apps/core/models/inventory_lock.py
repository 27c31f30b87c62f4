# services/booking-service/src/apps/core/models/inventory_lock.py
"""
Inventory Lock Model

Row-level lock serializing availability checks and booking writes
for one room type of one hotel.
"""

from django.db import models, IntegrityError, transaction


class InventoryLock(models.Model):
    """Lock row per (hotel, room type). Must be acquired inside a transaction."""

    hotel_id = models.CharField(max_length=64)
    room_type_id = models.CharField(max_length=64)

    class Meta:
        db_table = 'inventory_locks'
        constraints = [
            models.UniqueConstraint(
                fields=['hotel_id', 'room_type_id'],
                name='inventory_lock_unique_room_type',
            ),
        ]

    def __str__(self):
        return f"Lock {self.hotel_id}/{self.room_type_id}"

    @classmethod
    def acquire(cls, hotel_id: str, room_type_id: str) -> 'InventoryLock':
        """Lock the row for update, creating it on first use."""
        try:
            with transaction.atomic():
                cls.objects.get_or_create(hotel_id=hotel_id, room_type_id=room_type_id)
        except IntegrityError:
            # Created concurrently by another writer
            pass

        return cls.objects.select_for_update().get(
            hotel_id=hotel_id,
            room_type_id=room_type_id,
        )

    @classmethod
    def acquire_all(cls, hotel_id: str, room_type_ids) -> list:
        """Lock several room types in a stable order to avoid deadlocks."""
        return [cls.acquire(hotel_id, rt) for rt in sorted(set(room_type_ids))]
