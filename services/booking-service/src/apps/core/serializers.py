"""Booking Service Serializers."""
from rest_framework import serializers
from .models import Booking, MaintenanceWindow


def validate_date_order(data, start_field, end_field, message):
    start, end = data.get(start_field), data.get(end_field)
    if start and end and end <= start:
        raise serializers.ValidationError({end_field: message})
    return data


class RoomLineSerializer(serializers.Serializer):
    room_type_id = serializers.CharField(max_length=64)
    number_of_rooms = serializers.IntegerField(min_value=1, default=1)
    price_per_night = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True
    )


class BookingCreateSerializer(serializers.Serializer):
    check_in = serializers.DateField()
    check_out = serializers.DateField()
    rooms = RoomLineSerializer(many=True, allow_empty=False)

    email = serializers.EmailField(required=False, allow_blank=True, allow_null=True)
    first_name = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    last_name = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True, allow_null=True)

    total_cost = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True
    )
    auto_waitlist = serializers.BooleanField(required=False, default=False)
    waitlist_id = serializers.UUIDField(required=False, allow_null=True)

    def validate(self, data):
        return validate_date_order(
            data, 'check_in', 'check_out', "Check-out must be after check-in"
        )


class BookingUpdateSerializer(serializers.Serializer):
    check_in = serializers.DateField(required=False)
    check_out = serializers.DateField(required=False)
    rooms = RoomLineSerializer(many=True, allow_empty=False, required=False)
    status = serializers.ChoiceField(choices=Booking.Status.choices, required=False)

    def validate(self, data):
        return validate_date_order(
            data, 'check_in', 'check_out', "Check-out must be after check-in"
        )


class WaitlistJoinSerializer(serializers.Serializer):
    email = serializers.EmailField()
    check_in = serializers.DateField()
    check_out = serializers.DateField()
    first_name = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    last_name = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)

    def validate(self, data):
        return validate_date_order(
            data, 'check_in', 'check_out', "Check-out must be after check-in"
        )


class MaintenanceWindowSerializer(serializers.ModelSerializer):
    class Meta:
        model = MaintenanceWindow
        fields = ['start_date', 'end_date', 'description', 'priority', 'status', 'created_by']

    def validate(self, data):
        # Partial updates are checked against the stored window
        if self.instance is not None:
            data = {
                'start_date': data.get('start_date', self.instance.start_date),
                'end_date': data.get('end_date', self.instance.end_date),
                **data,
            }
        return validate_date_order(
            data, 'start_date', 'end_date', "End date must be after start date"
        )
