from rest_framework import permissions

from bikerental.users.permissions import CanManageVehicles


class IsBookingOwnerOrStaff(permissions.BasePermission):
    """Bookings (and their payments) are visible to the renter and staff only."""
    def has_object_permission(self, request, view, obj):
        user = request.user
        if user.is_staff:
            return True
        owner_id = getattr(obj, "user_id", None)
        if owner_id is None and hasattr(obj, "booking"):
            owner_id = obj.booking.user_id
        return owner_id == getattr(user, "id", None)


class IsVerificationOwner(permissions.BasePermission):
    def has_object_permission(self, request, view, obj):
        return obj.user_id == getattr(request.user, "id", None)


class CanManageVehiclesOrReadOnly(CanManageVehicles):
    """Catalog reads are public; writes need the manage_vehicles permission."""
    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return True
        return super().has_permission(request, view)
