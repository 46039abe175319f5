from rest_framework import permissions

from .models import user_has_backoffice_permission


class BackOfficePermission(permissions.BasePermission):
    """
    Grants access when the user's admin role carries `required_permission`.
    Subclass and set `required_permission`.
    """
    required_permission = 'all'
    message = 'Access denied. Admin privileges required.'

    def has_permission(self, request, view):
        return user_has_backoffice_permission(request.user, self.required_permission)


class CanManageVehicles(BackOfficePermission):
    required_permission = 'manage_vehicles'


class CanViewPayments(BackOfficePermission):
    required_permission = 'view_payments'


class CanViewDashboard(BackOfficePermission):
    required_permission = 'view_dashboard'
