from rest_framework import permissions


class IsCanteenStaff(permissions.BasePermission):
    """Kitchen and counter staff: drive order transitions."""

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_staff)


class IsCanteenAdmin(permissions.BasePermission):
    """Canteen administrators: campaigns, menu, revenue, opening state."""

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_superuser)


class ReadOnlyOrCanteenAdmin(permissions.BasePermission):
    """Anyone may read, only administrators may write."""

    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return True
        return IsCanteenAdmin().has_permission(request, view)
