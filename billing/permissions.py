"""
Permission classes for the billing API.
"""
from rest_framework.permissions import BasePermission

BILLING_GROUP = "billing"


class IsBillingStaff(BasePermission):
    """Staff users or members of the ``billing`` auth group."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        if not (user and user.is_authenticated):
            return False
        if user.is_staff or user.is_superuser:
            return True
        return user.groups.filter(name=BILLING_GROUP).exists()
