from rest_framework import permissions

from .models import Role


# Capability constants
class Capabilities:
    VIEW_DASHBOARD = 'view_dashboard'
    VIEW_ORDERS = 'view_orders'
    CREATE_ORDERS = 'create_orders'
    KITCHEN = 'kitchen'
    VIEW_TABLES = 'view_tables'
    MANAGE_TABLES = 'manage_tables'
    MANAGE_MENU = 'manage_menu'
    MANAGE_INVENTORY = 'manage_inventory'
    BILLING = 'billing'
    QR_CODES = 'qr_codes'
    REPORTS = 'reports'
    MANAGE_USERS = 'manage_users'
    MANAGE_SETTINGS = 'manage_settings'


ALL_CAPABILITIES = [
    value for name, value in vars(Capabilities).items() if not name.startswith('_')
]

# Capabilities granted to each role. The only place roles are compared.
CAPABILITIES = {
    Role.SUPER_ADMIN.value: frozenset(ALL_CAPABILITIES),
    Role.OWNER.value: frozenset(ALL_CAPABILITIES),
    Role.MANAGER.value: frozenset([
        Capabilities.VIEW_DASHBOARD, Capabilities.VIEW_ORDERS, Capabilities.CREATE_ORDERS,
        Capabilities.KITCHEN, Capabilities.VIEW_TABLES, Capabilities.MANAGE_TABLES,
        Capabilities.MANAGE_MENU, Capabilities.MANAGE_INVENTORY, Capabilities.BILLING,
        Capabilities.QR_CODES, Capabilities.REPORTS, Capabilities.MANAGE_SETTINGS,
    ]),
    Role.WAITER.value: frozenset([
        Capabilities.VIEW_DASHBOARD, Capabilities.VIEW_ORDERS, Capabilities.CREATE_ORDERS,
        Capabilities.VIEW_TABLES, Capabilities.BILLING,
    ]),
    Role.CHEF.value: frozenset([
        Capabilities.VIEW_DASHBOARD, Capabilities.VIEW_ORDERS, Capabilities.KITCHEN,
    ]),
}


def capabilities_for(user):
    """Sorted capability list for a user, empty for anonymous or inactive users"""
    if user is None or not user.is_authenticated or not user.is_active:
        return []
    if user.is_superuser:
        return sorted(ALL_CAPABILITIES)
    return sorted(CAPABILITIES.get(user.role, frozenset()))


def has_capability(user, capability):
    return capability in capabilities_for(user)


class HasCapability(permissions.BasePermission):
    """
    Permission to check one capability of the signed in user.

    Used as ``permission_classes = [HasCapability.of(Capabilities.BILLING)]``.
    """
    capability = None
    # Alternatively any one of several capabilities
    any_of_capabilities = ()

    def has_permission(self, request, view):
        if self.any_of_capabilities:
            granted = capabilities_for(request.user)
            return any(capability in granted for capability in self.any_of_capabilities)
        return has_capability(request.user, self.capability)

    @classmethod
    def of(cls, capability):
        return type(f'Has_{capability}', (cls,), {'capability': capability})

    @classmethod
    def any_of(cls, *capabilities):
        return type(f"HasAny_{'_'.join(capabilities)}", (cls,), {'any_of_capabilities': capabilities})


class CanManageUsers(HasCapability):
    capability = Capabilities.MANAGE_USERS


class IsSelfOrCanManageUsers(permissions.BasePermission):
    """
    Object permission for user records: staff may read themselves,
    privileged roles may read and change everyone.
    """
    def has_permission(self, request, view):
        return request.user and request.user.is_authenticated

    def has_object_permission(self, request, view, obj):
        if has_capability(request.user, Capabilities.MANAGE_USERS):
            return True
        return obj.pk == request.user.pk and request.method in permissions.SAFE_METHODS


class CapabilityPermissionMixin:
    """
    View mixin: safe methods need ``read_capability`` (or just a signed in
    user when it is None), everything else needs ``write_capability``.
    """
    read_capability = None
    write_capability = None

    def get_permissions(self):
        if self.request.method in permissions.SAFE_METHODS:
            capability = self.read_capability
        else:
            capability = self.write_capability
        if capability is None:
            return [permissions.IsAuthenticated()]
        return [HasCapability.of(capability)()]
