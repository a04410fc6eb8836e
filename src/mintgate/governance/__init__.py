"""Collection governance — owner capability and privileged mutators."""

from mintgate.governance.admin import AdminAuthority, AdminCapability, AdministrativeGateway

__all__ = ["AdminAuthority", "AdminCapability", "AdministrativeGateway"]
