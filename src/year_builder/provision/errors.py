"""Errors raised while provisioning a year."""


class ProvisionError(Exception):
    """Base class for provisioning errors."""

    pass


class ConfigurationMissing(ProvisionError):
    """A template entry required by a phase is absent from the configuration."""

    pass


class EntityNotFound(ProvisionError):
    """A referenced table, page or row does not exist in the workspace."""

    pass
