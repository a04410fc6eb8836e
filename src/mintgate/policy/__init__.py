"""Collection configuration."""

from mintgate.policy.config import CollectionConfig, OperatorEnvironment, load_environment

__all__ = ["CollectionConfig", "OperatorEnvironment", "load_environment"]
