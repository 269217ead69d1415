"""Deployment configuration and factory"""

from .config import ArbiterType, ScarcityFeeConfig, BehodlerConfig, DeploymentConfig

__all__ = ["ArbiterType", "ScarcityFeeConfig", "BehodlerConfig", "DeploymentConfig"]
