"""Bosun Config -- 文件持久化的部署配置与安全配置服务"""

from .exceptions import (
    ConfigError,
    ConfigDiscardedError,
    ConfigLoadError,
    DeploymentNotFoundError,
    UnknownAuthnMethodError,
)
from .models import (
    AUTHN_METHODS,
    ApiSecurity,
    Authn,
    AuthnMethod,
    BosunConfig,
    DeploymentConfiguration,
    Ldap,
    OAuth2,
    Saml,
    Security,
    UiSecurity,
    X509,
    translate_authn_method_name,
)
from .security_service import SecurityService
from .store import ConfigStore

__all__ = [
    # 存储
    "ConfigStore",
    "SecurityService",
    # 模型
    "BosunConfig",
    "DeploymentConfiguration",
    "Security",
    "ApiSecurity",
    "UiSecurity",
    "Authn",
    "AuthnMethod",
    "OAuth2",
    "Saml",
    "Ldap",
    "X509",
    "AUTHN_METHODS",
    "translate_authn_method_name",
    # 异常
    "ConfigError",
    "ConfigDiscardedError",
    "ConfigLoadError",
    "DeploymentNotFoundError",
    "UnknownAuthnMethodError",
]
