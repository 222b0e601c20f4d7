"""部署配置文档模型

BosunConfig 是配置文件的内存表示，由 ConfigStore 持有；
请求回调直接修改其中的 Security 子树。
"""

from typing import ClassVar

from pydantic import BaseModel, Field

from .exceptions import UnknownAuthnMethodError


class AuthnMethod(BaseModel):
    """认证方式基类"""

    method_name: ClassVar[str] = ""

    enabled: bool = Field(default=False, description="是否启用")


class OAuth2(AuthnMethod):
    method_name: ClassVar[str] = "oauth2"

    provider: str | None = Field(default=None, description="身份提供方，如 GOOGLE / GITHUB")
    client_id: str | None = Field(default=None)
    client_secret: str | None = Field(default=None)
    user_info_mapping: dict[str, str] = Field(default_factory=dict)


class Saml(AuthnMethod):
    method_name: ClassVar[str] = "saml"

    metadata_url: str | None = Field(default=None, description="IdP 元数据地址")
    issuer_id: str | None = Field(default=None)
    service_address: str | None = Field(default=None)


class Ldap(AuthnMethod):
    method_name: ClassVar[str] = "ldap"

    url: str | None = Field(default=None, description="ldap:// 或 ldaps:// 地址")
    user_dn_pattern: str | None = Field(default=None)
    user_search_base: str | None = Field(default=None)
    user_search_filter: str | None = Field(default=None)


class X509(AuthnMethod):
    method_name: ClassVar[str] = "x509"

    role_oid: str | None = Field(default=None, description="证书中承载角色的 OID")
    subject_principal_regex: str | None = Field(default=None)


AUTHN_METHODS: dict[str, type[AuthnMethod]] = {
    cls.method_name: cls for cls in (OAuth2, Saml, Ldap, X509)
}


def translate_authn_method_name(method_name: str) -> type[AuthnMethod]:
    """路径中的认证方式名 -> 模型类

    Raises:
        UnknownAuthnMethodError: 名称未知
    """
    cls = AUTHN_METHODS.get(method_name.lower())
    if cls is None:
        raise UnknownAuthnMethodError(method_name, sorted(AUTHN_METHODS))
    return cls


class Authn(BaseModel):
    oauth2: OAuth2 = Field(default_factory=OAuth2)
    saml: Saml = Field(default_factory=Saml)
    ldap: Ldap = Field(default_factory=Ldap)
    x509: X509 = Field(default_factory=X509)

    def methods(self) -> list[AuthnMethod]:
        return [getattr(self, name) for name in AUTHN_METHODS]

    @property
    def enabled(self) -> bool:
        return any(method.enabled for method in self.methods())


class ApiSecurity(BaseModel):
    ssl_enabled: bool = Field(default=False)
    override_base_url: str | None = Field(default=None)


class UiSecurity(BaseModel):
    ssl_enabled: bool = Field(default=False)
    override_base_url: str | None = Field(default=None)


class Security(BaseModel):
    """部署的安全配置"""

    api_security: ApiSecurity = Field(default_factory=ApiSecurity)
    ui_security: UiSecurity = Field(default_factory=UiSecurity)
    authn: Authn = Field(default_factory=Authn)


class DeploymentConfiguration(BaseModel):
    name: str = Field(description="部署名称")
    version: str = Field(default="", description="目标版本")
    security: Security = Field(default_factory=Security)


class BosunConfig(BaseModel):
    """配置文件根文档"""

    current_deployment: str = Field(default="default")
    deployment_configurations: list[DeploymentConfiguration] = Field(
        default_factory=list
    )
