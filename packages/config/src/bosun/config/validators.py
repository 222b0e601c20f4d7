"""安全配置校验器

每个校验器只读取配置并产出 ProblemSet，不修改任何状态。
"""

from urllib.parse import urlparse

from bosun.core.models import ProblemSet, Severity

from .models import AuthnMethod, Ldap, OAuth2, Saml, Security, X509

_AUTHN_LOCATION = "security.authn"


def _location(method: AuthnMethod) -> str:
    return f"{_AUTHN_LOCATION}.{method.method_name}"


def validate_oauth2(method: OAuth2) -> ProblemSet:
    problems = ProblemSet()
    if not method.enabled:
        return problems
    location = _location(method)
    if not method.client_id:
        problems.add(
            Severity.ERROR,
            "OAuth2 is enabled but no client id is configured.",
            remediation="Set the client id issued by your identity provider.",
            location=location,
        )
    if not method.client_secret:
        problems.add(
            Severity.ERROR,
            "OAuth2 is enabled but no client secret is configured.",
            location=location,
        )
    if not method.provider:
        problems.add(
            Severity.WARNING,
            "No OAuth2 provider is set; user info mapping must be configured manually.",
            location=location,
            options=["GOOGLE", "GITHUB", "AZURE", "ORACLE", "OTHER"],
        )
    return problems


def validate_saml(method: Saml) -> ProblemSet:
    problems = ProblemSet()
    if not method.enabled:
        return problems
    location = _location(method)
    if not method.metadata_url:
        problems.add(
            Severity.ERROR,
            "SAML is enabled but no metadata URL is configured.",
            location=location,
        )
    elif urlparse(method.metadata_url).scheme not in ("http", "https"):
        problems.add(
            Severity.ERROR,
            f"SAML metadata URL {method.metadata_url} must use http or https.",
            location=location,
        )
    if not method.issuer_id:
        problems.add(
            Severity.ERROR,
            "SAML is enabled but no issuer id is configured.",
            location=location,
        )
    return problems


def validate_ldap(method: Ldap) -> ProblemSet:
    problems = ProblemSet()
    if not method.enabled:
        return problems
    location = _location(method)
    if not method.url:
        problems.add(
            Severity.ERROR,
            "LDAP is enabled but no server URL is configured.",
            location=location,
        )
    elif urlparse(method.url).scheme not in ("ldap", "ldaps"):
        problems.add(
            Severity.ERROR,
            f"LDAP URL {method.url} must use the ldap or ldaps scheme.",
            remediation="Use a URL such as ldaps://ldap.example.com:636/dc=example,dc=com",
            location=location,
        )
    if not method.user_dn_pattern and not method.user_search_filter:
        problems.add(
            Severity.WARNING,
            "Neither a user DN pattern nor a user search filter is configured; "
            "users will not be able to log in.",
            location=location,
        )
    return problems


def validate_x509(method: X509) -> ProblemSet:
    problems = ProblemSet()
    if method.enabled and not method.role_oid:
        problems.add(
            Severity.WARNING,
            "x509 is enabled without a role OID; roles will not be read from certificates.",
            location=_location(method),
        )
    return problems


_METHOD_VALIDATORS = {
    OAuth2: validate_oauth2,
    Saml: validate_saml,
    Ldap: validate_ldap,
    X509: validate_x509,
}


def validate_authn_method(method: AuthnMethod, security: Security) -> ProblemSet:
    """校验单个认证方式，外加与整体安全配置相关的检查"""
    problems = _METHOD_VALIDATORS[type(method)](method)
    if method.enabled and not security.ui_security.override_base_url:
        problems.add(
            Severity.WARNING,
            f"{method.method_name} is enabled but the UI base URL is not overridden; "
            "redirects after login may point at the wrong host.",
            location="security.ui_security.override_base_url",
        )
    return problems


def validate_security(security: Security) -> ProblemSet:
    problems = ProblemSet()
    authn = security.authn
    for method in authn.methods():
        problems.extend(_METHOD_VALIDATORS[type(method)](method))

    if authn.enabled and not security.ui_security.override_base_url:
        problems.add(
            Severity.WARNING,
            "Authentication is enabled but the UI base URL is not overridden; "
            "redirects after login may point at the wrong host.",
            location="security.ui_security.override_base_url",
        )

    if authn.oauth2.enabled and authn.saml.enabled:
        problems.add(
            Severity.FATAL,
            "OAuth2 and SAML cannot be enabled at the same time.",
            remediation="Disable one of the two login flows.",
            location=_AUTHN_LOCATION,
        )
    return problems
