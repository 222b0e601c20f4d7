"""SecurityService -- 安全配置读写与校验

所有方法都是同步的，由请求构建器在线程池中调用。
读方法返回深拷贝，避免任务快照随后续变更漂移。
"""

import structlog
from bosun.core.models import ProblemSet

from . import validators
from .models import AuthnMethod, Security, translate_authn_method_name
from .store import ConfigStore

log = structlog.get_logger()


class SecurityService:
    """部署安全配置服务"""

    def __init__(self, config_store: ConfigStore) -> None:
        self._store = config_store

    def get_security(self, deployment_name: str) -> Security:
        with self._store.lock:
            deployment = self._store.get_deployment(deployment_name)
            return deployment.security.model_copy(deep=True)

    def set_security(self, deployment_name: str, security: Security) -> None:
        with self._store.lock:
            deployment = self._store.get_deployment(deployment_name)
            deployment.security = security
        log.info("security_updated", deployment=deployment_name)

    def get_authn_method(self, deployment_name: str, method_name: str) -> AuthnMethod:
        method_cls = translate_authn_method_name(method_name)
        with self._store.lock:
            authn = self._store.get_deployment(deployment_name).security.authn
            return getattr(authn, method_cls.method_name).model_copy(deep=True)

    def set_authn_method(self, deployment_name: str, method: AuthnMethod) -> None:
        with self._store.lock:
            authn = self._store.get_deployment(deployment_name).security.authn
            setattr(authn, method.method_name, method)
        log.info(
            "authn_method_updated",
            deployment=deployment_name,
            method=method.method_name,
        )

    def set_authn_method_enabled(
        self, deployment_name: str, method_name: str, enabled: bool
    ) -> None:
        method_cls = translate_authn_method_name(method_name)
        with self._store.lock:
            authn = self._store.get_deployment(deployment_name).security.authn
            getattr(authn, method_cls.method_name).enabled = enabled
        log.info(
            "authn_method_toggled",
            deployment=deployment_name,
            method=method_cls.method_name,
            enabled=enabled,
        )

    def validate_security(self, deployment_name: str) -> ProblemSet:
        with self._store.lock:
            security = self._store.get_deployment(deployment_name).security
            return validators.validate_security(security)

    def validate_authn_method(self, deployment_name: str, method_name: str) -> ProblemSet:
        method_cls = translate_authn_method_name(method_name)
        with self._store.lock:
            security = self._store.get_deployment(deployment_name).security
            method = getattr(security.authn, method_cls.method_name)
            return validators.validate_authn_method(method, security)
