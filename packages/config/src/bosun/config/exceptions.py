"""配置层异常体系"""


class ConfigError(Exception):
    """配置层基础异常"""


class ConfigLoadError(ConfigError):
    """配置文件无法读取或解析"""

    def __init__(self, path: str, original_error: Exception) -> None:
        super().__init__(f"Unable to load config from {path}: {original_error}")
        self.path = path
        self.original_error = original_error


class DeploymentNotFoundError(ConfigError):
    """部署不存在"""

    def __init__(self, deployment_name: str) -> None:
        super().__init__(f"Deployment {deployment_name} does not exist")
        self.deployment_name = deployment_name


class UnknownAuthnMethodError(ConfigError):
    """未知的认证方式名"""

    def __init__(self, method_name: str, known: list[str]) -> None:
        super().__init__(
            f"Unknown authentication method {method_name}; "
            f"expected one of {', '.join(known)}"
        )
        self.method_name = method_name


class ConfigDiscardedError(ConfigError):
    """保存时内存中的配置已被丢弃（另一任务的回滚插入在变更与保存之间）"""

    def __init__(self, path: str) -> None:
        super().__init__(
            f"Unsaved changes to {path} were discarded before they could be saved"
        )
        self.path = path
