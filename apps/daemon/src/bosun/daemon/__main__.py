"""CLI 入口模块 -- python -m bosun.daemon <command>

支持的命令：
  serve                 启动 HTTP 服务（BOSUN_HOST / BOSUN_PORT）
  check <deployment>    校验指定部署的安全配置并打印问题
"""

import os
import sys

from bosun.config import ConfigError, ConfigStore, SecurityService
from bosun.core.config import load_daemon_config


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print("用法: python -m bosun.daemon <command>")
        print("命令:")
        print("  serve                 启动 HTTP 服务")
        print("  check <deployment>    校验部署的安全配置")
        sys.exit(1)

    command = sys.argv[1]

    if command == "serve":
        serve()
    elif command == "check" and len(sys.argv) == 3:
        sys.exit(check(sys.argv[2]))
    else:
        print(f"未知命令: {' '.join(sys.argv[1:])}")
        print("可用命令: serve, check <deployment>")
        sys.exit(1)


def serve() -> None:
    import uvicorn

    uvicorn.run(
        "bosun.daemon.main:app",
        host=os.environ.get("BOSUN_HOST", "127.0.0.1"),
        port=int(os.environ.get("BOSUN_PORT", "8064")),
    )


def check(deployment_name: str) -> int:
    """同步执行一次校验，存在达到拒绝阈值的问题时返回 1"""
    config = load_daemon_config()
    service = SecurityService(ConfigStore(config.config_path))

    print(f"配置文件: {config.config_path}")
    try:
        problems = service.validate_security(deployment_name)
    except ConfigError as e:
        print(f"错误: {e}")
        return 2

    reported = problems.filter_by_severity(config.default_severity)
    for problem in reported.problems:
        location = f" [{problem.location}]" if problem.location else ""
        print(f"{problem.severity.value}{location}: {problem.message}")
        if problem.remediation:
            print(f"    修复建议: {problem.remediation}")
    print(f"共 {len(reported)} 个问题")

    return 1 if problems.has_severity_at_least(config.reject_severity) else 0


if __name__ == "__main__":
    main()
