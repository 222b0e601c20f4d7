"""全局 pytest 配置 -- 临时配置文件 fixture + 示例部署"""

import json
from pathlib import Path

import pytest


@pytest.fixture
def tmp_config_path(tmp_path: Path) -> Path:
    """提供临时配置文件路径（文件尚不存在）"""
    return tmp_path / "config" / "bosun.json"


@pytest.fixture
def seeded_config_path(tmp_config_path: Path) -> Path:
    """提供已写入一个 default 部署的配置文件"""
    tmp_config_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_config_path.write_text(
        json.dumps(
            {
                "current_deployment": "default",
                "deployment_configurations": [
                    {
                        "name": "default",
                        "version": "1.30.0",
                        "security": {
                            "ui_security": {
                                "override_base_url": "https://deck.example.com"
                            },
                            "authn": {
                                "ldap": {
                                    "enabled": False,
                                    "url": "ldaps://ldap.example.com:636",
                                    "user_dn_pattern": "uid={0},ou=users",
                                }
                            },
                        },
                    }
                ],
            }
        ),
        encoding="utf-8",
    )
    return tmp_config_path
