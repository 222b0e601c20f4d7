"""ConfigStore 测试

测试内容：
1. 惰性加载 / 文件缺失视为空配置
2. undo_changes 丢弃内存修改且幂等
3. save_config 原子写回
4. 损坏文件抛出 ConfigLoadError
5. 配置被丢弃后保存失败，而不是静默成功
"""

import json

import pytest
from bosun.config import (
    ConfigDiscardedError,
    ConfigLoadError,
    ConfigStore,
    DeploymentConfiguration,
    DeploymentNotFoundError,
)
from bosun.core.models import TaskStatus
from bosun.core.tasks import TaskRepository, UpdateRequestBuilder


class TestLoad:
    def test_missing_file_is_empty_config(self, tmp_config_path):
        store = ConfigStore(tmp_config_path)
        config = store.get_config()
        assert config.deployment_configurations == []
        assert store.get_config() is config

    def test_get_deployment(self, seeded_config_path):
        store = ConfigStore(seeded_config_path)
        deployment = store.get_deployment("default")
        assert deployment.version == "1.30.0"
        assert deployment.security.authn.ldap.url == "ldaps://ldap.example.com:636"

    def test_unknown_deployment(self, seeded_config_path):
        store = ConfigStore(seeded_config_path)
        with pytest.raises(DeploymentNotFoundError) as exc_info:
            store.get_deployment("staging")
        assert exc_info.value.deployment_name == "staging"

    def test_corrupt_file_raises(self, tmp_config_path):
        tmp_config_path.parent.mkdir(parents=True)
        tmp_config_path.write_text("{not json", encoding="utf-8")
        store = ConfigStore(tmp_config_path)

        assert store.is_readable() is False
        with pytest.raises(ConfigLoadError):
            store.get_config()

    def test_is_readable(self, seeded_config_path):
        assert ConfigStore(seeded_config_path).is_readable() is True


class TestUndo:
    def test_undo_discards_unsaved_changes(self, seeded_config_path):
        store = ConfigStore(seeded_config_path)
        store.get_deployment("default").security.authn.ldap.enabled = True

        store.undo_changes()
        assert store.get_deployment("default").security.authn.ldap.enabled is False

    def test_undo_is_idempotent(self, seeded_config_path):
        store = ConfigStore(seeded_config_path)
        store.get_deployment("default").version = "2.0.0"
        store.undo_changes()
        store.undo_changes()
        assert store.get_deployment("default").version == "1.30.0"


class TestSave:
    def test_save_persists_changes(self, seeded_config_path):
        store = ConfigStore(seeded_config_path)
        store.get_deployment("default").security.authn.ldap.enabled = True
        store.save_config()

        on_disk = json.loads(seeded_config_path.read_text(encoding="utf-8"))
        ldap = on_disk["deployment_configurations"][0]["security"]["authn"]["ldap"]
        assert ldap["enabled"] is True
        assert not seeded_config_path.with_name("bosun.json.tmp").exists()

        # 新实例能读回保存的内容
        fresh = ConfigStore(seeded_config_path)
        assert fresh.get_deployment("default").security.authn.ldap.enabled is True

    def test_save_then_undo_keeps_saved_state(self, seeded_config_path):
        store = ConfigStore(seeded_config_path)
        store.get_deployment("default").version = "2.0.0"
        store.save_config()
        store.undo_changes()
        assert store.get_deployment("default").version == "2.0.0"

    def test_save_creates_parent_directory(self, tmp_config_path):
        store = ConfigStore(tmp_config_path)
        store.get_config().deployment_configurations.append(
            DeploymentConfiguration(name="fresh")
        )
        store.save_config()
        assert tmp_config_path.exists()

    def test_save_without_loaded_config_raises(self, tmp_config_path):
        with pytest.raises(ConfigDiscardedError):
            ConfigStore(tmp_config_path).save_config()
        assert not tmp_config_path.exists()

    def test_save_after_discard_raises(self, seeded_config_path):
        before = seeded_config_path.read_text(encoding="utf-8")
        store = ConfigStore(seeded_config_path)
        store.get_deployment("default").version = "2.0.0"
        store.undo_changes()

        with pytest.raises(ConfigDiscardedError):
            store.save_config()
        assert seeded_config_path.read_text(encoding="utf-8") == before


class TestInterleavedMutations:
    async def test_discard_between_update_and_save_fails_task(self, seeded_config_path):
        store = ConfigStore(seeded_config_path)
        repository = TaskRepository()

        def update():
            store.get_deployment("default").version = "2.0.0"
            # 另一任务的回滚插入在变更与保存之间
            store.undo_changes()

        builder = UpdateRequestBuilder(
            update=update,
            revert=store.undo_changes,
            save=store.save_config,
        )
        task = repository.submit(builder.build)
        done = await repository.wait(task.task_id, timeout=1)

        assert done.status == TaskStatus.FAILED
        assert done.error.error_type == "SaveError"
        assert isinstance(done.error.cause.original, ConfigDiscardedError)
        assert store.get_deployment("default").version == "1.30.0"
