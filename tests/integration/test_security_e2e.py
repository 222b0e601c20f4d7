"""安全配置端到端集成测试

提交请求 -> 202 RUNNING -> 轮询 -> 终态快照 -> 配置文件落盘链路
"""

import asyncio
import json

from httpx import AsyncClient

SECURITY = "/v1/config/deployments/default/security"


async def poll(client: AsyncClient, task_id: str, attempts: int = 100) -> dict:
    """轮询直到任务离开 RUNNING"""
    for _ in range(attempts):
        resp = await client.get(f"/v1/tasks/{task_id}")
        assert resp.status_code == 200
        data = resp.json()
        if data["status"] != "RUNNING":
            return data
        await asyncio.sleep(0.02)
    raise AssertionError(f"task {task_id} still running")


class TestMutationLifecycle:
    """写请求全链路"""

    async def test_accepted_change_is_persisted(
        self, client: AsyncClient, seeded_config_path
    ):
        # 1. 提交变更
        resp = await client.put(
            f"{SECURITY}/authn/x509",
            json={"enabled": True, "role_oid": "1.3.6.1.4.1.99"},
        )
        assert resp.status_code == 202
        assert resp.json()["status"] == "RUNNING"

        # 2. 轮询到终态
        task = await poll(client, resp.json()["task_id"])
        assert task["status"] == "SUCCEEDED"
        assert task["rejected"] is False
        assert [e["stage"] for e in task["events"]] == [
            "PENDING",
            "UPDATED",
            "VALIDATED",
            "SAVED",
        ]
        assert [e["seq"] for e in task["events"]] == [1, 2, 3, 4]

        # 3. 文件已更新
        data = json.loads(seeded_config_path.read_text(encoding="utf-8"))
        x509 = data["deployment_configurations"][0]["security"]["authn"]["x509"]
        assert x509 == {
            "enabled": True,
            "role_oid": "1.3.6.1.4.1.99",
            "subject_principal_regex": None,
        }

        # 4. 读请求可见
        resp = await client.get(f"{SECURITY}/authn/x509")
        read = await poll(client, resp.json()["task_id"])
        assert read["response_body"]["role_oid"] == "1.3.6.1.4.1.99"
        assert read["problems"]["problems"] == []

    async def test_rejected_change_leaves_file_and_memory_untouched(
        self, client: AsyncClient, seeded_config_path
    ):
        before = seeded_config_path.read_text(encoding="utf-8")

        resp = await client.put(
            f"{SECURITY}/authn/saml",
            json={"enabled": True, "metadata_url": "ftp://idp.example.com/md"},
        )
        task = await poll(client, resp.json()["task_id"])

        assert task["status"] == "SUCCEEDED"
        assert task["rejected"] is True
        locations = {p["location"] for p in task["problems"]["problems"]}
        assert locations == {"security.authn.saml"}
        assert seeded_config_path.read_text(encoding="utf-8") == before

        resp = await client.get(f"{SECURITY}/", params={"validate": "true"})
        read = await poll(client, resp.json()["task_id"])
        assert read["response_body"]["authn"]["saml"]["enabled"] is False
        assert read["problems"]["problems"] == []

    async def test_sequential_changes_accumulate(
        self, client: AsyncClient, seeded_config_path
    ):
        for method in ("ldap", "x509"):
            resp = await client.put(f"{SECURITY}/authn/{method}/enabled/", json=True)
            task = await poll(client, resp.json()["task_id"])
            assert task["status"] == "SUCCEEDED"

        data = json.loads(seeded_config_path.read_text(encoding="utf-8"))
        authn = data["deployment_configurations"][0]["security"]["authn"]
        assert authn["ldap"]["enabled"] is True
        assert authn["x509"]["enabled"] is True


class TestTaskVisibility:
    async def test_submitted_tasks_are_listed(self, client: AsyncClient):
        resp = await client.get(f"{SECURITY}/")
        task_id = resp.json()["task_id"]
        await poll(client, task_id)

        resp = await client.get("/v1/tasks/")
        listed = resp.json()["tasks"]
        assert [t["task_id"] for t in listed] == [task_id]
        assert listed[0]["stage"] == "VALIDATED"
