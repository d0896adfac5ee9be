"""
测试API访问策略（Casbin keyMatch2模型）
"""
import pytest

from app.core.casbin_enforcer import PolicyEnforcer
from app.core.exceptions import PermissionDenied
from app.schemas.sys_role import RoleUpdate
from app.services.sys_policy_service import PolicyService


@pytest.mark.parametrize(
    "path, pattern, expected",
    [
        ("/api/v1/menu/all", "/api/v1/menu/all", True),
        ("/api/v1/menu/3", "/api/v1/menu/:id", True),
        ("/api/v1/menu/3/extra", "/api/v1/menu/:id", False),
        ("/api/v1/role/3/menus", "/api/v1/role/:id/menus", True),
        ("/api/v1/user/list", "/api/v1/*", True),
        ("/api/v2/user/list", "/api/v1/*", False),
        ("/api/v1/menu.all", "/api/v1/menu/all", False),
    ],
)
def test_path_matching(path, pattern, expected):
    policy_enforcer = PolicyEnforcer()
    policy_enforcer.load([("editor", pattern, "GET")])
    assert policy_enforcer.enforcer.enforce("editor", path, "GET") == expected


def test_method_and_subject_matching():
    policy_enforcer = PolicyEnforcer()
    policy_enforcer.load([("editor", "/api/v1/menu/:id", "*"), ("editor", "/api/v1/menu/all", "GET")])
    enforcer = policy_enforcer.enforcer

    assert enforcer.enforce("editor", "/api/v1/menu/7", "DELETE")
    assert enforcer.enforce("editor", "/api/v1/menu/all", "GET")
    assert not enforcer.enforce("editor", "/api/v1/menu/all", "POST")
    assert not enforcer.enforce("viewer", "/api/v1/menu/all", "GET")


def test_empty_policy_denies():
    policy_enforcer = PolicyEnforcer()
    policy_enforcer.load([])
    assert policy_enforcer.loaded is True
    assert not policy_enforcer.enforcer.enforce("editor", "/api/v1/menu/all", "GET")


async def test_super_role_is_always_allowed(make_role, policy_service):
    admin = await make_role("admin")
    await policy_service.check_permission(admin.id, "/api/v1/anything", "DELETE")


async def test_check_permission_uses_assigned_rules(make_role, role_service, policy_service):
    editor = await make_role("editor")

    with pytest.raises(PermissionDenied) as exc:
        await policy_service.check_permission(editor.id, "/api/v1/menu/all", "GET")
    assert exc.value.detail == "access denied"
    assert exc.value.code == 403

    # 执行器已加载后，分配结果同步到内存策略
    await role_service.assign_apis(editor.id, [["/api/v1/menu/all", "get"]])
    await policy_service.check_permission(editor.id, "/api/v1/menu/all", "GET")

    with pytest.raises(PermissionDenied):
        await policy_service.check_permission(editor.id, "/api/v1/menu", "POST")

    # 整体替换后旧规则失效
    await role_service.assign_apis(editor.id, [["/api/v1/menu", "POST"]])
    await policy_service.check_permission(editor.id, "/api/v1/menu", "POST")
    with pytest.raises(PermissionDenied):
        await policy_service.check_permission(editor.id, "/api/v1/menu/all", "GET")


async def test_rules_are_loaded_from_database(make_role, role_service, casbin_rule_repository, role_repository):
    editor = await make_role("editor")
    await role_service.assign_apis(editor.id, [["/api/v1/menu/:id", "GET"]])

    # 新进程中的执行器首次判定前从sys_casbin_rules加载
    fresh = PolicyService(
        policy_enforcer=PolicyEnforcer(),
        casbin_rule_repository=casbin_rule_repository,
        role_repository=role_repository,
    )
    assert await fresh.enforce("editor", "/api/v1/menu/5", "GET") is True
    assert await fresh.get_role_policies("editor") == [["/api/v1/menu/:id", "GET"]]


async def test_role_key_rename_and_delete_reload_policy(make_role, role_service, policy_service):
    editor = await make_role("editor")
    await role_service.assign_apis(editor.id, [["/api/v1/menu/all", "GET"]])
    assert await policy_service.enforce("editor", "/api/v1/menu/all", "GET") is True

    await role_service.update_role(RoleUpdate(id=editor.id, role_name="Writer", role_key="writer"))
    assert await policy_service.enforce("editor", "/api/v1/menu/all", "GET") is False
    assert await policy_service.enforce("writer", "/api/v1/menu/all", "GET") is True

    await role_service.delete_role(editor.id)
    assert await policy_service.enforce("writer", "/api/v1/menu/all", "GET") is False


async def test_check_permission_disabled_or_missing_role(make_role, role_service, policy_service):
    disabled = await make_role("guest", status=False)
    await role_service.assign_apis(disabled.id, [["/api/v1/*", "*"]])

    with pytest.raises(PermissionDenied) as exc:
        await policy_service.check_permission(disabled.id, "/api/v1/menu/all", "GET")
    assert exc.value.detail == "role is disabled"

    with pytest.raises(PermissionDenied) as exc:
        await policy_service.check_permission(999, "/api/v1/menu/all", "GET")
    assert exc.value.detail == "role not found"
