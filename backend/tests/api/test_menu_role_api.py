"""
测试菜单/角色接口：API访问权限、菜单树、前端路由、菜单与API分配
"""


async def _login_as(client, admin_headers, role_key: str) -> dict:
    """创建角色和该角色下的用户并登录，返回请求头"""
    body = (await client.post("/api/v1/role", headers=admin_headers, json={
        "roleName": role_key.capitalize(), "roleKey": role_key,
    })).json()
    role_id = body["data"]["id"]
    await client.post("/api/v1/user", headers=admin_headers, json={
        "username": f"{role_key}_user", "password": "secret123", "roleId": role_id,
    })
    login = (await client.post(
        "/api/v1/user/login", json={"username": f"{role_key}_user", "password": "secret123"}
    )).json()
    return {"role_id": role_id, "headers": {"Authorization": f"Bearer {login['data']['accessToken']}"}}


# ------------------------------
# 菜单
# ------------------------------
async def test_admin_menu_crud(client, admin_headers):
    body = (await client.post("/api/v1/menu", headers=admin_headers, json={
        "parentId": 0, "path": "/report", "name": "Report", "component": "report", "sort": 9,
        "meta": {"icon": "ChartIcon", "title": "报表", "hidden": True, "keepAlive": True},
        "btnPerms": ["report:export"],
    })).json()
    assert body["code"] == 0
    menu = body["data"]
    assert menu["meta"] == {"icon": "ChartIcon", "title": "报表", "hidden": True, "keepAlive": True}

    body = (await client.get(f"/api/v1/menu/{menu['id']}", headers=admin_headers)).json()
    assert body["data"]["btnPerms"] == ["report:export"]

    body = (await client.put("/api/v1/menu", headers=admin_headers, json={**menu, "parentId": menu["id"]})).json()
    assert body == {"code": 1, "data": None, "msg": "cannot set self as parent menu"}

    body = (await client.delete(f"/api/v1/menu/{menu['id']}", headers=admin_headers)).json()
    assert body == {"code": 0, "data": None, "msg": "menu deleted successfully"}

    body = (await client.get("/api/v1/menu/x1", headers=admin_headers)).json()
    assert body == {"code": 1, "data": None, "msg": "invalid menu ID"}


async def test_menu_api_permission(client, admin_headers):
    editor = await _login_as(client, admin_headers, "editor")

    body = (await client.get("/api/v1/menu/all", headers=editor["headers"])).json()
    assert body == {"code": 403, "data": None, "msg": "access denied"}

    body = (await client.post("/api/v1/role/assign-apis", headers=admin_headers, json={
        "roleId": editor["role_id"], "policies": [["/api/v1/menu/all", "GET"]],
    })).json()
    assert body["msg"] == "API permissions assigned successfully"

    body = (await client.get("/api/v1/menu/all", headers=editor["headers"])).json()
    assert body["code"] == 0
    assert len(body["data"]) == 8

    # 仅授权了GET /menu/all
    body = (await client.get("/api/v1/menu/1", headers=editor["headers"])).json()
    assert body["code"] == 403

    body = (await client.get(f"/api/v1/role/{editor['role_id']}/apis", headers=admin_headers)).json()
    assert body["data"] == [["/api/v1/menu/all", "GET"]]


async def test_menu_tree_and_routes_follow_role(client, admin_headers):
    editor = await _login_as(client, admin_headers, "editor")

    all_menus = (await client.get("/api/v1/menu/all", headers=admin_headers)).json()["data"]
    by_name = {m["name"]: m["id"] for m in all_menus}
    body = (await client.post("/api/v1/role/assign-menus", headers=admin_headers, json={
        "roleId": editor["role_id"], "menuIds": [by_name["System"], by_name["User"]],
    })).json()
    assert body["msg"] == "menus assigned successfully"

    body = (await client.get(f"/api/v1/role/{editor['role_id']}/menus", headers=admin_headers)).json()
    assert sorted(body["data"]) == sorted([by_name["System"], by_name["User"]])

    # 菜单树/路由只需要登录
    tree = (await client.get(
        "/api/v1/menu/tree", params={"roleId": editor["role_id"]}, headers=editor["headers"]
    )).json()["data"]
    assert [n["name"] for n in tree] == ["System"]
    assert [n["name"] for n in tree[0]["children"]] == ["User"]

    routes = (await client.get("/api/v1/menu/routes", headers=editor["headers"])).json()["data"]
    assert routes == [{
        "path": "/system",
        "name": "System",
        "component": "Layout",
        "view": "",
        "meta": {"icon": "CogIcon", "title": "系统管理", "hidden": False, "keepAlive": True},
        "children": [{
            "path": "/system/user",
            "name": "User",
            "component": "system/user",
            "view": "views/system/user",
            "meta": {"icon": "UserIcon", "title": "用户管理", "hidden": False, "keepAlive": True},
            "children": [],
        }],
    }]

    full_tree = (await client.get("/api/v1/menu/tree", headers=admin_headers)).json()["data"]
    assert [n["name"] for n in full_tree] == ["Dashboard", "System", "Tools"]


# ------------------------------
# 角色
# ------------------------------
async def test_role_crud(client, admin_headers):
    body = (await client.post("/api/v1/role", headers=admin_headers, json={
        "roleName": "Auditor", "roleKey": "auditor", "dataScope": "self", "remark": "只读",
    })).json()
    assert body["code"] == 0
    role = body["data"]
    assert role["dataScope"] == "self"

    body = (await client.post("/api/v1/role", headers=admin_headers, json={
        "roleName": "Auditor2", "roleKey": "auditor",
    })).json()
    assert body == {"code": 1, "data": None, "msg": "role key already exists"}

    body = (await client.get("/api/v1/role/list", params={"page": 1, "pageSize": 10}, headers=admin_headers)).json()
    assert body["data"]["total"] == 2

    body = (await client.put("/api/v1/role", headers=admin_headers, json={**role, "roleName": "Reviewer"})).json()
    assert body["data"]["roleName"] == "Reviewer"

    body = (await client.delete("/api/v1/role/1", headers=admin_headers)).json()
    assert body == {"code": 1, "data": None, "msg": "cannot delete role with associated users"}

    body = (await client.delete(f"/api/v1/role/{role['id']}", headers=admin_headers)).json()
    assert body == {"code": 0, "data": None, "msg": "role deleted successfully"}

    body = (await client.get(f"/api/v1/role/{role['id']}", headers=admin_headers)).json()
    assert body == {"code": 1, "data": None, "msg": "role not found"}


# ------------------------------
# 管理接口的API访问权限
# ------------------------------
async def test_admin_routes_require_api_permission(client, admin_headers):
    guest = await _login_as(client, admin_headers, "guest")
    denied = {"code": 403, "data": None, "msg": "access denied"}

    body = (await client.post("/api/v1/user/reset-password", headers=guest["headers"], json={
        "userId": 1, "newPassword": "taken123",
    })).json()
    assert body == denied

    body = (await client.post("/api/v1/role/assign-apis", headers=guest["headers"], json={
        "roleId": guest["role_id"], "policies": [["/api/v1/*", "*"]],
    })).json()
    assert body == denied

    for path in ("/api/v1/user/list?page=1&pageSize=10", "/api/v1/role/1", "/api/v1/tools/db/tables",
                 "/api/v1/tools/gen/metadata/sys_user"):
        assert (await client.get(path, headers=guest["headers"])).json() == denied

    # 管理员密码与权限未被改动
    login = (await client.post("/api/v1/user/login", json={"username": "admin", "password": "admin123"})).json()
    assert login["code"] == 0
    body = (await client.get(f"/api/v1/role/{guest['role_id']}/apis", headers=admin_headers)).json()
    assert body["data"] == []

    # 本人操作只需登录
    body = (await client.get("/api/v1/user/info", headers=guest["headers"])).json()
    assert body["data"]["username"] == "guest_user"
    body = (await client.post("/api/v1/user/change-password", headers=guest["headers"], json={
        "oldPassword": "secret123", "newPassword": "secret456",
    })).json()
    assert body["msg"] == "password changed successfully"


async def test_granted_role_can_use_admin_routes(client, admin_headers):
    operator = await _login_as(client, admin_headers, "operator")
    await client.post("/api/v1/role/assign-apis", headers=admin_headers, json={
        "roleId": operator["role_id"], "policies": [["/api/v1/user/list", "GET"], ["/api/v1/role/:id", "GET"]],
    })

    body = (await client.get("/api/v1/user/list", params={"page": 1, "pageSize": 10}, headers=operator["headers"])).json()
    assert body["code"] == 0
    assert body["data"]["total"] == 2

    body = (await client.get(f"/api/v1/role/{operator['role_id']}", headers=operator["headers"])).json()
    assert body["data"]["roleKey"] == "operator"

    body = (await client.post("/api/v1/user/toggle-status", headers=operator["headers"], json={
        "userId": 1, "active": False,
    })).json()
    assert body["code"] == 403
