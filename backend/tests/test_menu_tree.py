"""
测试菜单树构建与前端路由生成
"""
from types import SimpleNamespace

from hypothesis import given, strategies as st

from app.services.route_generator import generate_routes, resolve_view
from app.utils.menu_tree import build_menu_tree, count_tree_nodes


def _menu(menu_id: int, parent_id: int = 0, sort: int = 0, hidden: bool = False, component: str = ""):
    return SimpleNamespace(
        id=menu_id,
        parent_id=parent_id,
        path=f"/m{menu_id}",
        name=f"M{menu_id}",
        component=component,
        sort=sort,
        meta={"icon": "", "title": f"菜单{menu_id}", "hidden": hidden, "keep_alive": False},
        btn_perms=None,
        created_at=None,
        updated_at=None,
    )


def test_build_menu_tree_nesting_and_order():
    menus = [_menu(1), _menu(2), _menu(3, parent_id=1), _menu(4, parent_id=1), _menu(5, parent_id=3)]
    tree = build_menu_tree(menus)

    assert [n.id for n in tree] == [1, 2]
    assert [n.id for n in tree[0].children] == [3, 4]
    assert [n.id for n in tree[0].children[0].children] == [5]
    # 叶子节点children为空列表
    assert tree[1].children == []
    assert tree[0].children[1].btn_perms == []


def test_orphan_menus_are_excluded():
    """父菜单不在集合中的菜单不出现在树中"""
    tree = build_menu_tree([_menu(1), _menu(7, parent_id=99)])
    assert [n.id for n in tree] == [1]
    assert count_tree_nodes(tree) == 1


def test_hidden_menus_are_kept():
    tree = build_menu_tree([_menu(1), _menu(2, parent_id=1, hidden=True)])
    node = tree[0].children[0]
    assert node.id == 2
    assert node.meta.hidden is True


def test_cycle_in_data_does_not_recurse_forever():
    # 1 → 2 → 1 的脏数据：从顶级构建时二者都不可达
    tree = build_menu_tree([_menu(1, parent_id=2), _menu(2, parent_id=1), _menu(3)])
    assert [n.id for n in tree] == [3]


@given(
    st.integers(min_value=1, max_value=30).flatmap(
        lambda n: st.tuples(*[st.integers(min_value=0, max_value=i) for i in range(n)])
    )
)
def test_every_menu_of_a_forest_appears_exactly_once(parents):
    """父ID总是0或更早的菜单ID时，全部菜单都应恰好出现一次且挂在正确的父节点下"""
    menus = [_menu(i + 1, parent_id=parent) for i, parent in enumerate(parents)]
    tree = build_menu_tree(menus)

    assert count_tree_nodes(tree) == len(menus)

    def walk(nodes, parent_id):
        for node in nodes:
            assert node.parent_id == parent_id
            walk(node.children, node.id)

    walk(tree, 0)


# ------------------------------
# 前端路由
# ------------------------------
def test_resolve_view():
    assert resolve_view("Layout") == ""
    assert resolve_view("") == ""
    assert resolve_view("system/user") == "views/system/user"
    assert resolve_view("/dashboard") == "views/dashboard"


def test_generate_routes_keeps_structure():
    menus = [
        _menu(1, component="Layout"),
        _menu(2, parent_id=1, component="system/user", hidden=True),
        _menu(3, component="dashboard"),
    ]
    routes = generate_routes(build_menu_tree(menus))

    assert [r["name"] for r in routes] == ["M1", "M3"]
    assert routes[0]["view"] == ""
    assert routes[0]["children"][0]["view"] == "views/system/user"
    assert routes[0]["children"][0]["meta"]["hidden"] is True
    assert routes[0]["children"][0]["meta"]["keepAlive"] is False
    assert routes[1]["children"] == []
