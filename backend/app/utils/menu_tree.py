"""
菜单树构建工具
backend/app/utils/menu_tree.py
纯函数：扁平菜单行 + 父ID → 嵌套树，每次读取时重新构建，不做缓存
"""
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Set

from app.schemas.sys_menu import MenuTreeNode


def build_menu_tree(menus: Iterable[Any], parent_id: int = 0) -> List[MenuTreeNode]:
    """
    构建菜单树

    Args:
        menus: 已按 (sort ASC, id ASC) 排好序的菜单（ORM对象或MenuOut）
        parent_id: 起始父ID，0表示从顶级开始

    Returns:
        节点列表；每一层（含叶子）的children都为列表，不会为None
    说明：
        - 不重新排序，各层级保留输入顺序
        - 父节点不在输入集合中的菜单不会出现在树中
        - 已访问节点不会重复挂载，脏数据中的环不会导致无限递归
    """
    children_map: Dict[int, List[Any]] = defaultdict(list)
    for menu in menus:
        children_map[menu.parent_id or 0].append(menu)

    return _attach_children(children_map, parent_id, visited=set())


def _attach_children(
    children_map: Dict[int, List[Any]],
    parent_id: int,
    visited: Set[int],
) -> List[MenuTreeNode]:
    nodes: List[MenuTreeNode] = []
    for menu in children_map.get(parent_id, []):
        if menu.id in visited:
            continue
        visited.add(menu.id)
        node = MenuTreeNode.model_validate(menu)
        node.children = _attach_children(children_map, menu.id, visited)
        nodes.append(node)
    return nodes


def count_tree_nodes(tree: List[MenuTreeNode]) -> int:
    """统计树中节点总数"""
    return sum(1 + count_tree_nodes(node.children) for node in tree)

