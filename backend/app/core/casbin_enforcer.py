"""
Casbin执行器
backend/app/core/casbin_enforcer.py
请求：(角色标识, 请求路径, 请求方法)
策略：sys_casbin_rules 中 ptype='p' 的行 (v0=角色标识, v1=路径模式, v2=方法)
路径按 keyMatch2 匹配（:param 匹配单段，/* 匹配任意后缀）；方法为 * 时匹配全部
"""
import casbin
from casbin.model import Model

CASBIN_MODEL_TEXT = """
[request_definition]
r = sub, obj, act

[policy_definition]
p = sub, obj, act

[policy_effect]
e = some(where (p.eft == allow))

[matchers]
m = r.sub == p.sub && keyMatch2(r.obj, p.obj) && (r.act == p.act || p.act == "*")
"""


def create_casbin_model() -> Model:
    model = Model()
    model.load_model_from_text(CASBIN_MODEL_TEXT)
    return model


class PolicyEnforcer:
    """
    进程内唯一的Casbin执行器（DI容器单例）
    - 策略以数据库为准：首次判定前整体加载，规则写入后由PolicyService同步
    - 不挂载adapter：数据库读写统一走异步的CasbinRuleRepository
    """
    def __init__(self):
        self.enforcer = casbin.Enforcer(create_casbin_model())
        self.loaded = False

    def load(self, rules) -> None:
        """用数据库中的全部规则替换内存策略"""
        self.enforcer.clear_policy()
        rules = [list(rule) for rule in rules]
        if rules:
            self.enforcer.add_policies(rules)
        self.loaded = True
