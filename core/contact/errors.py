"""
接触窗口计算异常定义

按错误来源划分：
- 输入错误（TLE格式错误、地面站坐标非法）：该卫星-地面站对失败，刷新继续
- 持久化错误：向调用方报告，不影响已完成的其他对
- 超时：单对写入超时，不阻塞整体刷新
"""


class ContactWindowError(Exception):
    """接触窗口模块基础异常"""
    pass


class ElementSetError(ContactWindowError):
    """轨道根数（TLE/OMM）格式错误"""
    pass


class GeodeticInputError(ContactWindowError):
    """地理坐标输入错误"""
    pass


class MissingElementsError(ContactWindowError):
    """卫星没有可用的当前轨道根数"""

    def __init__(self, satellite_id: str):
        super().__init__(f"Satellite {satellite_id} has no current orbital elements")
        self.satellite_id = satellite_id


class NotFoundError(ContactWindowError):
    """卫星或地面站不存在"""

    def __init__(self, kind: str, entity_id: str):
        super().__init__(f"{kind} not found: {entity_id}")
        self.kind = kind
        self.entity_id = entity_id


class PersistenceError(ContactWindowError):
    """窗口存储读写失败"""
    pass


class PairTimeoutError(ContactWindowError):
    """单个卫星-地面站对处理超时"""

    def __init__(self, satellite_id: str, ground_station_id: str, timeout: float):
        super().__init__(
            f"Reconciliation for {satellite_id}/{ground_station_id} "
            f"did not finish within {timeout:.1f}s"
        )
        self.satellite_id = satellite_id
        self.ground_station_id = ground_station_id
        self.timeout = timeout
