"""
motel - 汽车旅馆客房与任务运营领域层

在 opscore 之上定义客房/任务状态表、领域事件、事件处理器、
通知队列与权限映射。
"""
__version__ = "1.0.0"
