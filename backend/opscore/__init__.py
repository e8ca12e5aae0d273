"""
opscore - 域无关的运营工作流引擎

提供状态机规则评估、进程内事件总线、权限评估、作业队列与调度器接口。
领域层（motel）在此基础上定义具体的状态表、事件和处理器。
"""
__version__ = "1.0.0"
