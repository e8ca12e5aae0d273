"""
motel/services - 基础设施服务（SQL 作业队列、调度后端）
"""
