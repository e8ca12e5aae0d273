"""
数据模型：枚举、ORM 对象、领域事件
"""
