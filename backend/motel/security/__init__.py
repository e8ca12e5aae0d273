"""
motel/security - 权限码、角色默认权限与授权检查
"""
