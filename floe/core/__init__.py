"""
核心模块：配置与存储
"""
