"""
FrontDesk - 酒店前台管理
"""
__version__ = "1.0.0"
