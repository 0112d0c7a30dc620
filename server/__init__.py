# -*- coding: utf-8 -*-
"""
HTTP 服务模块

功能：
- 暴露 /metrics、/health、/status 端点
"""

from server.app import create_app

__all__ = ['create_app']
