# -*- coding: utf-8 -*-
"""
定时任务模块

功能：
- 按固定间隔驱动采集周期（启动时立即执行一次）
- 在后台线程中运行，不阻塞 HTTP 服务
"""

from scheduler.scheduler import CollectionScheduler, DEFAULT_INTERVAL

__all__ = ['CollectionScheduler', 'DEFAULT_INTERVAL']
