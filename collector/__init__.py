# -*- coding: utf-8 -*-
"""
Metric Store 模块

功能：
- 定义观测值、采集结果等数据结构
- 保存每个指标族的最新快照
- 暴露 Prometheus 格式的指标
"""

from .observation import (
    MetricFamily, Observation, ObservationBatch,
    CollectStatus, ErrorKind, CollectError, CollectResult, CollectionCycle
)
from .store import MetricStore

__all__ = [
    'MetricFamily', 'Observation', 'ObservationBatch',
    'CollectStatus', 'ErrorKind', 'CollectError', 'CollectResult', 'CollectionCycle',
    'MetricStore'
]
