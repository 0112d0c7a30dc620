# -*- coding: utf-8 -*-
"""
Metric Store 实现模块

功能：
- 保存每个指标族最近一次成功采集的快照
- 每次更新先清空再写入（reset-then-repopulate），已消失的 label 组合不会残留
- 按指标族加锁写入，读取总是看到完整的旧快照或完整的新快照
- 通过独立的 CollectorRegistry 暴露 Prometheus 格式的指标
"""

import time
import logging
import threading
from typing import Dict, List, Optional, Tuple
from prometheus_client import CollectorRegistry, Gauge, Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from prometheus_client.core import GaugeMetricFamily
from collector.observation import MetricFamily, Observation

logger = logging.getLogger(__name__)


class _FamilyState:
    """单个指标族的状态（已发布的 dict 只整体替换，不原地修改）"""

    def __init__(self, family: MetricFamily):
        self.family = family
        self.lock = threading.Lock()
        self.values: Dict[Tuple[str, ...], float] = {}
        self.last_success: Optional[float] = None


class _SnapshotCollector:
    """把 MetricStore 的当前快照渲染为 Prometheus gauge"""

    def __init__(self, store: 'MetricStore'):
        self._store = store

    def describe(self):
        return []

    def collect(self):
        for family in self._store.families():
            gauge = GaugeMetricFamily(family.name, family.documentation, labels=list(family.label_names))
            for label_values, value in sorted(self._store.snapshot(family.name).items()):
                gauge.add_metric(list(label_values), value)
            yield gauge


class MetricStore:
    """
    指标快照存储

    功能：
    - 声明指标族（进程启动时）
    - 接收 Scheduler 提交的整批观测值并原子替换
    - 记录 exporter 自身的采集指标（错误数、跳过数、耗时、最近成功时间）
    - 提供 /metrics 渲染
    """

    content_type = CONTENT_TYPE_LATEST

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """
        初始化 Metric Store

        Args:
            registry: Prometheus registry（可选，默认新建独立 registry，不使用全局 REGISTRY）
        """
        self.registry = registry or CollectorRegistry()
        self._families: Dict[str, _FamilyState] = {}
        self._families_lock = threading.Lock()

        # Exporter 自身指标
        self.last_success_timestamp = Gauge(
            'billing_exporter_last_success_timestamp_seconds',
            'Unix time of the last successful update of a metric family',
            ['family'],
            registry=self.registry
        )

        self.collect_errors_total = Counter(
            'billing_exporter_collect_errors_total',
            'Total number of failed collections',
            ['collector', 'error_kind'],
            registry=self.registry
        )

        self.collect_skipped_total = Counter(
            'billing_exporter_collect_skipped_total',
            'Total number of skipped collections',
            ['collector', 'reason'],
            registry=self.registry
        )

        self.collect_duration_seconds = Histogram(
            'billing_exporter_collect_duration_seconds',
            'Duration of a single collector run in seconds',
            ['collector'],
            buckets=[0.1, 0.5, 1.0, 5.0, 10.0, 30.0, 60.0],
            registry=self.registry
        )

        self.registry.register(_SnapshotCollector(self))

    def register(self, family: MetricFamily) -> MetricFamily:
        """
        声明指标族

        同一定义重复声明直接返回；同名但定义不同抛出 ValueError
        """
        with self._families_lock:
            state = self._families.get(family.name)
            if state is not None:
                if state.family != family:
                    raise ValueError(f"指标族 {family.name} 已存在且定义不同")
                return state.family
            self._families[family.name] = _FamilyState(family)
            logger.debug(f"注册指标族: {family.name} {list(family.label_names)}")
            return family

    def families(self) -> List[MetricFamily]:
        with self._families_lock:
            return [state.family for state in self._families.values()]

    def update(self, family_name: str, observations: List[Observation]):
        """
        用整批观测值替换指标族的全部 label 组合

        空列表是合法的，会清空该指标族。只应在采集成功时调用。

        Args:
            family_name: 指标族名称
            observations: 该指标族的全部观测值

        Raises:
            KeyError: 指标族未声明
            ValueError: 观测值的 label 与指标族定义不一致
        """
        self.update_many({family_name: observations})

    def update_many(self, batches: Dict[str, List[Observation]]):
        """
        一次替换多个指标族

        先校验并构造所有指标族的新快照，全部通过后才逐个替换；
        任意一个指标族出错时，所有指标族都保持旧快照

        Args:
            batches: {指标族名称: 该指标族的全部观测值}

        Raises:
            KeyError: 指标族未声明
            ValueError: 观测值的 label 与指标族定义不一致
        """
        prepared = [
            (self._state(family_name), self._build(family_name, observations))
            for family_name, observations in batches.items()
        ]

        for state, new_values in prepared:
            with state.lock:
                state.values = new_values
                state.last_success = time.time()
                self.last_success_timestamp.labels(family=state.family.name).set(state.last_success)
            logger.debug(f"指标族 {state.family.name} 已更新: {len(new_values)} 个 label 组合")

    def _build(self, family_name: str, observations: List[Observation]) -> Dict[Tuple[str, ...], float]:
        # 在锁外构造新快照，出错时旧快照保持不变
        state = self._state(family_name)
        new_values: Dict[Tuple[str, ...], float] = {}
        for observation in observations:
            if observation.metric_family != family_name:
                raise ValueError(f"观测值属于 {observation.metric_family}，不能写入 {family_name}")
            new_values[observation.label_values(state.family.label_names)] = float(observation.value)
        return new_values

    def snapshot(self, family_name: str) -> Dict[Tuple[str, ...], float]:
        """
        获取指标族当前快照

        Returns:
            {label 值元组（按 label_names 顺序）: value}
        """
        return dict(self._state(family_name).values)

    def last_success(self, family_name: str) -> Optional[float]:
        return self._state(family_name).last_success

    def record_error(self, collector: str, error_kind: str):
        self.collect_errors_total.labels(collector=collector, error_kind=error_kind).inc()

    def record_skipped(self, collector: str, reason: str):
        self.collect_skipped_total.labels(collector=collector, reason=reason).inc()

    def observe_duration(self, collector: str, seconds: float):
        self.collect_duration_seconds.labels(collector=collector).observe(seconds)

    def render(self) -> bytes:
        """
        获取 Prometheus text format 指标数据（每次请求实时渲染）
        """
        return generate_latest(self.registry)

    def _state(self, family_name: str) -> _FamilyState:
        with self._families_lock:
            try:
                return self._families[family_name]
            except KeyError:
                raise KeyError(f"指标族未声明: {family_name}") from None
