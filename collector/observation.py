# -*- coding: utf-8 -*-
"""
采集结果数据结构

功能：
- 定义指标族（MetricFamily）和单条观测值（Observation）
- 定义采集状态、错误分类和单个 Source Collector 的采集结果
- 定义一次采集周期（CollectionCycle）的汇总信息
"""

import time
from dataclasses import dataclass, field
from typing import Optional, Dict, List, Tuple, Iterator
from enum import Enum


@dataclass(frozen=True)
class MetricFamily:
    """指标族定义（只支持 gauge，进程启动时声明，生命周期内不可变）"""
    name: str                       # 指标名，如 "twilio_usage"
    documentation: str              # HELP 文本
    label_names: Tuple[str, ...]    # 固定的 label 名称顺序


@dataclass
class Observation:
    """单条观测值"""
    metric_family: str
    labels: Dict[str, str]
    value: float

    def label_values(self, label_names: Tuple[str, ...]) -> Tuple[str, ...]:
        """
        按指标族的 label 顺序取出 label 值

        Raises:
            ValueError: label 名称与指标族定义不一致
        """
        if set(self.labels) != set(label_names):
            raise ValueError(
                f"{self.metric_family} 的 labels {sorted(self.labels)} "
                f"与定义 {list(label_names)} 不一致"
            )
        return tuple(str(self.labels[name]) for name in label_names)


class ObservationBatch:
    """
    一次成功采集产生的观测值，按指标族分组

    同一 (metric_family, labels) 只保留最后一次写入的值
    """

    def __init__(self, observations: Optional[List[Observation]] = None):
        self._by_family: Dict[str, Dict[Tuple[Tuple[str, str], ...], Observation]] = {}
        for observation in observations or []:
            self.add(observation)

    def add(self, observation: Observation):
        key = tuple(sorted(observation.labels.items()))
        self._by_family.setdefault(observation.metric_family, {})[key] = observation

    def extend(self, observations: List[Observation]):
        for observation in observations:
            self.add(observation)

    def for_family(self, family_name: str) -> List[Observation]:
        return list(self._by_family.get(family_name, {}).values())

    def family_names(self) -> List[str]:
        return list(self._by_family)

    def __iter__(self) -> Iterator[Observation]:
        for observations in self._by_family.values():
            yield from observations.values()

    def __len__(self) -> int:
        return sum(len(observations) for observations in self._by_family.values())


class CollectStatus(Enum):
    """采集状态"""
    SUCCESS = "success"    # 成功获取数据
    SKIPPED = "skipped"    # 跳过采集（未配置凭证）
    FAILED = "failed"      # 采集失败


class ErrorKind(Enum):
    """采集错误分类"""
    UNCONFIGURED = "unconfigured"          # 凭证缺失，重启前不再采集
    TRANSIENT = "transient"                # 网络错误 / 超时，下个周期重试
    INVALID_RESPONSE = "invalid_response"  # 非 200 或响应体无法解析，下个周期重试
    INTERNAL = "internal"                  # 指标族未注册等 exporter 自身的装配错误


@dataclass
class CollectError:
    """采集错误"""
    kind: ErrorKind
    detail: str

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.detail}"


@dataclass
class CollectResult:
    """单个 Source Collector 的采集结果"""
    collector: str                              # collector 名称
    status: CollectStatus                       # 采集状态
    batch: Optional[ObservationBatch] = None    # 观测值（success 时）
    error: Optional[CollectError] = None        # 错误信息（skipped 或 failed 时）

    @classmethod
    def success(cls, collector: str, batch: ObservationBatch) -> 'CollectResult':
        return cls(collector=collector, status=CollectStatus.SUCCESS, batch=batch)

    @classmethod
    def failure(cls, collector: str, kind: ErrorKind, detail: str) -> 'CollectResult':
        status = CollectStatus.SKIPPED if kind == ErrorKind.UNCONFIGURED else CollectStatus.FAILED
        return cls(collector=collector, status=status, error=CollectError(kind=kind, detail=detail))

    def is_success(self) -> bool:
        """判断是否成功"""
        return self.status == CollectStatus.SUCCESS

    def is_skipped(self) -> bool:
        """判断是否跳过"""
        return self.status == CollectStatus.SKIPPED

    def is_failed(self) -> bool:
        """判断是否失败"""
        return self.status == CollectStatus.FAILED

    @property
    def observation_count(self) -> int:
        return len(self.batch) if self.batch is not None else 0


@dataclass
class CollectionCycle:
    """一次采集周期"""
    started_at: float = field(default_factory=time.time)
    finished_at: Optional[float] = None
    results: Dict[str, CollectResult] = field(default_factory=dict)

    def get_summary(self) -> Dict:
        """
        获取采集周期汇总信息

        Returns:
            汇总信息字典
        """
        collectors = {}
        for name, result in self.results.items():
            entry = {'status': result.status.value, 'observations': result.observation_count}
            if result.error is not None:
                entry['error_kind'] = result.error.kind.value
                entry['error'] = result.error.detail
            collectors[name] = entry

        return {
            'started_at': self.started_at,
            'finished_at': self.finished_at,
            'total': len(self.results),
            'success': sum(1 for r in self.results.values() if r.is_success()),
            'skipped': sum(1 for r in self.results.values() if r.is_skipped()),
            'failed': sum(1 for r in self.results.values() if r.is_failed()),
            'collectors': collectors,
        }
