# -*- coding: utf-8 -*-
"""
测试公共 fixture
"""

import pytest
from collector.observation import MetricFamily, Observation, ObservationBatch, CollectResult
from collector.store import MetricStore
from provider.base import SourceCollector

USAGE = MetricFamily(
    name='test_usage',
    documentation='Test usage',
    label_names=('category', 'unit')
)


def usage(category, unit, value):
    return Observation(metric_family=USAGE.name, labels={'category': category, 'unit': unit}, value=value)


class FakeCollector(SourceCollector):
    """按顺序返回预设结果的 collector（最后一个结果会一直重复）"""

    def __init__(self, name, results, families=None):
        self.name = name
        self._families = families or [USAGE]
        self._results = list(results)
        self.calls = 0

    @property
    def families(self):
        return self._families

    def collect(self):
        self.calls += 1
        result = self._results.pop(0) if len(self._results) > 1 else self._results[0]
        if isinstance(result, Exception):
            raise result
        return result


def success(name, observations):
    return CollectResult.success(name, ObservationBatch(observations))


@pytest.fixture
def store():
    metric_store = MetricStore()
    metric_store.register(USAGE)
    return metric_store
