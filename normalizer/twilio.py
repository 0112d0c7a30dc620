# -*- coding: utf-8 -*-
"""
Twilio Usage Records 归一化

功能：
- 把 Usage Records 响应转换为 twilio_usage 观测值
- 每条记录最多产生三个值：price（金额）、usage（用量）、count（次数）
"""

from typing import Any, Dict, List
from collector.observation import MetricFamily, Observation
from normalizer.common import parse_positive

TWILIO_USAGE = MetricFamily(
    name='twilio_usage',
    documentation='Twilio usage record value',
    label_names=('category', 'subresource', 'unit')
)


def normalize_twilio_usage(subresource: str, records: List[Dict[str, Any]]) -> List[Observation]:
    """
    归一化一个子资源（Today / Yesterday / ThisMonth / LastMonth）的 Usage Records

    Args:
        subresource: 子资源名
        records: usage_records 列表

    Returns:
        Observation 列表；无法解析或非正数的字段直接丢弃
    """
    observations = []

    for record in records:
        category = record.get('category')
        if not category:
            continue

        # (字段, 单位)
        fields = [
            (record.get('price'), (record.get('price_unit') or 'usd').lower()),
            (record.get('usage'), record.get('usage_unit') or ''),
            (record.get('count'), record.get('count_unit') or ''),
        ]

        for raw, unit in fields:
            value = parse_positive(raw)
            if value is None:
                continue
            observations.append(Observation(
                metric_family=TWILIO_USAGE.name,
                labels={'category': category, 'subresource': subresource, 'unit': unit},
                value=value
            ))

    return observations
