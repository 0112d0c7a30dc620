# -*- coding: utf-8 -*-
"""
通用归一化工具

功能：
- 宽松解析数值字段（字符串 / 数字）
- 金额最小单位（如美分）换算为主单位（如美元）
- 从按账期排序的记录中选出 current / previous
- 计算当前和上一个自然月
"""

import re
import math
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

# 汇总行的 label 值，用于和明细行区分
AGGREGATE_TOTAL = '_aggregate_total'

PERIOD_CURRENT = 'current'
PERIOD_PREVIOUS = 'previous'

_NUMBER_PREFIX = re.compile(r'^\s*[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?')


def parse_number(raw: Any) -> Optional[float]:
    """
    宽松解析数值

    字符串只取开头的数字部分（如 "12.50 USD" -> 12.5），无法解析返回 None

    Args:
        raw: 原始字段值

    Returns:
        float 或 None
    """
    if raw is None or isinstance(raw, bool):
        return None

    if isinstance(raw, (int, float)):
        value = float(raw)
    elif isinstance(raw, str):
        match = _NUMBER_PREFIX.match(raw)
        if not match:
            return None
        value = float(match.group(0))
    else:
        return None

    if not math.isfinite(value):
        return None
    return value


def parse_positive(raw: Any) -> Optional[float]:
    """
    解析数值，只保留正数

    无法解析、0 或负数都返回 None（调用方不产生 Observation，避免全 0 的噪声序列）
    """
    value = parse_number(raw)
    if value is None or value <= 0:
        return None
    return value


def minor_to_major(minor: Optional[float]) -> Optional[float]:
    """最小货币单位换算为主单位（美分 -> 美元）"""
    if minor is None:
        return None
    return minor / 100.0


def current_and_previous(records: List[Dict[str, Any]], period_key: str) -> Dict[str, Dict[str, Any]]:
    """
    从账期记录中选出 current 和 previous

    按 period_key 升序排列后，最后一条是 current，倒数第二条是 previous；
    不足两条时不返回 previous

    Args:
        records: 账期记录列表
        period_key: 账期结束字段名（ISO 日期字符串，可直接比较）

    Returns:
        {'current': record, 'previous': record}
    """
    ordered = sorted(records, key=lambda record: str(record.get(period_key) or ''))

    selected = {}
    if len(ordered) >= 1:
        selected[PERIOD_CURRENT] = ordered[-1]
    if len(ordered) >= 2:
        selected[PERIOD_PREVIOUS] = ordered[-2]
    return selected


def billing_months(today: date) -> Tuple[str, str]:
    """
    计算上一个自然月和当前自然月

    Returns:
        (previous, current)，格式 "YYYY-MM"
    """
    if today.month == 1:
        previous = date(today.year - 1, 12, 1)
    else:
        previous = date(today.year, today.month - 1, 1)
    return previous.strftime('%Y-%m'), today.strftime('%Y-%m')
