# -*- coding: utf-8 -*-
"""
Record Normalizer 模块

功能：
- 把各厂商 API 的响应记录转换为 Observation 列表
- 纯函数，不做网络调用，不修改 Metric Store
"""

from normalizer.common import (
    AGGREGATE_TOTAL, parse_positive, minor_to_major, current_and_previous, billing_months
)
from normalizer.twilio import normalize_twilio_usage
from normalizer.heroku import normalize_heroku_usage, normalize_heroku_invoices

__all__ = [
    'AGGREGATE_TOTAL', 'parse_positive', 'minor_to_major', 'current_and_previous', 'billing_months',
    'normalize_twilio_usage', 'normalize_heroku_usage', 'normalize_heroku_invoices'
]
