# -*- coding: utf-8 -*-
"""
Source Collector 模块

功能：
- 定义 SourceCollector 接口
- 实现 Twilio / Heroku 的 collector
"""

from provider.base import SourceCollector, HttpSourceCollector
from provider.twilio import TwilioUsageCollector
from provider.heroku import HerokuUsageCollector, HerokuInvoiceCollector

__all__ = [
    'SourceCollector', 'HttpSourceCollector',
    'TwilioUsageCollector', 'HerokuUsageCollector', 'HerokuInvoiceCollector'
]
