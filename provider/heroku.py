# -*- coding: utf-8 -*-
"""
Heroku Collectors

功能：
- HerokuUsageCollector: 团队月度用量（上个月到本月）
- HerokuInvoiceCollector: 团队账单（current / previous）
- 使用 API Token 做 Bearer 认证，每次采集只发一个 GET
"""

import logging
from datetime import date
from typing import Callable, Dict, List, Optional
import httpx
from collector.observation import MetricFamily, ObservationBatch, CollectResult, ErrorKind
from normalizer.common import billing_months
from normalizer.heroku import (
    HEROKU_USAGE, HEROKU_INVOICE_AMOUNT, HEROKU_INVOICE_DYNO_UNITS,
    normalize_heroku_usage, normalize_heroku_invoices
)
from provider.base import HttpSourceCollector, DEFAULT_TIMEOUT, path_segment, is_object_list

logger = logging.getLogger(__name__)

HEROKU_BASE_URL = 'https://api.heroku.com'


class _HerokuCollector(HttpSourceCollector):
    """Heroku Platform API 公共部分（认证和凭证检查）"""

    def __init__(self, api_token: str, team: str,
                 base_url: str = HEROKU_BASE_URL, timeout: float = DEFAULT_TIMEOUT,
                 transport: Optional[httpx.BaseTransport] = None):
        super().__init__(base_url, timeout=timeout, transport=transport)
        self.api_token = api_token
        self.team = team

    def missing_credentials(self) -> List[str]:
        credentials = {
            'HEROKU_API_TOKEN': self.api_token,
            'HEROKU_TEAM': self.team,
        }
        return [key for key, value in credentials.items() if not value]

    def _headers(self) -> Dict[str, str]:
        return {
            'Accept': 'application/vnd.heroku+json; version=3',
            'Authorization': f"Bearer {self.api_token}",
        }

    def _fetch_list(self, path: str, params: Optional[Dict[str, str]] = None):
        """
        GET 一个返回 JSON 数组的接口

        Returns:
            (rows, None) 或 (None, CollectResult)
        """
        with self._client(headers=self._headers()) as client:
            payload, error = self._get_json(client, path, params=params)

        if error:
            return None, CollectResult.failure(self.name, error.kind, error.detail)
        if not is_object_list(payload):
            return None, CollectResult.failure(self.name, ErrorKind.INVALID_RESPONSE, f"{path} 响应不是对象列表")
        return payload, None


class HerokuUsageCollector(_HerokuCollector):
    """Heroku 团队月度用量 collector"""

    name = 'heroku_usage'

    def __init__(self, api_token: str, team: str, today: Callable[[], date] = date.today, **kwargs):
        """
        Args:
            api_token: Heroku API Token
            team: 团队名
            today: 返回当前日期的函数（决定查询月份范围）
        """
        super().__init__(api_token, team, **kwargs)
        self.today = today

    @property
    def families(self) -> List[MetricFamily]:
        return [HEROKU_USAGE]

    def collect(self) -> CollectResult:
        unconfigured = self._unconfigured()
        if unconfigured:
            return unconfigured

        today = self.today()
        previous_month, current_month = billing_months(today)
        rows, failure = self._fetch_list(
            f"/teams/{path_segment(self.team)}/usage/monthly",
            params={'start': previous_month, 'end': current_month}
        )
        if failure:
            return failure

        for row in rows:
            if not is_object_list(row.get('apps') or []):
                return CollectResult.failure(
                    self.name, ErrorKind.INVALID_RESPONSE, f"{row.get('month')} 的 apps 不是对象列表"
                )

        observations = normalize_heroku_usage(self.team, rows, today)
        logger.debug(f"[heroku_usage] {len(rows)} 行 -> {len(observations)} 个观测值")
        return CollectResult.success(self.name, ObservationBatch(observations))


class HerokuInvoiceCollector(_HerokuCollector):
    """Heroku 团队账单 collector"""

    name = 'heroku_invoices'

    @property
    def families(self) -> List[MetricFamily]:
        return [HEROKU_INVOICE_AMOUNT, HEROKU_INVOICE_DYNO_UNITS]

    def collect(self) -> CollectResult:
        unconfigured = self._unconfigured()
        if unconfigured:
            return unconfigured

        invoices, failure = self._fetch_list(f"/teams/{path_segment(self.team)}/invoices")
        if failure:
            return failure

        observations = normalize_heroku_invoices(self.team, invoices)
        logger.debug(f"[heroku_invoices] {len(invoices)} 张账单 -> {len(observations)} 个观测值")
        return CollectResult.success(self.name, ObservationBatch(observations))
