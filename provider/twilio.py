# -*- coding: utf-8 -*-
"""
Twilio Usage Collector

功能：
- 调用 Usage Records API 获取 Today / Yesterday / ThisMonth / LastMonth 的用量
- 使用 Account SID + Secret 做 Basic 认证
- 任意一个子资源失败则整次采集失败，避免部分数据把其他子资源的序列清掉
"""

import logging
from typing import List, Optional
import httpx
from collector.observation import MetricFamily, ObservationBatch, CollectResult, ErrorKind
from normalizer.twilio import TWILIO_USAGE, normalize_twilio_usage
from provider.base import HttpSourceCollector, DEFAULT_TIMEOUT, path_segment, is_object_list

logger = logging.getLogger(__name__)

TWILIO_BASE_URL = 'https://api.twilio.com'

SUBRESOURCES = ('Today', 'Yesterday', 'ThisMonth', 'LastMonth')


class TwilioUsageCollector(HttpSourceCollector):
    """Twilio Usage Records collector"""

    name = 'twilio'

    def __init__(self, account_id: str, sid: str, secret: str,
                 base_url: str = TWILIO_BASE_URL, timeout: float = DEFAULT_TIMEOUT,
                 transport: Optional[httpx.BaseTransport] = None):
        super().__init__(base_url, timeout=timeout, transport=transport)
        self.account_id = account_id
        self.sid = sid
        self.secret = secret

    @property
    def families(self) -> List[MetricFamily]:
        return [TWILIO_USAGE]

    def missing_credentials(self) -> List[str]:
        credentials = {
            'TWILIO_ACCOUNT_ID': self.account_id,
            'TWILIO_SID': self.sid,
            'TWILIO_SECRET': self.secret,
        }
        return [key for key, value in credentials.items() if not value]

    def collect(self) -> CollectResult:
        unconfigured = self._unconfigured()
        if unconfigured:
            return unconfigured

        batch = ObservationBatch()
        headers = {'Accept': 'application/json'}

        with self._client(auth=(self.sid, self.secret), headers=headers) as client:
            for subresource in SUBRESOURCES:
                path = f"/2010-04-01/Accounts/{path_segment(self.account_id)}/Usage/Records/{subresource}.json"
                payload, error = self._get_json(client, path)
                if error:
                    return CollectResult.failure(self.name, error.kind, f"{subresource}: {error.detail}")

                records = payload.get('usage_records') if isinstance(payload, dict) else None
                if not is_object_list(records):
                    return CollectResult.failure(
                        self.name, ErrorKind.INVALID_RESPONSE, f"{subresource}: usage_records 不是对象列表"
                    )

                observations = normalize_twilio_usage(subresource, records)
                logger.debug(f"[twilio] {subresource}: {len(records)} 条记录 -> {len(observations)} 个观测值")
                batch.extend(observations)

        return CollectResult.success(self.name, batch)
