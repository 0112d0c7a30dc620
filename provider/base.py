# -*- coding: utf-8 -*-
"""
Source Collector 接口定义

功能：
- 定义 SourceCollector 接口，Scheduler 只依赖接口，不关心具体厂商
- 提供 HTTP JSON 请求和错误分类（网络错误 / 非 200 / 响应体无法解析）
- 不做重试，失败由下一个采集周期重试
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote
import httpx
from collector.observation import MetricFamily, CollectResult, CollectError, ErrorKind

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0

# 错误详情中保留的响应体长度
_BODY_PREVIEW = 200


def path_segment(value: str) -> str:
    """URL path 中的单段（"/"、"?" 等字符会被转义）"""
    return quote(str(value), safe='')


def is_object_list(value: Any) -> bool:
    """是否为 JSON 对象数组"""
    return isinstance(value, list) and all(isinstance(item, dict) for item in value)


class SourceCollector(ABC):
    """
    Source Collector 接口

    每个外部账单 / 用量 API 一个实现，构造时固定地址、凭证和超时，
    collect() 之间不保存状态
    """

    name: str = 'source'

    @property
    @abstractmethod
    def families(self) -> List[MetricFamily]:
        """
        该 collector 负责的指标族

        Returns:
            指标族列表，采集成功时这些指标族会被整体替换
        """
        pass

    @abstractmethod
    def collect(self) -> CollectResult:
        """
        执行一次采集

        Returns:
            CollectResult，预期内的失败不抛异常
        """
        pass

    def missing_credentials(self) -> List[str]:
        """返回缺失的凭证字段名，空列表表示已配置"""
        return []


class HttpSourceCollector(SourceCollector):
    """
    基于 HTTP JSON API 的 Source Collector

    子类提供 families / collect，用 _get_json 发请求
    """

    def __init__(self, base_url: str, timeout: float = DEFAULT_TIMEOUT,
                 transport: Optional[httpx.BaseTransport] = None):
        """
        Args:
            base_url: API 根地址
            timeout: 单次请求超时（秒）
            transport: httpx transport（可选，测试时注入 MockTransport）
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.transport = transport

    def _client(self, **kwargs) -> httpx.Client:
        return httpx.Client(timeout=self.timeout, transport=self.transport, **kwargs)

    def _unconfigured(self) -> Optional[CollectResult]:
        missing = self.missing_credentials()
        if missing:
            return CollectResult.failure(self.name, ErrorKind.UNCONFIGURED, f"缺少凭证: {', '.join(missing)}")
        return None

    def _get_json(self, client: httpx.Client, path: str,
                  params: Optional[Dict[str, str]] = None) -> Tuple[Any, Optional[CollectError]]:
        """
        GET 并解析 JSON

        Returns:
            (payload, None) 或 (None, CollectError)
        """
        url = f"{self.base_url}{path}"
        logger.debug(f"[{self.name}] GET {url} params={params}")

        try:
            response = client.get(url, params=params)
        except httpx.TimeoutException as e:
            return None, CollectError(ErrorKind.TRANSIENT, f"请求超时 {url}: {e}")
        except httpx.RequestError as e:
            return None, CollectError(ErrorKind.TRANSIENT, f"请求失败 {url}: {e}")

        if response.status_code != 200:
            body = response.text[:_BODY_PREVIEW]
            return None, CollectError(
                ErrorKind.INVALID_RESPONSE,
                f"{url} 返回状态码 {response.status_code}: {body}"
            )

        try:
            return response.json(), None
        except ValueError as e:
            return None, CollectError(ErrorKind.INVALID_RESPONSE, f"{url} 响应体不是合法 JSON: {e}")
