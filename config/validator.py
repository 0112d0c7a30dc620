# -*- coding: utf-8 -*-
"""
配置验证模块

功能：
- 验证配置的取值范围
- 凭证缺失不算错误（只禁用对应 collector）
"""

from typing import Optional, Tuple
from config.loader import ExporterConfig

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def validate_config(config: ExporterConfig) -> Tuple[bool, Optional[str]]:
    """
    验证配置对象

    Args:
        config: 配置对象

    Returns:
        (is_valid, error_message) 元组
    """
    if not 1 <= config.port <= 65535:
        return False, f"port 必须在 1-65535 之间: {config.port}"

    if config.collection_interval <= 0:
        return False, f"collection_interval 必须是正整数: {config.collection_interval}"

    if config.http_timeout <= 0:
        return False, f"http_timeout 必须大于 0: {config.http_timeout}"

    if config.log_level not in VALID_LOG_LEVELS:
        return False, f"log_level 必须是以下值之一: {', '.join(VALID_LOG_LEVELS)}"

    return True, None
