# -*- coding: utf-8 -*-
"""
Exporter 配置加载模块

功能：
- 从 YAML 文件（可选）加载配置
- 环境变量覆盖 YAML 中的同名配置
- 定义清晰的数据结构（ExporterConfig / TwilioConfig / HerokuConfig）
- 读取失败时给出明确错误
"""

import yaml
import os
from typing import Any, Dict, Mapping, Optional
from dataclasses import dataclass, field


@dataclass
class TwilioConfig:
    """Twilio 凭证（任意一项为空则 Twilio collector 不采集）"""
    account_id: str = ''
    sid: str = ''
    secret: str = ''


@dataclass
class HerokuConfig:
    """Heroku 凭证（任意一项为空则 Heroku collector 不采集）"""
    api_token: str = ''
    team: str = ''


@dataclass
class ExporterConfig:
    """配置的根数据结构"""
    port: int = 8080                  # 监听端口
    collection_interval: int = 3600   # 采集间隔（秒），默认 1 小时
    http_timeout: float = 10.0        # 单次 HTTP 请求超时（秒）
    log_level: str = 'INFO'
    twilio: TwilioConfig = field(default_factory=TwilioConfig)
    heroku: HerokuConfig = field(default_factory=HerokuConfig)


# 环境变量 -> (配置段, 字段)
ENV_MAPPING = {
    'PORT': (None, 'port'),
    'COLLECTION_INTERVAL': (None, 'collection_interval'),
    'HTTP_TIMEOUT': (None, 'http_timeout'),
    'LOG_LEVEL': (None, 'log_level'),
    'TWILIO_ACCOUNT_ID': ('twilio', 'account_id'),
    'TWILIO_SID': ('twilio', 'sid'),
    'TWILIO_SECRET': ('twilio', 'secret'),
    'HEROKU_API_TOKEN': ('heroku', 'api_token'),
    'HEROKU_TEAM': ('heroku', 'team'),
}


def load_config(config_path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> ExporterConfig:
    """
    加载 Exporter 配置

    Args:
        config_path: YAML 配置文件路径（可选，为 None 时读取环境变量 EXPORTER_CONFIG）
        environ: 环境变量（默认 os.environ）

    Returns:
        ExporterConfig 对象

    Raises:
        FileNotFoundError: 指定的配置文件不存在
        yaml.YAMLError: YAML 解析错误
        ValueError: 配置格式错误
    """
    if environ is None:
        environ = os.environ

    config_path = config_path or environ.get('EXPORTER_CONFIG')
    data = _load_yaml(config_path) if config_path else {}

    # 环境变量覆盖文件配置
    for env_key, (section, key) in ENV_MAPPING.items():
        value = environ.get(env_key)
        if value is None or value == '':
            continue
        if section is None:
            data[key] = value
        else:
            if not isinstance(data.get(section), dict):
                data[section] = {}
            data[section][key] = value

    return _parse_config(data)


def _load_yaml(config_path: str) -> Dict[str, Any]:
    # 检查文件是否存在
    if not os.path.exists(config_path):
        raise FileNotFoundError(f"配置文件不存在: {config_path}")

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            content = f.read()
    except IOError as e:
        raise IOError(f"无法读取配置文件 {config_path}: {e}")

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"YAML 解析失败: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("配置格式错误: 顶层必须是字典类型")
    return data


def _parse_config(data: Dict[str, Any]) -> ExporterConfig:
    """
    解析配置字典

    Raises:
        ValueError: 字段类型错误
    """
    twilio_data = _section(data, 'twilio')
    heroku_data = _section(data, 'heroku')

    return ExporterConfig(
        port=_as_int(data.get('port', 8080), 'port'),
        collection_interval=_as_int(data.get('collection_interval', 3600), 'collection_interval'),
        http_timeout=_as_float(data.get('http_timeout', 10.0), 'http_timeout'),
        log_level=str(data.get('log_level', 'INFO')).upper(),
        twilio=TwilioConfig(
            account_id=str(twilio_data.get('account_id') or '').strip(),
            sid=str(twilio_data.get('sid') or '').strip(),
            secret=str(twilio_data.get('secret') or '').strip()
        ),
        heroku=HerokuConfig(
            api_token=str(heroku_data.get('api_token') or '').strip(),
            team=str(heroku_data.get('team') or '').strip()
        )
    )


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"配置格式错误: '{name}' 必须是字典类型")
    return section


def _as_int(value: Any, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} 必须是整数: {value!r}")


def _as_float(value: Any, name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} 必须是数字: {value!r}")
