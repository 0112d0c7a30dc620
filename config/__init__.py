# -*- coding: utf-8 -*-
"""
配置模块

功能：
- 加载 YAML / 环境变量配置
- 验证配置取值范围
"""

from config.loader import ExporterConfig, TwilioConfig, HerokuConfig, load_config
from config.validator import validate_config

__all__ = ['ExporterConfig', 'TwilioConfig', 'HerokuConfig', 'load_config', 'validate_config']
