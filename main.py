#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Billing Usage Exporter 主程序入口

功能：
- 加载配置，按凭证创建 Source Collector
- 启动后台采集线程（启动时立即采集一次，之后每小时一次）
- 启动 Flask HTTP 服务器，暴露 /metrics 和 /health 端点
"""

import logging
import signal
import sys
from typing import List

import yaml

from config.loader import ExporterConfig, load_config
from config.validator import validate_config
from collector.store import MetricStore
from provider.base import SourceCollector
from provider.twilio import TwilioUsageCollector
from provider.heroku import HerokuUsageCollector, HerokuInvoiceCollector
from scheduler.scheduler import CollectionScheduler
from server.app import create_app

# 配置日志
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# 设置特定模块的日志级别
logging.getLogger('werkzeug').setLevel(logging.WARNING)  # 减少 Flask 日志
logging.getLogger('httpx').setLevel(logging.WARNING)


def build_collectors(config: ExporterConfig) -> List[SourceCollector]:
    """
    创建所有 Source Collector

    凭证缺失的 collector 也会创建，第一次采集时返回 unconfigured 并被跳过
    """
    timeout = config.http_timeout
    return [
        TwilioUsageCollector(
            account_id=config.twilio.account_id,
            sid=config.twilio.sid,
            secret=config.twilio.secret,
            timeout=timeout
        ),
        HerokuUsageCollector(
            api_token=config.heroku.api_token,
            team=config.heroku.team,
            timeout=timeout
        ),
        HerokuInvoiceCollector(
            api_token=config.heroku.api_token,
            team=config.heroku.team,
            timeout=timeout
        ),
    ]


def main():
    # Phase 1: 加载配置
    try:
        config = load_config()
    except (IOError, yaml.YAMLError, ValueError) as e:
        logger.error(f"加载配置失败: {e}")
        sys.exit(1)

    is_valid, error_message = validate_config(config)
    if not is_valid:
        logger.error(f"配置无效: {error_message}")
        sys.exit(1)

    logging.getLogger().setLevel(getattr(logging, config.log_level))

    logger.info("=" * 60)
    logger.info(f"端口: {config.port}, 采集间隔: {config.collection_interval}s, HTTP 超时: {config.http_timeout}s")
    logger.info("=" * 60)

    # Phase 2: 初始化采集组件
    store = MetricStore()
    scheduler = CollectionScheduler(
        collectors=build_collectors(config),
        store=store,
        interval=config.collection_interval
    )
    app = create_app(store, scheduler)

    def handle_sigterm(signum, frame):
        logger.info("收到 SIGTERM，等待当前采集周期结束后退出")
        scheduler.stop()
        sys.exit(0)

    signal.signal(signal.SIGTERM, handle_sigterm)

    # Phase 3: 启动定时任务（后台线程中立即执行第一次采集）
    scheduler.start()

    # Phase 4: 启动 Flask 服务器
    logger.info(f"Starting HTTP server on port {config.port}")
    try:
        app.run(host='0.0.0.0', port=config.port, debug=False, use_reloader=False)
    except OSError as e:
        logger.error(f"无法监听端口 {config.port}: {e}")
        sys.exit(1)

    # Ctrl+C 时 werkzeug 正常返回
    scheduler.stop()


if __name__ == '__main__':
    main()
