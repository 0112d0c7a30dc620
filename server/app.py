# -*- coding: utf-8 -*-
"""
HTTP 服务

功能：
- /metrics: 每次请求实时渲染 Metric Store，供 Prometheus 抓取
- /health: 健康检查，只要进程在接受连接就返回 200
- /status: 定时任务状态和最近一次采集周期的汇总
"""

from typing import Optional
from flask import Flask, jsonify
from collector.store import MetricStore
from scheduler.scheduler import CollectionScheduler


def create_app(store: MetricStore, scheduler: Optional[CollectionScheduler] = None) -> Flask:
    """
    创建 Flask 应用

    Args:
        store: Metric Store
        scheduler: 采集调度器（可选，用于 /status）

    Returns:
        Flask 应用
    """
    app = Flask(__name__)

    @app.route('/metrics')
    def metrics():
        """
        Prometheus metrics 端点

        格式：Prometheus text format
        """
        return store.render(), 200, {'Content-Type': store.content_type}

    @app.route('/health')
    def health():
        """健康检查端点（不依赖采集是否成功）"""
        return 'OK', 200, {'Content-Type': 'text/plain; charset=utf-8'}

    @app.route('/status')
    def status():
        """定时任务状态"""
        body = {'status': 'healthy'}
        if scheduler is not None:
            body['scheduler'] = scheduler.get_status()
        return jsonify(body), 200

    return app
