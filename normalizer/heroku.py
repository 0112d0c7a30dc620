# -*- coding: utf-8 -*-
"""
Heroku 团队用量 / 账单归一化

功能：
- 团队月度用量：团队汇总行和各 app 明细行写入同一指标族，汇总行 app="_aggregate_total"
- 只保留当前月和上个月的行，其他月份直接忽略
- 账单：按 period_end 排序，最后一张为 current，倒数第二张为 previous；金额从美分换算为美元
"""

from datetime import date
from typing import Any, Dict, List
from collector.observation import MetricFamily, Observation
from normalizer.common import (
    AGGREGATE_TOTAL, PERIOD_CURRENT, PERIOD_PREVIOUS,
    parse_positive, minor_to_major, current_and_previous, billing_months
)

HEROKU_USAGE = MetricFamily(
    name='heroku_usage',
    documentation='Heroku team monthly usage by app and resource',
    label_names=('team', 'app', 'resource', 'period')
)

HEROKU_INVOICE_AMOUNT = MetricFamily(
    name='heroku_invoice_amount_dollars',
    documentation='Heroku team invoice amount in dollars',
    label_names=('team', 'component', 'period')
)

HEROKU_INVOICE_DYNO_UNITS = MetricFamily(
    name='heroku_invoice_dyno_units',
    documentation='Heroku team invoice dyno units',
    label_names=('team', 'period')
)

# 团队汇总行包含的资源字段
TEAM_RESOURCES = ('dynos', 'addons', 'data', 'partner', 'connect', 'space')

# app 明细行包含的资源字段
APP_RESOURCES = ('dynos', 'addons', 'data', 'partner')

# 账单金额字段（单位：美分）
INVOICE_AMOUNTS = ('total', 'charges_total', 'credits_total', 'addons_total', 'database_total', 'platform_total')


def normalize_heroku_usage(team: str, rows: List[Dict[str, Any]], today: date) -> List[Observation]:
    """
    归一化团队月度用量

    Args:
        team: 团队名
        rows: /teams/{team}/usage/monthly 返回的行
        today: 当前日期（决定哪个月是 current）

    Returns:
        Observation 列表
    """
    previous_month, current_month = billing_months(today)
    periods = {current_month: PERIOD_CURRENT, previous_month: PERIOD_PREVIOUS}

    observations = []
    for row in rows:
        period = periods.get(str(row.get('month') or '')[:7])
        if period is None:
            continue

        observations.extend(_usage_observations(team, AGGREGATE_TOTAL, period, row, TEAM_RESOURCES))

        for app in row.get('apps') or []:
            app_name = app.get('app_name')
            if not app_name:
                continue
            observations.extend(_usage_observations(team, app_name, period, app, APP_RESOURCES))

    return observations


def _usage_observations(team: str, app: str, period: str, row: Dict[str, Any], resources) -> List[Observation]:
    observations = []
    for resource in resources:
        value = parse_positive(row.get(resource))
        if value is None:
            continue
        observations.append(Observation(
            metric_family=HEROKU_USAGE.name,
            labels={'team': team, 'app': app, 'resource': resource, 'period': period},
            value=value
        ))
    return observations


def normalize_heroku_invoices(team: str, invoices: List[Dict[str, Any]]) -> List[Observation]:
    """
    归一化团队账单

    Args:
        team: 团队名
        invoices: /teams/{team}/invoices 返回的账单列表

    Returns:
        Observation 列表（只有一张账单时没有 previous）
    """
    observations = []

    for period, invoice in current_and_previous(invoices, 'period_end').items():
        for component in INVOICE_AMOUNTS:
            value = minor_to_major(parse_positive(invoice.get(component)))
            if value is None:
                continue
            observations.append(Observation(
                metric_family=HEROKU_INVOICE_AMOUNT.name,
                labels={'team': team, 'component': component, 'period': period},
                value=value
            ))

        dyno_units = parse_positive(invoice.get('dyno_units'))
        if dyno_units is not None:
            observations.append(Observation(
                metric_family=HEROKU_INVOICE_DYNO_UNITS.name,
                labels={'team': team, 'period': period},
                value=dyno_units
            ))

    return observations
