# -*- coding: utf-8 -*-
"""
HTTP 端点和端到端场景测试
"""

import httpx
import pytest

from collector.store import MetricStore
from normalizer.twilio import TWILIO_USAGE
from provider.twilio import TwilioUsageCollector
from provider.heroku import HerokuUsageCollector, HerokuInvoiceCollector
from scheduler.scheduler import CollectionScheduler
from server.app import create_app


@pytest.fixture
def store():
    return MetricStore()


class TestEndpoints:

    def test_health_without_any_collection(self, store):
        client = create_app(store).test_client()
        response = client.get('/health')

        assert response.status_code == 200
        assert response.get_data(as_text=True) == 'OK'

    def test_metrics_content_type(self, store):
        client = create_app(store).test_client()
        response = client.get('/metrics')

        assert response.status_code == 200
        assert response.headers['Content-Type'].startswith('text/plain')

    def test_status_reports_scheduler(self, store):
        scheduler = CollectionScheduler([], store, interval=120)
        scheduler.run_cycle()
        client = create_app(store, scheduler).test_client()

        body = client.get('/status').get_json()

        assert body['status'] == 'healthy'
        assert body['scheduler']['interval'] == 120
        assert body['scheduler']['last_cycle']['total'] == 0


class TestEndToEnd:

    def test_unset_credentials(self, store):
        collectors = [
            TwilioUsageCollector(account_id='', sid='', secret=''),
            HerokuUsageCollector(api_token='', team=''),
            HerokuInvoiceCollector(api_token='', team=''),
        ]
        scheduler = CollectionScheduler(collectors, store)
        client = create_app(store, scheduler).test_client()

        cycle = scheduler.run_cycle()

        assert cycle.get_summary()['skipped'] == 3
        for family in store.families():
            assert store.snapshot(family.name) == {}
            assert store.last_success(family.name) is None
        assert client.get('/health').status_code == 200

    def test_500_then_200(self, store):
        state = {'status': 500}

        def respond(request):
            if state['status'] != 200:
                return httpx.Response(state['status'], text='upstream down')
            return httpx.Response(200, json={'usage_records': [
                {'category': 'sms', 'price': '12.50', 'price_unit': 'usd'},
            ]})

        collector = TwilioUsageCollector(
            account_id='AC123', sid='SK1', secret='s3cret', transport=httpx.MockTransport(respond)
        )
        scheduler = CollectionScheduler([collector], store)
        client = create_app(store, scheduler).test_client()

        scheduler.run_cycle()
        assert store.snapshot(TWILIO_USAGE.name) == {}
        assert 'twilio_usage{' not in client.get('/metrics').get_data(as_text=True)

        state['status'] = 200
        scheduler.run_cycle()

        assert store.snapshot(TWILIO_USAGE.name) == {
            ('sms', name, 'usd'): 12.5 for name in ('Today', 'Yesterday', 'ThisMonth', 'LastMonth')
        }
        text = client.get('/metrics').get_data(as_text=True)
        assert 'twilio_usage{category="sms",subresource="Today",unit="usd"} 12.5' in text

    def test_decommissioned_series_disappear(self, store):
        records = {'usage_records': [
            {'category': 'sms', 'price': '1.00'},
            {'category': 'calls', 'price': '2.00'},
        ]}

        def respond(request):
            return httpx.Response(200, json=records)

        collector = TwilioUsageCollector(
            account_id='AC123', sid='SK1', secret='s3cret', transport=httpx.MockTransport(respond)
        )
        scheduler = CollectionScheduler([collector], store)
        client = create_app(store, scheduler).test_client()

        scheduler.run_cycle()
        records['usage_records'] = [{'category': 'sms', 'price': '1.00'}]
        scheduler.run_cycle()

        text = client.get('/metrics').get_data(as_text=True)
        assert 'category="calls"' not in text
        assert 'category="sms"' in text
