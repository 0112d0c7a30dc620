# -*- coding: utf-8 -*-
"""
Source Collector 单元测试（使用 httpx.MockTransport，不访问外网）
"""

import base64
from datetime import date

import httpx
import pytest

from collector.observation import ErrorKind
from normalizer.twilio import TWILIO_USAGE
from normalizer.heroku import HEROKU_USAGE, HEROKU_INVOICE_AMOUNT, HEROKU_INVOICE_DYNO_UNITS
from provider.twilio import TwilioUsageCollector, SUBRESOURCES
from provider.heroku import HerokuUsageCollector, HerokuInvoiceCollector


class RecordingHandler:
    """记录请求并返回预设响应"""

    def __init__(self, respond):
        self.respond = respond
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)


def twilio_records(request):
    subresource = request.url.path.rsplit('/', 1)[-1].replace('.json', '')
    return httpx.Response(200, json={'usage_records': [
        {'category': 'sms', 'price': '12.50', 'price_unit': 'usd', 'count': '3', 'count_unit': subresource},
    ]})


class TestTwilioUsageCollector:

    def make(self, handler, **overrides):
        kwargs = dict(account_id='AC123', sid='SK1', secret='s3cret', transport=httpx.MockTransport(handler))
        kwargs.update(overrides)
        return TwilioUsageCollector(**kwargs)

    @pytest.mark.parametrize('missing', ['account_id', 'sid', 'secret'])
    def test_missing_credentials_is_unconfigured(self, missing):
        handler = RecordingHandler(twilio_records)
        result = self.make(handler, **{missing: ''}).collect()

        assert result.is_skipped()
        assert result.error.kind == ErrorKind.UNCONFIGURED
        assert handler.requests == []

    def test_success_fetches_all_subresources(self):
        handler = RecordingHandler(twilio_records)
        collector = self.make(handler)
        result = collector.collect()

        assert result.is_success()
        assert collector.families == [TWILIO_USAGE]
        assert [r.url.path for r in handler.requests] == [
            f"/2010-04-01/Accounts/AC123/Usage/Records/{name}.json" for name in SUBRESOURCES
        ]

        expected_auth = 'Basic ' + base64.b64encode(b'SK1:s3cret').decode('ascii')
        assert all(r.headers['Authorization'] == expected_auth for r in handler.requests)

        observations = result.batch.for_family(TWILIO_USAGE.name)
        assert len(observations) == 2 * len(SUBRESOURCES)
        assert {obs.labels['subresource'] for obs in observations} == set(SUBRESOURCES)

    def test_non_200_fails_whole_collection(self):
        def respond(request):
            if request.url.path.endswith('/Yesterday.json'):
                return httpx.Response(500, text='internal error')
            return twilio_records(request)

        result = self.make(RecordingHandler(respond)).collect()

        assert result.is_failed()
        assert result.error.kind == ErrorKind.INVALID_RESPONSE
        assert '500' in result.error.detail
        assert result.batch is None

    def test_timeout_is_transient(self):
        def respond(request):
            raise httpx.ConnectTimeout('timed out', request=request)

        result = self.make(RecordingHandler(respond)).collect()

        assert result.is_failed()
        assert result.error.kind == ErrorKind.TRANSIENT

    def test_connection_error_is_transient(self):
        def respond(request):
            raise httpx.ConnectError('connection refused', request=request)

        result = self.make(RecordingHandler(respond)).collect()
        assert result.error.kind == ErrorKind.TRANSIENT

    def test_undecodable_body(self):
        result = self.make(RecordingHandler(lambda request: httpx.Response(200, content=b'<html>'))).collect()

        assert result.is_failed()
        assert result.error.kind == ErrorKind.INVALID_RESPONSE

    def test_unexpected_shape(self):
        result = self.make(RecordingHandler(lambda request: httpx.Response(200, json={'records': []}))).collect()
        assert result.error.kind == ErrorKind.INVALID_RESPONSE


class TestHerokuUsageCollector:

    def test_requests_previous_to_current_month(self):
        handler = RecordingHandler(lambda request: httpx.Response(200, json=[
            {'month': '2026-10', 'dynos': 4, 'apps': [{'app_name': 'web', 'dynos': 4}]},
        ]))
        collector = HerokuUsageCollector(
            api_token='tok', team='acme', today=lambda: date(2026, 10, 16),
            transport=httpx.MockTransport(handler)
        )
        result = collector.collect()

        assert result.is_success()
        assert collector.families == [HEROKU_USAGE]

        request = handler.requests[0]
        assert request.url.path == '/teams/acme/usage/monthly'
        assert request.url.params['start'] == '2026-09'
        assert request.url.params['end'] == '2026-10'
        assert request.headers['Authorization'] == 'Bearer tok'
        assert request.headers['Accept'] == 'application/vnd.heroku+json; version=3'
        assert result.observation_count == 2

    def test_missing_team_is_unconfigured(self):
        result = HerokuUsageCollector(api_token='tok', team='').collect()
        assert result.error.kind == ErrorKind.UNCONFIGURED


class TestHerokuInvoiceCollector:

    def make(self, respond):
        handler = RecordingHandler(respond)
        return HerokuInvoiceCollector(api_token='tok', team='acme', transport=httpx.MockTransport(handler)), handler

    def test_invoices(self):
        collector, handler = self.make(lambda request: httpx.Response(200, json=[
            {'period_end': '2026-09-30', 'total': 2000, 'dyno_units': 2},
            {'period_end': '2026-10-31', 'total': 1050},
        ]))
        result = collector.collect()

        assert result.is_success()
        assert handler.requests[0].url.path == '/teams/acme/invoices'
        assert collector.families == [HEROKU_INVOICE_AMOUNT, HEROKU_INVOICE_DYNO_UNITS]

        amounts = {obs.labels['period']: obs.value for obs in result.batch.for_family(HEROKU_INVOICE_AMOUNT.name)}
        assert amounts == {'current': 10.5, 'previous': 20.0}
        assert len(result.batch.for_family(HEROKU_INVOICE_DYNO_UNITS.name)) == 1

    def test_non_list_body(self):
        collector, _ = self.make(lambda request: httpx.Response(200, json={'id': 'not_found'}))
        result = collector.collect()

        assert result.is_failed()
        assert result.error.kind == ErrorKind.INVALID_RESPONSE

    def test_forbidden(self):
        collector, _ = self.make(lambda request: httpx.Response(403, json={'id': 'forbidden'}))
        result = collector.collect()

        assert result.error.kind == ErrorKind.INVALID_RESPONSE
        assert '403' in result.error.detail


class TestMalformedElements:
    """200 响应但数组元素不是对象"""

    def test_twilio_records_not_objects(self):
        handler = RecordingHandler(lambda request: httpx.Response(200, json={'usage_records': ['oops']}))
        collector = TwilioUsageCollector(
            account_id='AC123', sid='SK1', secret='s3cret', transport=httpx.MockTransport(handler)
        )
        result = collector.collect()

        assert result.is_failed()
        assert result.error.kind == ErrorKind.INVALID_RESPONSE

    def test_heroku_invoices_not_objects(self):
        handler = RecordingHandler(lambda request: httpx.Response(200, json=[1, 2]))
        collector = HerokuInvoiceCollector(api_token='tok', team='acme', transport=httpx.MockTransport(handler))
        result = collector.collect()

        assert result.is_failed()
        assert result.error.kind == ErrorKind.INVALID_RESPONSE

    @pytest.mark.parametrize('apps', [['web'], 'web', {'app_name': 'web'}])
    def test_heroku_usage_apps_not_object_list(self, apps):
        handler = RecordingHandler(lambda request: httpx.Response(200, json=[{'month': '2026-10', 'apps': apps}]))
        collector = HerokuUsageCollector(
            api_token='tok', team='acme', today=lambda: date(2026, 10, 16),
            transport=httpx.MockTransport(handler)
        )
        result = collector.collect()

        assert result.is_failed()
        assert result.error.kind == ErrorKind.INVALID_RESPONSE


class TestPathEscaping:
    """team / account_id 只占 URL path 的一段"""

    def test_heroku_team_is_escaped(self):
        handler = RecordingHandler(lambda request: httpx.Response(200, json=[]))
        collector = HerokuInvoiceCollector(api_token='tok', team='a/b?x', transport=httpx.MockTransport(handler))

        assert collector.collect().is_success()
        assert handler.requests[0].url.raw_path == b'/teams/a%2Fb%3Fx/invoices'

    def test_twilio_account_is_escaped(self):
        handler = RecordingHandler(twilio_records)
        collector = TwilioUsageCollector(
            account_id='AC/1', sid='SK1', secret='s3cret', transport=httpx.MockTransport(handler)
        )

        assert collector.collect().is_success()
        assert handler.requests[0].url.raw_path == b'/2010-04-01/Accounts/AC%2F1/Usage/Records/Today.json'
