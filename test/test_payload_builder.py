import os
import sys
import threading
import uuid

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import pytest
from pydantic import ValidationError

from magic_notifier.capture import ContextCapturer, RequestState, StaticRequestContext
from magic_notifier.config import NotifierConfig
from magic_notifier.errors import CaptureError
from magic_notifier.events import ExceptionEvent, Level, MessageEvent, RuntimeErrorEvent
from magic_notifier.log import MemoryDiagnosticLogger
from magic_notifier.models import ModelPayload
from magic_notifier.payload import PayloadBuilder

TEST_TOKEN = 'ad865e76e7fb496fab096ac07b1dbabb'
FIXED_UUID = uuid.UUID('12345678-1234-5678-1234-567812345678')


class TestPayloadBuilder:

    def setup_method(self):
        self.config = NotifierConfig(
            access_token=TEST_TOKEN,
            environment='test',
            root='/srv/app',
            code_version='abc123',
            host='web-1',
            framework='flask',
            capture_error_backtraces=False,
        )
        self.capturer = ContextCapturer(
            host='web-1',
            root='/srv/app',
            code_version='abc123',
            argv_provider=lambda: ['worker.py'],
        )

    def make(self, capturer=None, logger=None):
        return PayloadBuilder(
            self.config,
            capturer or self.capturer,
            notifier_version='9.9.9',
            clock=lambda: 1700000000.5,
            uuid_factory=lambda: FIXED_UUID,
            logger=logger,
        )

    def test_message_envelope(self):
        payload = self.make().build(MessageEvent('Hello'))
        assert payload.access_token == TEST_TOKEN
        assert payload.uuid == '12345678-1234-5678-1234-567812345678'
        data = payload.to_dict()['data']
        assert data['environment'] == 'test'
        assert data['level'] == 'info'
        assert data['timestamp'] == 1700000000
        assert data['language'] == 'python'
        assert data['platform'] == sys.platform
        assert data['framework'] == 'flask'
        assert data['code_version'] == 'abc123'
        assert data['notifier'] == {'name': 'magic-notifier', 'version': '9.9.9'}
        assert data['body'] == {'message': {'body': 'Hello'}}
        assert data['server'] == {
            'host': 'web-1',
            'root': '/srv/app',
            'code_version': 'abc123',
            'argv': ['worker.py'],
        }
        assert 'request' not in data
        assert 'person' not in data

    def test_message_extra_cannot_replace_text(self):
        payload = self.make().build(MessageEvent('Hello'), {'body': 'other', 'k': 'v'})
        assert payload.data['body']['message'] == {'body': 'Hello', 'k': 'v'}

    def test_message_level(self):
        payload = self.make().build(MessageEvent('Hello', Level.DEBUG))
        assert payload.data['level'] == 'debug'
        payload = self.make().build(MessageEvent('Hello', 'WARN'))
        assert payload.data['level'] == 'warning'

    def test_payload_overrides(self):
        payload = self.make().build(
            MessageEvent('Hello'),
            payload_data={'level': 'warning', 'title': 'custom title', 'context': 'home#index'},
        )
        assert payload.data['level'] == 'warning'
        assert payload.data['title'] == 'custom title'
        assert payload.data['context'] == 'home#index'
        assert payload.data['body']['message']['body'] == 'Hello'

    def test_payload_overrides_do_not_alias_input(self):
        overrides = {'custom': {'a': 1}}
        payload = self.make().build(MessageEvent('Hello'), payload_data=overrides)
        overrides['custom']['a'] = 2
        assert payload.data['custom'] == {'a': 1}

    def test_single_exception_uses_trace(self):
        try:
            raise ValueError('bad value')
        except ValueError as e:
            payload = self.make().build(ExceptionEvent(e), {'this_is': 'extra'})
        body = payload.data['body']
        assert set(body) == {'trace'}
        assert body['trace']['exception'] == {'class': 'ValueError', 'message': 'bad value'}
        assert body['trace']['extra'] == {'this_is': 'extra'}
        assert payload.data['level'] == 'error'

    def test_chained_exception_uses_trace_chain(self):
        try:
            try:
                raise ValueError('inner')
            except ValueError as inner:
                raise RuntimeError('outer') from inner
        except RuntimeError as e:
            payload = self.make().build(ExceptionEvent(e))
        body = payload.data['body']
        assert set(body) == {'trace_chain'}
        assert [t['exception']['class'] for t in body['trace_chain']] == ['RuntimeError', 'ValueError']

    def test_runtime_error_single_frame(self):
        event = RuntimeErrorEvent.create('fatal', 'Out of memory', 'app.py', 10)
        payload = self.make().build(event)
        assert payload.data['level'] == 'critical'
        assert payload.to_dict()['data']['body'] == {
            'trace': {
                'frames': [{'filename': 'app.py', 'lineno': 10}],
                'exception': {'class': 'FatalError', 'message': 'Out of memory'},
            },
        }

    def test_runtime_error_warning_category_class(self):
        event = RuntimeErrorEvent.create(ResourceWarning, 'unclosed file', 'app.py', 3)
        payload = self.make().build(event)
        assert payload.data['body']['trace']['exception']['class'] == 'ResourceWarning'
        assert payload.data['level'] == 'warning'

    def test_request_and_person(self):
        state = RequestState(environ={'HTTP_HOST': 'example.com', 'REQUEST_URI': '/'})
        capturer = ContextCapturer(
            StaticRequestContext(state),
            host='web-1',
            person={'id': 5, 'username': 'bob', 'email': None, 'role': 'admin'},
        )
        payload = self.make(capturer).build(MessageEvent('Hello'))
        assert payload.data['request']['url'] == 'http://example.com/'
        assert payload.data['person'] == {'id': '5', 'username': 'bob'}
        assert 'argv' not in payload.data['server']

    def test_person_provider_failure_propagates(self):
        def provider():
            raise RuntimeError('db down')

        capturer = ContextCapturer(person_provider=provider)
        with pytest.raises(CaptureError):
            self.make(capturer).build(MessageEvent('Hello'))

    def test_person_provider_must_return_mapping(self):
        capturer = ContextCapturer(person_provider=lambda: 'bob')
        with pytest.raises(CaptureError):
            self.make(capturer).build(MessageEvent('Hello'))

    def test_person_provider_returning_none(self):
        capturer = ContextCapturer(person_provider=lambda: None)
        payload = self.make(capturer).build(MessageEvent('Hello'))
        assert 'person' not in payload.data

    def test_payload_is_frozen(self):
        payload = self.make().build(MessageEvent('Hello'))
        with pytest.raises(ValidationError):
            payload.access_token = 'other'

    def test_payload_data_is_read_only(self):
        payload = self.make().build(MessageEvent('Hello'), payload_data={'tags': ['a']})
        with pytest.raises(TypeError):
            payload.data['level'] = 'critical'
        with pytest.raises(TypeError):
            payload.data['body']['message']['body'] = 'tampered'
        with pytest.raises(AttributeError):
            payload.data['tags'].append('b')
        assert payload.data['level'] == 'info'
        assert payload.to_dict()['data']['body'] == {'message': {'body': 'Hello'}}
        assert payload.to_dict()['data']['tags'] == ['a']

    def test_payload_does_not_alias_source_data(self):
        source = {'uuid': 'u-1', 'body': {'message': {'body': 'Hello'}}}
        payload = ModelPayload(access_token=TEST_TOKEN, data=source)
        source['body']['message']['body'] = 'changed'
        source['uuid'] = 'u-2'
        assert payload.uuid == 'u-1'
        assert payload.data['body']['message']['body'] == 'Hello'

    def test_uncopyable_extra_values_are_kept(self):
        lock = threading.Lock()
        payload = self.make().build(MessageEvent('Hello'), {'lock': lock, 'nested': {'lock': lock}})
        message = payload.to_dict()['data']['body']['message']
        assert message['lock'] is lock
        assert message['nested']['lock'] is lock

        try:
            raise ValueError('bad value')
        except ValueError as e:
            payload = self.make().build(ExceptionEvent(e), {'lock': lock})
        assert payload.to_dict()['data']['body']['trace']['extra']['lock'] is lock

    def test_protected_override_is_reported(self):
        log = MemoryDiagnosticLogger()
        payload = self.make(logger=log).build(MessageEvent('Hello'), payload_data={'uuid': 'nope'})
        assert payload.uuid == str(FIXED_UUID)
        assert log.warnings == ["Ignoring payload override of protected key 'uuid'"]

    def test_to_dict_is_a_copy(self):
        payload = self.make().build(MessageEvent('Hello'))
        wire = payload.to_dict()
        wire['data']['body']['message']['body'] = 'changed'
        assert payload.data['body']['message']['body'] == 'Hello'

    def test_unsupported_event(self):
        with pytest.raises(TypeError):
            self.make().build(object())
