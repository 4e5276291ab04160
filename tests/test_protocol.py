import logging

import pytest

from src.inline_edit.protocol import (
    CrossFrameProtocol,
    origin_from_url,
    parse_inbound,
    resolve_parent_origin,
)


@pytest.fixture
def posted():
    return []


@pytest.fixture
def protocol(posted):
    return CrossFrameProtocol(post=lambda message, origin: posted.append((message, origin)))


class TestInbound:

    def test_parse_enable_with_translations(self):
        message = parse_inbound({
            'type': 'enable-edit-mode',
            'translations': {'save': 'Guardar', 'bogus': 'x', 'cancel': None},
        })
        assert message.type == 'enable-edit-mode'
        assert message.translations == {'save': 'Guardar'}

    def test_parse_disable(self):
        message = parse_inbound({'type': 'disable-edit-mode'})
        assert message.type == 'disable-edit-mode'
        assert message.translations is None

    @pytest.mark.parametrize('data', [None, 'enable-edit-mode', {'type': 'editEnter'}, {}, ['x']])
    def test_unknown_messages_are_ignored(self, data):
        assert parse_inbound(data) is None

    def test_dispatches_to_registered_callbacks(self, protocol):
        received = []
        protocol.on('enable-edit-mode', received.append)
        protocol.handle_inbound({'type': 'enable-edit-mode'})
        protocol.handle_inbound({'type': 'disable-edit-mode'})
        assert [m.type for m in received] == ['enable-edit-mode']

    def test_off_unregisters(self, protocol):
        received = []
        protocol.on('disable-edit-mode', received.append)
        protocol.off('disable-edit-mode', received.append)
        protocol.handle_inbound({'type': 'disable-edit-mode'})
        assert received == []

    def test_callbacks_finish_before_dispatch_returns(self, protocol):
        order = []
        protocol.on('enable-edit-mode', lambda message: order.append('callback'))
        protocol.handle_inbound({'type': 'enable-edit-mode'})
        order.append('returned')
        assert order == ['callback', 'returned']

    def test_failing_callback_does_not_stop_others(self, protocol, caplog):
        received = []

        def broken(message):
            raise RuntimeError('boom')

        protocol.on('enable-edit-mode', broken)
        protocol.on('enable-edit-mode', received.append)
        with caplog.at_level(logging.ERROR):
            protocol.handle_inbound({'type': 'enable-edit-mode'})
        assert len(received) == 1
        assert 'boom' in caplog.text


class TestOrigin:

    @pytest.mark.parametrize('url, expected', [
        ('https://horizons.hostinger.com/projects/42', 'https://horizons.hostinger.com'),
        ('http://localhost:4000/preview?x=1', 'http://localhost:4000'),
        ('https://Example.COM:443/', 'https://example.com'),
        ('http://example.com:8080', 'http://example.com:8080'),
        ('', None),
        (None, None),
        ('not a url', None),
    ])
    def test_origin_from_url(self, url, expected):
        assert origin_from_url(url) == expected

    def test_ancestor_origin_wins_over_referrer(self):
        assert resolve_parent_origin(['https://a.example'], 'http://b.example/') == 'https://a.example'

    def test_falls_back_to_referrer(self):
        assert resolve_parent_origin([], 'http://localhost:4000/p') == 'http://localhost:4000'

    def test_nothing_known(self):
        assert resolve_parent_origin(None, '') is None


class TestOutbound:

    def test_sends_to_allowed_origin(self, protocol, posted):
        protocol.set_origin_info(referrer='http://localhost:4000/project')
        assert protocol.notify_edit_enter() is True
        assert posted == [({'type': 'editEnter'}, 'http://localhost:4000')]

    def test_refuses_unknown_origin(self, protocol, posted, caplog):
        protocol.set_origin_info(ancestor_origins=['https://evil.example'])
        with caplog.at_level(logging.ERROR):
            assert protocol.notify_edit_cancel() is False
        assert posted == []
        assert 'Unauthorized parent origin: https://evil.example' in caplog.text

    def test_refuses_when_origin_unresolved(self, protocol, posted):
        assert protocol.parent_origin is None
        assert protocol.notify_edit_enter() is False
        assert posted == []

    def test_edit_applied_payload(self, protocol, posted):
        protocol.set_origin_info(ancestor_origins=['https://horizons.hostinger.com'])
        protocol.notify_edit_applied('src/A.jsx:1:1', 'new file', '<p>a</p>', '<p>b</p>')
        message, origin = posted[0]
        assert origin == 'https://horizons.hostinger.com'
        assert message == {
            'type': 'editApplied',
            'payload': {
                'editId': 'src/A.jsx:1:1',
                'fileContent': 'new file',
                'beforeCode': '<p>a</p>',
                'afterCode': '<p>b</p>',
            },
        }

    def test_custom_allowlist(self, posted):
        protocol = CrossFrameProtocol(
            allowed_origins=['https://studio.example'],
            post=lambda message, origin: posted.append((message, origin)),
        )
        protocol.set_origin_info(referrer='https://studio.example/x')
        assert protocol.notify_edit_enter()
        assert protocol.allowed_origins == ('https://studio.example',)
