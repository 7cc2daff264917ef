import pytest

from pishield.ratelimit import ClientWindow

TEXT_BODY = {'content': 'A claim that needs checking today.', 'contentType': 'text'}
VIDEO_BODY = {'filename': 'clip.mp4', 'metadata': {'resolution': '1920x1080', 'codec': 'H.264'}}


def test_eleventh_text_request_in_a_window_is_rejected(client):
    for _ in range(10):
        assert client.post('/api/analyze-text', json=TEXT_BODY).status_code == 200
    response = client.post('/api/analyze-text', json=TEXT_BODY)
    assert response.status_code == 429
    assert response.get_json()['error'] == 'Rate limit exceeded. Please try again later.'
    assert 'Retry-After' not in response.headers


def test_rejected_request_does_not_reach_the_model(client, openai_client):
    for _ in range(11):
        client.post('/api/analyze-text', json=TEXT_BODY)
    assert len(openai_client.calls) == 10


def test_next_window_starts_a_fresh_count(client, clock):
    for _ in range(10):
        client.post('/api/analyze-text', json=TEXT_BODY)
    assert client.post('/api/analyze-text', json=TEXT_BODY).status_code == 429

    clock.advance(60)
    assert client.post('/api/analyze-text', json=TEXT_BODY).status_code == 200


def test_window_is_fixed_not_sliding(client, clock):
    clock.advance(59)
    for _ in range(10):
        client.post('/api/analyze-text', json=TEXT_BODY)
    assert client.post('/api/analyze-text', json=TEXT_BODY).status_code == 429
    # One second later the next fixed window begins
    clock.advance(1)
    assert client.post('/api/analyze-text', json=TEXT_BODY).status_code == 200


def test_clients_are_counted_separately(client):
    alice = {'X-Forwarded-For': '203.0.113.7, 10.0.0.1'}
    bob = {'CF-Connecting-IP': '198.51.100.9'}
    for _ in range(10):
        client.post('/api/analyze-text', json=TEXT_BODY, headers=alice)
    assert client.post('/api/analyze-text', json=TEXT_BODY, headers=alice).status_code == 429
    assert client.post('/api/analyze-text', json=TEXT_BODY, headers=bob).status_code == 200


def test_video_analysis_allows_three_per_minute(client):
    for _ in range(3):
        assert client.post('/api/analyze-video', json=VIDEO_BODY).status_code == 200
    assert client.post('/api/analyze-video', json=VIDEO_BODY).status_code == 429


def test_routes_have_independent_counters(client):
    for _ in range(3):
        client.post('/api/analyze-video', json=VIDEO_BODY)
    assert client.post('/api/analyze-video', json=VIDEO_BODY).status_code == 429
    assert client.post('/api/analyze-text', json=TEXT_BODY).status_code == 200


def test_limits_come_from_config(make_app):
    client = make_app({'TEXT_ANALYSIS_RATE_LIMIT': '2 per minute'}).test_client()
    assert client.post('/api/analyze-text', json=TEXT_BODY).status_code == 200
    assert client.post('/api/analyze-text', json=TEXT_BODY).status_code == 200
    assert client.post('/api/analyze-text', json=TEXT_BODY).status_code == 429


def test_unlimited_routes_are_not_counted(client):
    for _ in range(30):
        assert client.get('/api/health').status_code == 200


@pytest.mark.parametrize('headers, expected', [
    ({'CF-Connecting-IP': '198.51.100.9', 'X-Forwarded-For': '203.0.113.7'}, '198.51.100.9'),
    ({'X-Forwarded-For': '203.0.113.7, 10.0.0.1'}, '203.0.113.7'),
    ({}, '127.0.0.1'),
])
def test_client_identifier_precedence(app, headers, expected):
    window = ClientWindow(60, clock=lambda: 125)
    with app.test_request_context('/', headers=headers, environ_base={'REMOTE_ADDR': '127.0.0.1'}):
        assert window.client_id() == expected
        assert window() == f'{expected}:120'
