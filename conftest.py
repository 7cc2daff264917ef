import json
from types import SimpleNamespace

import pytest

from pishield import create_app
from pishield.ai import GeminiAnalyzer, OpenAIAnalyzer
from pishield.auth import Identity
from pishield.errors import AuthenticationError
from pishield.ratelimit import ClientWindow, limiter

GOOD_REPORT = {
    'credibilityScore': 72,
    'analysis': 'The article cites named sources but relies on emotional framing.',
    'flags': ['Emotional language', 'Unverified statistic'],
    'recommendations': ['Check the original study', 'Compare with other outlets'],
    'reasoning': 'Mostly consistent with public records, with some exaggeration.'
}

TOKENS = {
    'token-alice': Identity(uid='alice', email='alice@example.com'),
    'token-bob': Identity(uid='bob', email='bob@example.com'),
}


def stored_report(database, report_id):
    """Read one stored analysis row back, with list columns decoded."""
    with database.connection() as conn:
        row = conn.execute('SELECT * FROM analysis_reports WHERE id = ?', (report_id,)).fetchone()
    if row is None:
        return None
    return {
        'id': row['id'],
        'userId': row['user_id'],
        'contentType': row['content_type'],
        'contentPreview': row['content_text'],
        'credibilityScore': row['credibility_score'],
        'reasoning': row['reasoning'],
        'flags': json.loads(row['flags']),
        'recommendations': json.loads(row['recommendations']),
        'createdAt': row['created_at']
    }


class FakeOpenAIClient:
    """Stands in for ``openai.OpenAI``; records every completion request."""

    def __init__(self, content):
        self.content = content
        self.calls = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        self.calls.append(kwargs)
        if isinstance(self.content, Exception):
            raise self.content
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeGeminiModel:
    """Stands in for ``genai.GenerativeModel``."""

    def __init__(self, text):
        self.text = text
        self.calls = []

    def generate_content(self, parts, generation_config=None):
        self.calls.append(parts)
        if isinstance(self.text, Exception):
            raise self.text
        return SimpleNamespace(text=self.text)


class FakeTokenVerifier:
    def verify(self, token):
        if token not in TOKENS:
            raise AuthenticationError('Unauthorized: Invalid token')
        return TOKENS[token]


class FakeClock:
    def __init__(self, now):
        self.now = now

    def advance(self, seconds):
        self.now += seconds

    def __call__(self):
        return self.now


@pytest.fixture
def openai_client():
    return FakeOpenAIClient(json.dumps(GOOD_REPORT))


@pytest.fixture
def gemini_model():
    return FakeGeminiModel(json.dumps(GOOD_REPORT))


@pytest.fixture
def clock():
    # Aligned to the start of a one-minute window
    return FakeClock(1699999980)


@pytest.fixture
def make_app(tmp_path, openai_client, gemini_model, clock):
    def factory(config=None, **services):
        settings = {
            'TESTING': True,
            'DATABASE_PATH': str(tmp_path / 'pishield-test.db'),
            'LOG_FILE': None,
        }
        settings.update(config or {})
        services.setdefault('text_analyzer', OpenAIAnalyzer('test-key', client=openai_client))
        services.setdefault('media_analyzer', GeminiAnalyzer('test-key', model=gemini_model))
        services.setdefault('token_verifier', FakeTokenVerifier())
        services.setdefault('client_window', ClientWindow(60, clock=clock))
        app = create_app(settings, **services)
        with app.app_context():
            limiter.reset()
        return app
    return factory


@pytest.fixture
def app(make_app):
    return make_app()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def database(app):
    return app.extensions['pishield']['database']
