import hashlib
import logging
import time

from flask import Flask, g, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import RequestEntityTooLarge

from .ai import GeminiAnalyzer, OpenAIAnalyzer, TextExtractor
from .auth import FirebaseTokenVerifier
from .config import Config
from .database import AnalysisDatabase
from .errors import PiShieldError
from .ratelimit import ClientWindow, limiter
from .routes import api
from .video import HeuristicMetadataExtractor

logger = logging.getLogger(__name__)


def configure_logging(config):
    handlers = [logging.StreamHandler()]
    if config.get('LOG_FILE'):
        handlers.append(logging.FileHandler(config['LOG_FILE']))
    logging.basicConfig(
        level=config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


def build_services(config, overrides):
    """Construct the app's collaborators; any entry in ``overrides`` wins."""
    services = dict(overrides)

    if 'database' not in services:
        services['database'] = AnalysisDatabase(config['DATABASE_PATH'])

    if 'text_analyzer' not in services:
        services['text_analyzer'] = None
        if config.get('OPENAI_API_KEY'):
            services['text_analyzer'] = OpenAIAnalyzer(config['OPENAI_API_KEY'], model=config['OPENAI_MODEL'])
        else:
            logger.warning("OPENAI_API_KEY not set - text and video analysis are unavailable")

    if 'media_analyzer' not in services:
        services['media_analyzer'] = None
        if config.get('GOOGLE_GEMINI_API_KEY'):
            services['media_analyzer'] = GeminiAnalyzer(config['GOOGLE_GEMINI_API_KEY'],
                                                        model_name=config['GEMINI_MODEL'])
        else:
            logger.warning("GOOGLE_GEMINI_API_KEY not set - multimodal analysis is unavailable")

    if 'text_extractor' not in services:
        services['text_extractor'] = None
        if services['media_analyzer'] is not None or config.get('GOOGLE_CLOUD_VISION_API_KEY'):
            services['text_extractor'] = TextExtractor(
                gemini=services['media_analyzer'],
                vision_api_key=config.get('GOOGLE_CLOUD_VISION_API_KEY'),
                timeout=config['REQUEST_TIMEOUT']
            )

    if 'token_verifier' not in services:
        if not config.get('FIREBASE_PROJECT_ID'):
            logger.warning("FIREBASE_PROJECT_ID not set - bearer tokens will be rejected")
        services['token_verifier'] = FirebaseTokenVerifier(config.get('FIREBASE_PROJECT_ID'))

    services.setdefault('metadata_extractor', HeuristicMetadataExtractor())
    services.setdefault('client_window', ClientWindow(config['RATE_LIMIT_WINDOW_SECONDS']))
    return services


def register_error_handlers(app):
    @app.errorhandler(PiShieldError)
    def handle_pishield_error(e):
        if e.status_code >= 500:
            logger.error(f"{request.path} failed: {e.message} ({e.details})")
        else:
            logger.info(f"{request.path} rejected: {e.message}")
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(RequestEntityTooLarge)
    def handle_large_file(e):
        max_mb = app.config['MAX_CONTENT_LENGTH'] // (1024 * 1024)
        return jsonify({
            'error': f'File too large. Maximum request size is {max_mb}MB.',
            'error_code': 'FILE_TOO_LARGE'
        }), 413

    @app.errorhandler(404)
    def page_not_found(e):
        return jsonify({'error': 'Not found', 'error_code': 'NOT_FOUND'}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({'error': 'Method not allowed', 'error_code': 'METHOD_NOT_ALLOWED'}), 405

    @app.errorhandler(429)
    def handle_rate_limit(e):
        logger.warning(f"Rate limit exceeded on {request.path} ({e.description})")
        return jsonify({
            'error': 'Rate limit exceeded. Please try again later.',
            'error_code': 'RATE_LIMIT_EXCEEDED'
        }), 429

    @app.errorhandler(500)
    def handle_server_error(e):
        logger.error(f"Server error: {str(e)}")
        return jsonify({
            'error': 'Internal server error',
            'error_code': 'INTERNAL_ERROR'
        }), 500


def create_app(config=None, **services):
    """Application factory.

    ``config`` overrides values from ``Config``; keyword arguments replace the
    default collaborators (``database``, ``text_analyzer``, ``media_analyzer``,
    ``text_extractor``, ``token_verifier``, ``metadata_extractor``,
    ``client_window``).
    """
    app = Flask(__name__)
    app.config.from_object(Config)
    if config:
        app.config.update(config)

    configure_logging(app.config)

    CORS(app, origins='*',
         methods=['GET', 'PUT', 'POST', 'DELETE', 'OPTIONS'],
         allow_headers=['Content-Type', 'Authorization'])

    app.extensions['pishield'] = build_services(app.config, services)
    limiter.init_app(app)

    @app.before_request
    def before_request():
        g.start_time = time.time()
        g.request_id = hashlib.md5(f"{time.time()}-{request.remote_addr}".encode()).hexdigest()[:8]

    @app.after_request
    def after_request(response):
        response.headers['X-Request-ID'] = getattr(g, 'request_id', 'unknown')
        response.headers['X-Processing-Time'] = f"{(time.time() - getattr(g, 'start_time', time.time())):.3f}s"
        return response

    register_error_handlers(app)
    app.register_blueprint(api)

    logger.info("✅ Pi Shield API ready")
    return app
