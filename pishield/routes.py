import logging
from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify, request

from .auth import current_identity, current_user_id, require_auth
from .errors import MalformedUpstreamResponse, PersistenceError, ReportParseError, ServiceNotConfigured
from .prompts import (IMAGE_VISION_PROMPT, TEXT_SYSTEM_PROMPT, VIDEO_SYSTEM_PROMPT, MediaPart,
                      build_multimodal_parts, build_text_prompt, build_video_prompt)
from .ratelimit import route_limit
from .report import CONTENT_TYPES, MEDIA_CONTENT_TYPES, ImageReport
from .validation import (parse_page, validate_content, validate_content_type,
                         validate_text_submission, validate_upload, validate_video_analysis,
                         validate_video_upload)

logger = logging.getLogger(__name__)

api = Blueprint('api', __name__, url_prefix='/api')


def service(name, missing_message=None):
    instance = current_app.extensions['pishield'].get(name)
    if instance is None:
        raise ServiceNotConfigured(missing_message or f'{name} is not configured')
    return instance


def timestamp():
    return datetime.now(timezone.utc).isoformat()


def read_media(file_storage):
    return MediaPart(mime_type=file_storage.mimetype, data=file_storage.read())


@api.route('/health')
def health_check():
    return jsonify({'status': 'healthy', 'timestamp': timestamp()})


@api.route('/analyze-text', methods=['POST'])
@route_limit('TEXT_ANALYSIS_RATE_LIMIT')
def analyze_text():
    content, content_type = validate_text_submission(request.get_json(silent=True))
    user_id = current_user_id()
    analyzer = service('text_analyzer', 'OpenAI API key not configured')

    logger.info(f"Processing {content_type} analysis ({len(content)} chars)")
    report = analyzer.analyze(TEXT_SYSTEM_PROMPT, build_text_prompt(content, content_type))

    database = service('database')
    report_id = database.insert_report(report, content_type, content, user_id=user_id)
    logger.info(f"Stored analysis {report_id} with score {report.credibility_score}")

    return jsonify({**report.to_json(), 'id': report_id, 'timestamp': timestamp()})


@api.route('/extract-text', methods=['POST'])
@route_limit('MEDIA_RATE_LIMIT')
def extract_text():
    image_file = validate_upload(request.files.get('image'), 'image')
    extractor = service('text_extractor', 'OCR requires a Google Gemini or Google Cloud Vision API key')
    logger.info(f"🔍 Extracting text from {image_file.filename} ({image_file.mimetype})")
    return jsonify(extractor.extract(read_media(image_file)))


@api.route('/extract-video-metadata', methods=['POST'])
@route_limit('MEDIA_RATE_LIMIT')
def extract_video_metadata():
    video_file = request.files.get('video')
    size = validate_video_upload(video_file, current_app.config['MAX_VIDEO_BYTES'])
    logger.info(f"Processing video file: {video_file.filename}, size: {size} bytes, type: {video_file.mimetype}")

    extractor = service('metadata_extractor')
    extension = video_file.filename.rsplit('.', 1)[1].upper() if '.' in video_file.filename else 'UNKNOWN'
    metadata = {
        **extractor.extract(size, video_file.mimetype),
        'format': extension,
        'creationDate': timestamp(),
        'originalFileName': video_file.filename,
        'mimeType': video_file.mimetype
    }
    return jsonify({'metadata': metadata, 'message': extractor.description})


@api.route('/analyze-video', methods=['POST'])
@route_limit('VIDEO_ANALYSIS_RATE_LIMIT')
def analyze_video():
    filename, metadata = validate_video_analysis(request.get_json(silent=True))
    user_id = current_user_id()
    analyzer = service('text_analyzer', 'AI analysis service not configured')

    logger.info(f"Analyzing video: {filename}")
    try:
        report = analyzer.analyze(VIDEO_SYSTEM_PROMPT, build_video_prompt(filename, metadata),
                                  schema_name='video_analysis_report')
    except ReportParseError as e:
        # Unreadable output is a gateway failure; schema violations stay 500
        raise MalformedUpstreamResponse('AI analysis service returned invalid response',
                                        details=e.details or e.message)

    # Storage is best effort here: the analysis is returned even if the insert fails
    try:
        service('database').insert_report(report, 'video', f'Video: {filename}', user_id=user_id)
    except PersistenceError as e:
        logger.error(f"Database storage error for video {filename}: {e.details}")

    return jsonify({**report.to_json(), 'timestamp': timestamp()})


@api.route('/analyze-multimodal', methods=['POST'])
@route_limit('MEDIA_RATE_LIMIT')
def analyze_multimodal():
    content_type = validate_content_type(request.form.get('contentType'), CONTENT_TYPES)
    instruction = request.form.get('analysisPrompt') or None

    if content_type in MEDIA_CONTENT_TYPES:
        media_file = validate_upload(request.files.get(content_type), content_type)
        parts = build_multimodal_parts(content_type, instruction, media=read_media(media_file))
        preview = f'{content_type} content analysis'
    else:
        text = validate_content(request.form.get('content'))
        parts = build_multimodal_parts(content_type, instruction, text=text)
        preview = text

    user_id = current_user_id()
    analyzer = service('media_analyzer', 'Google Gemini API key not configured')
    logger.info(f"Processing multimodal {content_type} analysis")
    report = analyzer.analyze(parts)

    report_id = service('database').insert_report(report, content_type, preview, user_id=user_id)

    return jsonify({
        **report.to_json(),
        'id': report_id,
        'timestamp': timestamp(),
        'aiModel': current_app.config['GEMINI_MODEL_LABEL']
    })


@api.route('/analyze-image-gemini', methods=['POST'])
@route_limit('MEDIA_RATE_LIMIT')
def analyze_image_gemini():
    image_file = validate_upload(request.files.get('image'), 'image')
    user_id = current_user_id()
    analyzer = service('media_analyzer', 'Google Gemini API key not configured')

    logger.info(f"🔍 Starting Gemini image analysis for {image_file.filename}")
    report = analyzer.analyze([IMAGE_VISION_PROMPT, read_media(image_file)], model=ImageReport)

    report_id = service('database').insert_report(
        report, 'image', f'Image analysis: {image_file.filename}', user_id=user_id)

    return jsonify({
        **report.to_json(),
        'id': report_id,
        'timestamp': timestamp(),
        'aiModel': f"{current_app.config['GEMINI_MODEL_LABEL']} Vision",
        'filename': image_file.filename
    })


@api.route('/analysis-history')
@require_auth
def analysis_history():
    limit, offset = parse_page(request.args, default_limit=20, max_limit=100)
    return jsonify(service('database').list_history(current_identity().uid, limit, offset))


@api.route('/analysis-history/public')
def public_analysis_history():
    limit, offset = parse_page(request.args, default_limit=10, max_limit=50)
    return jsonify(service('database').list_public_history(limit, offset))


@api.route('/educational-tips')
def educational_tips():
    category = request.args.get('category') or None
    return jsonify({'tips': service('database').list_tips(category)})
