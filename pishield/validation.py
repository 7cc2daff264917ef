import os

from .errors import ValidationError
from .report import CONTENT_TYPES, TEXT_CONTENT_TYPES

MIN_CONTENT_LENGTH = 10

MEDIA_FAMILIES = {
    'image': 'image/',
    'video': 'video/',
    'audio': 'audio/'
}

MEDIA_TYPE_ERRORS = {
    'image': 'File must be an image format (PNG, JPEG, WEBP, etc.)',
    'video': 'File must be a video format (MP4, AVI, MOV, etc.)',
    'audio': 'File must be an audio format (MP3, WAV, OGG, etc.)'
}


def validate_content(content):
    """Reject missing or too-short text submissions."""
    if not isinstance(content, str) or not content:
        raise ValidationError('Content is required')
    if len(content) < MIN_CONTENT_LENGTH:
        raise ValidationError(f'Content must be at least {MIN_CONTENT_LENGTH} characters')
    return content


def validate_content_type(content_type, allowed=CONTENT_TYPES):
    if content_type not in allowed:
        raise ValidationError(
            f"contentType must be one of: {', '.join(allowed)}",
            details=f'Received: {content_type!r}'
        )
    return content_type


def validate_text_submission(payload):
    """Validate an ``/api/analyze-text`` JSON body; returns (content, contentType)."""
    if not isinstance(payload, dict):
        raise ValidationError('Request body must be a JSON object')
    content = validate_content(payload.get('content'))
    content_type = validate_content_type(payload.get('contentType'), TEXT_CONTENT_TYPES)
    return content, content_type


def validate_upload(file_storage, family):
    """Check an uploaded file exists and its MIME type belongs to ``family``."""
    if file_storage is None or not file_storage.filename:
        raise ValidationError(f'No {family} file provided')
    mimetype = file_storage.mimetype or ''
    if not mimetype.startswith(MEDIA_FAMILIES[family]):
        raise ValidationError(MEDIA_TYPE_ERRORS[family], details=f'Received MIME type: {mimetype or "unknown"}')
    return file_storage


def upload_size(file_storage):
    stream = file_storage.stream
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    return size


def validate_video_upload(file_storage, max_bytes):
    """Validate a video upload and return its size in bytes."""
    validate_upload(file_storage, 'video')
    size = upload_size(file_storage)
    if size > max_bytes:
        raise ValidationError(
            f'Video file is too large. Maximum size is {max_bytes // (1024 * 1024)}MB.',
            details=f'Received {size} bytes'
        )
    return size


def validate_video_analysis(payload):
    """Validate an ``/api/analyze-video`` JSON body; returns (filename, metadata)."""
    if not isinstance(payload, dict):
        raise ValidationError('Request body must be a JSON object')
    filename = payload.get('filename')
    if not filename or not isinstance(filename, str):
        raise ValidationError('Video filename is required')
    metadata = payload.get('metadata')
    if not metadata or not isinstance(metadata, dict):
        raise ValidationError('Video metadata is required. Please extract metadata first.')
    return filename, metadata


def parse_page(args, default_limit, max_limit):
    """Read ``limit``/``offset`` query arguments, capping limit at ``max_limit``."""
    try:
        limit = int(args.get('limit', default_limit))
        offset = int(args.get('offset', 0))
    except (TypeError, ValueError):
        raise ValidationError('limit and offset must be integers')
    if limit < 1:
        raise ValidationError('limit must be a positive integer')
    if offset < 0:
        raise ValidationError('offset must not be negative')
    return min(limit, max_limit), offset
