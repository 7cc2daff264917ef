"""Video metadata estimation.

Nothing here decodes the file: every value is derived from the declared size
and MIME type using fixed buckets, so identical inputs always produce the same
record. ``HeuristicMetadataExtractor`` is the seam for swapping in a real
demuxer later.
"""

MB = 1024 * 1024
ASSUMED_BYTES_PER_SECOND = 2 * MB / 8  # 2 Mbps

RESOLUTION_BUCKETS = [
    (50 * MB, '1920x1080'),
    (20 * MB, '1280x720'),
    (5 * MB, '854x480'),
]

BITRATE_BUCKETS = [
    (50 * MB, '3.5 Mbps'),
    (20 * MB, '2.5 Mbps'),
    (5 * MB, '1.5 Mbps'),
]

CODECS = [
    ('mp4', 'H.264'),
    ('webm', 'VP8/VP9'),
    ('avi', 'XVID'),
    ('mov', 'H.264'),
    ('quicktime', 'H.264'),
]


def format_file_size(size_bytes):
    if size_bytes == 0:
        return '0 Bytes'
    units = ['Bytes', 'KB', 'MB', 'GB']
    exponent = 0
    while size_bytes >= 1024 ** (exponent + 1) and exponent < len(units) - 1:
        exponent += 1
    value = ('%.2f' % (size_bytes / 1024 ** exponent)).rstrip('0').rstrip('.')
    return f'{value} {units[exponent]}'


def estimate_duration(size_bytes):
    seconds = int(size_bytes // ASSUMED_BYTES_PER_SECOND)
    return f'{seconds // 60}:{seconds % 60:02d}'


def estimate_resolution(size_bytes):
    for threshold, resolution in RESOLUTION_BUCKETS:
        if size_bytes > threshold:
            return resolution
    return '640x360'


def estimate_bitrate(size_bytes):
    for threshold, bitrate in BITRATE_BUCKETS:
        if size_bytes > threshold:
            return bitrate
    return '1.0 Mbps'


def codec_for_type(mime_type):
    mime_type = (mime_type or '').lower()
    for marker, codec in CODECS:
        if marker in mime_type:
            return codec
    return 'Unknown'


def estimate_video_metadata(size_bytes, mime_type):
    """Derive a synthetic metadata record from size and MIME type alone."""
    return {
        'duration': estimate_duration(size_bytes),
        'resolution': estimate_resolution(size_bytes),
        'frameRate': '30 fps',
        'codec': codec_for_type(mime_type),
        'fileSize': format_file_size(size_bytes),
        'bitrate': estimate_bitrate(size_bytes),
    }


class HeuristicMetadataExtractor:
    description = ('Video metadata extraction completed (estimated from file size and type; '
                   'no frames were decoded)')

    def extract(self, size_bytes, mime_type):
        return estimate_video_metadata(size_bytes, mime_type)
