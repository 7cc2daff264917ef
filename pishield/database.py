import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone

from .errors import PersistenceError

logger = logging.getLogger(__name__)

STORED_PREVIEW_LENGTH = 1000
PRIVATE_PREVIEW_LENGTH = 200
PUBLIC_PREVIEW_LENGTH = 100

TIP_CATEGORIES = ('deepfakes', 'misleading_headlines', 'source_verification', 'bias_detection')

SEED_TIPS = [
    ('Check the lighting and shadows',
     'Deepfake videos often show lighting on a face that does not match the scene, or shadows that '
     'move inconsistently between frames. Pause the video and compare several frames side by side.',
     'deepfakes'),
    ('Watch the edges of the face',
     'Blurring or flickering around the hairline, ears and jaw is a common artifact of face swapping. '
     'Unnatural blinking and stiff lip movement are further warning signs.',
     'deepfakes'),
    ('Read past the headline',
     'Headlines are written to be shared. Read the full article before reacting: the body often '
     'qualifies or contradicts the claim made in the title.',
     'misleading_headlines'),
    ('Beware of emotional wording',
     'Words like "shocking", "destroyed" or "they don\'t want you to know" are designed to provoke. '
     'Strong emotional framing is a signal to slow down and verify.',
     'misleading_headlines'),
    ('Trace the claim to its origin',
     'Find the original report, study or statement behind a story. Secondary sources frequently '
     'distort numbers or quotes as a claim travels across sites.',
     'source_verification'),
    ('Cross-reference independent outlets',
     'A genuine story is usually covered by several independent and reputable organizations. If only '
     'one unknown site reports it, treat it with caution.',
     'source_verification'),
    ('Use reverse image search',
     'Run images through a reverse image search to see where and when they first appeared. Old photos '
     'are often recycled with new, misleading captions.',
     'source_verification'),
    ('Notice what is left out',
     'Bias often shows through omission. Ask which perspectives, data or context are missing, and look '
     'for coverage that includes them.',
     'bias_detection'),
    ('Separate facts from opinion',
     'Check whether a piece reports verifiable facts or interprets them. Opinion presented as news is a '
     'common way to push a viewpoint.',
     'bias_detection'),
]


def utc_now():
    return datetime.now(timezone.utc).isoformat()


class AnalysisDatabase:
    """Row store for analysis reports and the educational tips catalogue."""

    def __init__(self, db_path='pishield.db'):
        self.db_path = db_path
        self.init_database()

    @contextmanager
    def connection(self):
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def init_database(self):
        try:
            with self.connection() as conn:
                conn.execute('''
                    CREATE TABLE IF NOT EXISTS analysis_reports (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        user_id TEXT,
                        content_type TEXT NOT NULL,
                        content_text TEXT NOT NULL,
                        credibility_score INTEGER NOT NULL
                            CHECK (credibility_score BETWEEN 0 AND 100),
                        analysis_result TEXT NOT NULL,
                        reasoning TEXT NOT NULL,
                        flags TEXT NOT NULL,
                        recommendations TEXT NOT NULL,
                        created_at TEXT NOT NULL
                    )
                ''')
                conn.execute('''
                    CREATE INDEX IF NOT EXISTS idx_reports_user_created
                    ON analysis_reports (user_id, created_at)
                ''')
                conn.execute('''
                    CREATE TABLE IF NOT EXISTS educational_tips (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        title TEXT NOT NULL,
                        content TEXT NOT NULL,
                        category TEXT NOT NULL,
                        created_at TEXT NOT NULL
                    )
                ''')
                count = conn.execute('SELECT COUNT(*) FROM educational_tips').fetchone()[0]
                if count == 0:
                    created_at = utc_now()
                    conn.executemany('''
                        INSERT INTO educational_tips (title, content, category, created_at)
                        VALUES (?, ?, ?, ?)
                    ''', [(title, content, category, created_at) for title, content, category in SEED_TIPS])
            logger.info(f"Database initialized at {self.db_path}")
        except sqlite3.Error as e:
            logger.error(f"Database initialization error: {e}")
            raise PersistenceError('Failed to initialize database', details=str(e))

    def insert_report(self, report, content_type, content_text, user_id=None):
        """Persist a validated report and return the new row id."""
        try:
            with self.connection() as conn:
                cursor = conn.execute('''
                    INSERT INTO analysis_reports
                    (user_id, content_type, content_text, credibility_score, analysis_result,
                     reasoning, flags, recommendations, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ''', (user_id, content_type, content_text[:STORED_PREVIEW_LENGTH],
                      report.credibility_score, report.analysis, report.reasoning,
                      json.dumps(report.flags), json.dumps(report.recommendations), utc_now()))
                return cursor.lastrowid
        except sqlite3.Error as e:
            logger.error(f"Error storing analysis report: {e}")
            raise PersistenceError('Failed to store analysis result', details=str(e))

    def _history(self, where, params, preview_length, limit, offset):
        try:
            with self.connection() as conn:
                rows = conn.execute(f'''
                    SELECT id, content_type, credibility_score,
                           substr(content_text, 1, ?) AS content_preview, created_at
                    FROM analysis_reports
                    WHERE {where}
                    ORDER BY created_at DESC, id DESC
                    LIMIT ? OFFSET ?
                ''', (preview_length, *params, limit, offset)).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Error reading analysis history: {e}")
            raise PersistenceError('Failed to fetch analysis history', details=str(e))

        analyses = [{
            'id': row['id'],
            'contentType': row['content_type'],
            'credibilityScore': row['credibility_score'],
            'contentPreview': row['content_preview'],
            'createdAt': row['created_at']
        } for row in rows]
        return {'analyses': analyses, 'hasMore': len(analyses) == limit}

    def list_history(self, user_id, limit=20, offset=0):
        return self._history('user_id = ?', (user_id,), PRIVATE_PREVIEW_LENGTH, limit, offset)

    def list_public_history(self, limit=10, offset=0):
        return self._history('user_id IS NULL', (), PUBLIC_PREVIEW_LENGTH, limit, offset)

    def list_tips(self, category=None):
        query = 'SELECT id, title, content, category, created_at FROM educational_tips'
        params = []
        if category:
            query += ' WHERE category = ?'
            params.append(category)
        query += ' ORDER BY created_at DESC, id DESC'
        try:
            with self.connection() as conn:
                rows = conn.execute(query, params).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Error fetching educational tips: {e}")
            raise PersistenceError('Failed to fetch educational tips', details=str(e))
        return [{
            'id': row['id'],
            'title': row['title'],
            'content': row['content'],
            'category': row['category'],
            'createdAt': row['created_at']
        } for row in rows]
