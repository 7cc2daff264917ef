"""Schema-validated parsing of AI backend output.

Model responses are untyped text. ``parse_report`` turns that text into an
``AnalysisReport`` (or an ``ImageReport``) or raises a typed error; nothing
untyped leaves this module.
"""

import json
import logging
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as SchemaError

from .errors import ReportParseError, ReportValidationError

logger = logging.getLogger(__name__)

CONTENT_TYPES = ('text', 'article', 'post', 'news', 'image', 'video', 'audio')
TEXT_CONTENT_TYPES = ('text', 'article', 'post', 'news')
MEDIA_CONTENT_TYPES = ('image', 'video', 'audio')


class AnalysisReport(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    credibility_score: int = Field(alias='credibilityScore', ge=0, le=100)
    analysis: str
    flags: List[str]
    recommendations: List[str]
    reasoning: str
    sources: Optional[List[str]] = None

    @field_validator('credibility_score', mode='before')
    @classmethod
    def score_must_be_numeric(cls, value):
        # bool is an int subclass; numeric strings would otherwise be coerced
        if isinstance(value, (str, bool)):
            raise ValueError('credibilityScore must be a JSON number')
        return value

    def to_json(self):
        return self.model_dump(by_alias=True, exclude_none=True)


class ImageReport(AnalysisReport):
    """Report returned by native image vision, with the text it read."""
    extracted_text: Optional[str] = Field(default=None, alias='extractedText')
    technical_findings: Optional[str] = Field(default=None, alias='technicalFindings')


# JSON schema handed to OpenAI's structured output mode
REPORT_JSON_SCHEMA = {
    'type': 'object',
    'properties': {
        'credibilityScore': {'type': 'integer', 'minimum': 0, 'maximum': 100},
        'analysis': {'type': 'string'},
        'flags': {'type': 'array', 'items': {'type': 'string'}},
        'recommendations': {'type': 'array', 'items': {'type': 'string'}},
        'reasoning': {'type': 'string'}
    },
    'required': ['credibilityScore', 'analysis', 'flags', 'recommendations', 'reasoning'],
    'additionalProperties': False
}


def extract_json_object(text):
    """Return the first balanced ``{...}`` block in ``text``, or None."""
    start = text.find('{')
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == '\\':
                    escaped = True
                elif char == '"':
                    in_string = False
            elif char == '"':
                in_string = True
            elif char == '{':
                depth += 1
            elif char == '}':
                depth -= 1
                if depth == 0:
                    return text[start:index + 1]
        # Unbalanced from this brace; try the next opening brace
        start = text.find('{', start + 1)
    return None


def parse_report(text, model=AnalysisReport):
    if not text or not text.strip():
        raise ReportParseError('No analysis received from AI service')

    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        block = extract_json_object(text)
        if block is None:
            logger.error(f"AI response holds no JSON object: {text[:200]}")
            raise ReportParseError('Invalid response format from AI service',
                                   details='No JSON object found in model output')
        try:
            payload = json.loads(block)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse AI response: {e}")
            raise ReportParseError('Invalid response format from AI service', details=str(e))

    if not isinstance(payload, dict):
        raise ReportParseError('Invalid response format from AI service',
                               details='Model output is not a JSON object')

    try:
        return model.model_validate(payload)
    except SchemaError as e:
        logger.error(f"AI response failed schema validation: {e.errors()}")
        raise ReportValidationError('Invalid analysis result structure', details=_describe(e))


def _describe(error):
    problems = []
    for item in error.errors():
        location = '.'.join(str(part) for part in item['loc']) or 'response'
        problems.append(f"{location}: {item['msg']}")
    return '; '.join(problems)
