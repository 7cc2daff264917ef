"""Adapters for the external AI backends.

Each adapter issues exactly one backend call per analysis and hands the raw
text to ``report.parse_report``. Backend failures are translated into the
``UpstreamError`` family; nothing is retried.
"""

import base64
import logging

import google.generativeai as genai
import openai
import requests
from google.api_core import exceptions as google_exceptions
from openai import OpenAI

from .errors import InvalidApiKey, ServiceNotConfigured, UpstreamError
from .prompts import OCR_PROMPT, MediaPart
from .report import REPORT_JSON_SCHEMA, AnalysisReport, parse_report

logger = logging.getLogger(__name__)

VISION_API_URL = 'https://vision.googleapis.com/v1/images:annotate'
NO_TEXT_DETECTED = 'No text detected in the image.'


class OpenAIAnalyzer:
    """Chat-completions backend with strict JSON-schema output."""

    def __init__(self, api_key, model='gpt-4o-mini', temperature=0.3, max_tokens=1000, client=None):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.client = client or OpenAI(api_key=api_key)

    def complete(self, system_prompt, user_prompt, schema_name='analysis_report'):
        try:
            completion = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {'role': 'system', 'content': system_prompt},
                    {'role': 'user', 'content': user_prompt}
                ],
                response_format={
                    'type': 'json_schema',
                    'json_schema': {
                        'name': schema_name,
                        'schema': REPORT_JSON_SCHEMA,
                        'strict': True
                    }
                },
                temperature=self.temperature,
                max_completion_tokens=self.max_tokens
            )
        except openai.AuthenticationError as e:
            logger.error(f"OpenAI rejected the API key: {e}")
            raise InvalidApiKey('Invalid OpenAI API key', details=str(e))
        except openai.OpenAIError as e:
            logger.error(f"OpenAI request failed: {e}")
            raise UpstreamError('AI analysis request failed', details=str(e))

        return completion.choices[0].message.content

    def analyze(self, system_prompt, user_prompt, schema_name='analysis_report'):
        text = self.complete(system_prompt, user_prompt, schema_name)
        return parse_report(text)


class GeminiAnalyzer:
    """Google Gemini backend for multimodal, vision and OCR requests."""

    def __init__(self, api_key, model_name='gemini-1.5-flash', temperature=0.3, model=None):
        self.model_name = model_name
        self.temperature = temperature
        if model is None:
            genai.configure(api_key=api_key)
            model = genai.GenerativeModel(model_name)
            logger.info(f"Google Gemini model {model_name} initialized")
        self.model = model

    @staticmethod
    def _to_sdk_part(part):
        if isinstance(part, MediaPart):
            return {'mime_type': part.mime_type, 'data': part.data}
        return part

    def generate(self, parts):
        generation_config = genai.types.GenerationConfig(temperature=self.temperature)
        try:
            response = self.model.generate_content(
                [self._to_sdk_part(part) for part in parts],
                generation_config=generation_config
            )
            return response.text
        except google_exceptions.GoogleAPIError as e:
            logger.error(f"Gemini request failed: {e}")
            if 'API key not valid' in str(e):
                raise InvalidApiKey('Invalid Google Gemini API Key',
                                    details='The provided API key is not valid. Please check your configuration.')
            raise UpstreamError('AI analysis request failed', details=str(e))
        except ValueError as e:
            # response.text raises when the candidate was blocked or empty
            logger.error(f"Gemini returned no usable text: {e}")
            raise UpstreamError('AI analysis returned no content', details=str(e))

    def analyze(self, parts, model=AnalysisReport):
        return parse_report(self.generate(parts), model=model)

    def extract_text(self, image):
        return self.generate([OCR_PROMPT, image]).strip()


class TextExtractor:
    """OCR through Gemini vision, falling back to the Cloud Vision REST API."""

    def __init__(self, gemini=None, vision_api_key=None, timeout=30, session=None):
        self.gemini = gemini
        self.vision_api_key = vision_api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def extract(self, image):
        if self.gemini is not None:
            try:
                text = self.gemini.extract_text(image)
                return {
                    'extractedText': text or NO_TEXT_DETECTED,
                    'confidence': 0.95,
                    'message': 'Text successfully extracted using Google Gemini Vision API'
                }
            except UpstreamError as e:
                if not self.vision_api_key:
                    raise
                logger.warning(f"Gemini Vision failed, falling back to Google Cloud Vision: {e.message}")

        if not self.vision_api_key:
            raise ServiceNotConfigured('OCR requires a Google Gemini or Google Cloud Vision API key')

        return self._extract_with_vision(image)

    def _extract_with_vision(self, image):
        body = {
            'requests': [{
                'image': {'content': base64.b64encode(image.data).decode('ascii')},
                'features': [{'type': 'TEXT_DETECTION', 'maxResults': 1}]
            }]
        }
        try:
            response = self.session.post(
                VISION_API_URL,
                params={'key': self.vision_api_key},
                json=body,
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Google Vision request failed: {e}")
            raise UpstreamError('Failed to extract text from image', details=str(e))

        if response.status_code != 200:
            raise UpstreamError('Failed to extract text from image',
                                details=f'Google Vision API error: {response.status_code}')

        try:
            payload = response.json()
        except ValueError as e:
            logger.error(f"Google Vision returned a non-JSON body: {e}")
            raise UpstreamError('Failed to extract text from image',
                                details='Google Vision API returned an unreadable response')

        result = (payload.get('responses') or [{}])[0]
        if result.get('error'):
            raise UpstreamError('Failed to extract text from image',
                                details=f"Vision API error: {result['error'].get('message')}")

        annotations = result.get('textAnnotations') or []
        text = annotations[0].get('description', '') if annotations else ''
        return {
            'extractedText': text or NO_TEXT_DETECTED,
            'confidence': 0.9 if annotations else 0.0,
            'message': 'Text successfully extracted using Google Cloud Vision API'
        }
