import json

import pytest

from pishield.errors import ReportParseError, ReportValidationError
from pishield.report import REPORT_JSON_SCHEMA, ImageReport, extract_json_object, parse_report
from conftest import GOOD_REPORT


def test_parses_plain_json():
    report = parse_report(json.dumps(GOOD_REPORT))
    assert report.credibility_score == 72
    assert report.flags == ['Emotional language', 'Unverified statistic']
    assert report.to_json()['credibilityScore'] == 72


def test_extracts_json_wrapped_in_prose():
    text = 'Here is my assessment:\n```json\n' + json.dumps(GOOD_REPORT) + '\n```\nHope this helps {really}.'
    report = parse_report(text)
    assert report.reasoning == GOOD_REPORT['reasoning']


def test_first_balanced_block_handles_nesting_and_braces_in_strings():
    text = 'prefix {"a": {"b": "closing } brace"}, "c": "\\"{"} trailing {"d": 1}'
    assert json.loads(extract_json_object(text)) == {'a': {'b': 'closing } brace'}, 'c': '"{'}


def test_skips_unbalanced_opening_brace():
    assert extract_json_object('stray { then {"ok": true}') == '{"ok": true}'


def test_no_json_object_is_a_parse_error():
    with pytest.raises(ReportParseError):
        parse_report('I cannot analyze this content.')


def test_empty_response_is_a_parse_error():
    with pytest.raises(ReportParseError):
        parse_report('   ')


def test_json_array_is_a_parse_error():
    with pytest.raises(ReportParseError):
        parse_report('[1, 2, 3]')


@pytest.mark.parametrize('score', [-1, 101, 150, 72.5, 'high', '80', '0', True, False, None])
def test_out_of_range_or_fractional_score_is_rejected(score):
    payload = dict(GOOD_REPORT, credibilityScore=score)
    with pytest.raises(ReportValidationError):
        parse_report(json.dumps(payload))


def test_whole_number_float_score_is_accepted():
    report = parse_report(json.dumps(dict(GOOD_REPORT, credibilityScore=80.0)))
    assert report.credibility_score == 80


def test_missing_field_is_rejected():
    payload = dict(GOOD_REPORT)
    del payload['reasoning']
    with pytest.raises(ReportValidationError) as excinfo:
        parse_report(json.dumps(payload))
    assert 'reasoning' in excinfo.value.details


def test_flags_must_be_strings():
    with pytest.raises(ReportValidationError):
        parse_report(json.dumps(dict(GOOD_REPORT, flags=[{'flag': 'x'}])))


def test_image_report_keeps_extracted_text():
    payload = dict(GOOD_REPORT, extractedText='SALE 50% OFF', technicalFindings='No artifacts')
    report = parse_report(json.dumps(payload), model=ImageReport)
    body = report.to_json()
    assert body['extractedText'] == 'SALE 50% OFF'
    assert body['technicalFindings'] == 'No artifacts'


def test_structured_output_schema_asks_for_whole_number_score():
    score = REPORT_JSON_SCHEMA['properties']['credibilityScore']
    assert score == {'type': 'integer', 'minimum': 0, 'maximum': 100}
