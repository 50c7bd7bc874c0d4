"""
Tests for console reporting helpers.
"""

import pytest

from stellarcast.predictor import PredictionConfig, predict_star
from stellarcast.predictor.reporting import (
    format_value_with_band, _select_rows, print_prediction_report, print_error_summary
)


def test_format_value_with_band():
    assert format_value_with_band(1.5, 1.25, 2.0, precision=2) == "1.50 (+0.50/-0.25)"
    assert format_value_with_band(1.5, None, None, precision=1) == "1.5"
    assert format_value_with_band(None, 1.0, 2.0) == "N/A"


@pytest.mark.parametrize("count, max_rows", [(51, 11), (5, 11), (101, 7)])
def test_select_rows_keeps_endpoints(count, max_rows):
    rows = list(range(count))
    selected = _select_rows(rows, max_rows)
    assert selected[0] == 0
    assert selected[-1] == count - 1
    assert len(selected) == min(count, max_rows)


def test_print_prediction_report(capsys, sirius):
    result = predict_star(sirius, time_steps=20, mc_samples=20)
    print_prediction_report(result)
    output = capsys.readouterr().out
    assert "Orbital prediction for Sirius" in output
    assert "Final RA band" in output
    assert "06 45 08.92 -16 42 58.02" in output


def test_print_prediction_report_without_bands(capsys, sirius):
    result = predict_star(sirius, time_steps=5, include_uncertainty=False)
    print_prediction_report(result)
    assert "no uncertainty bands" in capsys.readouterr().out


def test_print_error_summary(capsys):
    print_error_summary(7, 1, {'StarNotFoundError': ['a', 'b', 'c', 'd', 'e', 'f']})
    output = capsys.readouterr().out
    assert "Failures: 6" in output
    assert "... and 3 more" in output
