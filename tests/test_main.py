"""
Tests for main.py entry point.
"""

import sys
from io import StringIO
from unittest.mock import patch

import pytest

import main


class TestMain:
    """Test the tool dispatcher."""

    @patch('stellarcast.predictor.cli.main', return_value=0)
    def test_predict_tool_receives_remaining_args(self, mock_predict_main):
        test_args = ['main.py', 'predict', '--years', '10', '--standard']

        with patch.object(sys, 'argv', test_args):
            with pytest.raises(SystemExit) as exc_info:
                main.main()

        assert exc_info.value.code == 0
        mock_predict_main.assert_called_once_with(['--years', '10', '--standard'])

    @patch('stellarcast.predictor.cli.main', return_value=1)
    def test_exit_code_propagates(self, mock_predict_main):
        with patch.object(sys, 'argv', ['main.py', 'predict']):
            with pytest.raises(SystemExit) as exc_info:
                main.main()
        assert exc_info.value.code == 1

    def test_invalid_tool(self):
        with patch.object(sys, 'argv', ['main.py', 'planner']):
            with pytest.raises(SystemExit):
                main.main()

    @patch('sys.stderr', new_callable=StringIO)
    def test_import_error_handling(self, mock_stderr):
        with patch.object(sys, 'argv', ['main.py', 'predict']):
            with patch('stellarcast.predictor.cli.main', side_effect=ImportError("Test import error")):
                with pytest.raises(SystemExit) as exc_info:
                    main.main()

        assert exc_info.value.code == 1
        assert "Failed to import required module" in mock_stderr.getvalue()
        assert "Test import error" in mock_stderr.getvalue()

    @patch('sys.stderr', new_callable=StringIO)
    def test_keyboard_interrupt_handling(self, mock_stderr):
        with patch.object(sys, 'argv', ['main.py', 'predict']):
            with patch('stellarcast.predictor.cli.main', side_effect=KeyboardInterrupt()):
                with pytest.raises(SystemExit) as exc_info:
                    main.main()

        assert exc_info.value.code == 130
        assert "Operation cancelled by user" in mock_stderr.getvalue()

    def test_version_argument(self):
        with patch.object(sys, 'argv', ['main.py', '--version']):
            with pytest.raises(SystemExit) as exc_info:
                main.main()
        assert exc_info.value.code == 0

    def test_no_arguments(self):
        with patch.object(sys, 'argv', ['main.py']):
            with pytest.raises(SystemExit):
                main.main()
