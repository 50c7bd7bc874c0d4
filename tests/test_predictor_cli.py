"""
Tests for the prediction command line interface.
"""

import json
from unittest.mock import patch

import pandas as pd
import pytest

from stellarcast.predictor import cli

SIRIUS_ARGS = ['--label', 'Sirius', '--ra', '101.287155', '--dec', '-16.716116', '--parallax', '379.21',
               '--pmra', '-546.01', '--pmdec', '-1223.07', '--rv', '-7.6']


@pytest.fixture
def catalog_csv(tmp_path):
    path = tmp_path / "catalog.csv"
    path.write_text(
        "name,ra,dec,parallax,pmra,pmdec,radialVelocity,aliases\n"
        "Sirius,101.287155,-16.716116,379.21,-546.01,-1223.07,-7.6,Alpha CMa\n"
        "Vega,279.234735,38.783689,130.23,200.94,286.23,-13.5,\n",
        encoding='utf-8'
    )
    return str(path)


class TestArgumentParser:
    """Test parser defaults and options."""

    def test_defaults(self):
        args = cli.create_argument_parser().parse_args([])
        assert args.years == 100.0
        assert args.steps == 50
        assert args.standard is False
        assert args.samples == 200
        assert args.seed == 42
        assert args.names is None

    def test_repeatable_names(self):
        args = cli.create_argument_parser().parse_args(['--name', 'Sirius', '--name', 'Vega'])
        assert args.names == ['Sirius', 'Vega']

    def test_config_from_arguments(self):
        args = cli.create_argument_parser().parse_args(['--years', '10', '--steps', '5', '--standard',
                                                        '--no-uncertainty', '--workers', '2'])
        config = cli._create_prediction_config(args)
        assert config.time_period_years == 10.0
        assert config.time_steps == 5
        assert config.high_fidelity is False
        assert config.include_uncertainty is False
        assert config.mc_workers == 2


class TestTargets:

    def test_direct_star_sexagesimal(self):
        args = cli.create_argument_parser().parse_args(
            ['--ra', '06:45:08.917', '--dec=-16:42:58.02', '--parallax', '379.21',
             '--pmra', '-546.01', '--pmdec', '-1223.07'])
        (record,) = cli._collect_targets(args)
        assert record.ra == pytest.approx(101.28715, abs=1e-4)
        assert record.radial_velocity is None
        assert record.name == 'provided coordinates'

    def test_direct_star_binary(self):
        args = cli.create_argument_parser().parse_args(
            SIRIUS_ARGS + ['--period', '50.1', '--eccentricity', '0.59', '--inclination', '136.5'])
        (record,) = cli._collect_targets(args)
        assert record.has_binary_elements
        assert record.orbital_period == 50.1

    def test_direct_star_requires_all_values(self):
        args = cli.create_argument_parser().parse_args(['--ra', '10', '--dec', '5'])
        with pytest.raises(cli.ConfigurationError, match="--parallax"):
            cli._collect_targets(args)

    def test_name_requires_catalog(self):
        args = cli.create_argument_parser().parse_args(['--name', 'Sirius'])
        with pytest.raises(cli.ConfigurationError, match="--catalog"):
            cli._collect_targets(args)

    def test_no_target(self):
        with pytest.raises(cli.ConfigurationError, match="Specify a star"):
            cli._collect_targets(cli.create_argument_parser().parse_args([]))

    def test_input_file_with_records(self, catalog_csv):
        args = cli.create_argument_parser().parse_args([catalog_csv])
        targets = cli._collect_targets(args)
        assert [t.name for t in targets] == ['Sirius', 'Vega']

    def test_input_file_names_only(self, tmp_path, catalog_csv):
        names = tmp_path / "names.csv"
        names.write_text("name\nVega\n", encoding='utf-8')
        args = cli.create_argument_parser().parse_args([str(names), '--catalog', catalog_csv])
        assert cli._collect_targets(args) == ['Vega']


class TestMain:
    """End-to-end runs of the CLI."""

    def test_direct_star_report(self, capsys):
        exit_code = cli.main(SIRIUS_ARGS + ['--steps', '10', '--samples', '20'])
        assert exit_code == 0
        output = capsys.readouterr().out
        assert "Orbital prediction for Sirius over 100.0 years with 10 time steps" in output
        assert "high-fidelity" in output
        assert "Total execution time" in output

    def test_json_output(self, tmp_path):
        output = tmp_path / "forecast.json"
        exit_code = cli.main(SIRIUS_ARGS + ['--steps', '10', '--standard', '--no-uncertainty',
                                            '--output', str(output)])
        assert exit_code == 0
        data = json.loads(output.read_text(encoding='utf-8'))
        assert data['mode'] == 'standard'
        assert len(data['predictions']) == 11
        assert data['predictions'][-1]['time'] == 100.0

    def test_csv_output_for_catalog_names(self, tmp_path, catalog_csv):
        output = tmp_path / "forecast.csv"
        exit_code = cli.main(['--name', 'Alpha CMa', '--name', 'Vega', '--catalog', catalog_csv,
                              '--steps', '4', '--samples', '10', '--output', str(output)])
        assert exit_code == 0
        df = pd.read_csv(output)
        assert len(df) == 10
        assert set(df['name']) == {'Sirius', 'Vega'}
        assert 'raP50' in df.columns

    def test_unknown_name_reported(self, capsys, catalog_csv):
        exit_code = cli.main(['--name', 'Nope', '--catalog', catalog_csv, '--no-uncertainty'])
        assert exit_code == 1
        assert "StarNotFoundError" in capsys.readouterr().out

    def test_invalid_star_fails(self):
        args = SIRIUS_ARGS[:]
        args[args.index('--parallax') + 1] = '-1'
        assert cli.main(args + ['--no-uncertainty']) == 1

    def test_invalid_configuration(self):
        assert cli.main(SIRIUS_ARGS + ['--steps', '0']) == 1

    def test_missing_catalog_file(self, tmp_path):
        assert cli.main(['--name', 'Sirius', '--catalog', str(tmp_path / "missing.csv")]) == 1

    def test_save_failure(self, tmp_path):
        with patch('stellarcast.predictor.cli.save_results_to_json',
                   side_effect=cli.DataSaveError("disk full")):
            exit_code = cli.main(SIRIUS_ARGS + ['--steps', '2', '--no-uncertainty',
                                                '--output', str(tmp_path / "out.json")])
        assert exit_code == 1
