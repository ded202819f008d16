"""Tests for the CLI."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from songseq.cli import main, parse_args

NAME = "llb3_0001_2018_04_23_06_00_00.wav"


def _write_store(tmp_path: Path) -> Path:
    path = tmp_path / "annotations.json"
    path.write_text(json.dumps({
        "keys": [NAME],
        "elements": [{
            "segType": [1, 2, 3, 1],
            "segAbsStartTimes": [0.0, 0.2, 0.4, 3.0],
            "segFileStartTimes": [0.0, 0.2, 0.4, 3.0],
            "segFileEndTimes": [0.1, 0.3, 0.5, 3.1],
        }],
    }))
    return path


class TestParseConvert:
    def test_defaults(self):
        args = parse_args(["convert", "a.json"])
        assert args.command == "convert"
        assert args.annotation_file == Path("a.json")
        assert args.min_phrases == 1
        assert args.max_sep == 0.5
        assert args.onset_sym == "1"
        assert args.offset_sym == "2"
        assert args.include_zero is False
        assert args.join_entries == []
        assert args.syllables is None
        assert args.date_fields == [2, 3, 4]

    def test_join_groups(self):
        args = parse_args(["convert", "a.json", "--join", "5,6,7", "--join", "8,9"])
        assert args.join_entries == [(5, 6, 7), (8, 9)]

    def test_bad_join_group(self):
        with pytest.raises(SystemExit):
            parse_args(["convert", "a.json", "--join", "5,x"])

    def test_label_options(self):
        args = parse_args([
            "convert", "a.json",
            "--ignore-entries", "3", "4",
            "--ignore-dates", "2018_04_23",
            "--include-zero",
            "--syllables", "1", "2",
        ])
        assert args.ignore_entries == [3, 4]
        assert args.ignore_dates == ["2018_04_23"]
        assert args.include_zero is True
        assert args.syllables == [1, 2]

    def test_feature_options(self):
        args = parse_args([
            "convert", "a.json",
            "--calc-brainard", "/wavs",
            "--brainard-extractor", "mylab.features:brainard",
        ])
        assert args.calc_brainard == Path("/wavs")
        assert args.brainard_extractor == "mylab.features:brainard"
        assert args.calc_tchernichovski is None

    def test_no_command(self):
        with pytest.raises(SystemExit):
            parse_args([])


class TestRunConvert:
    def test_writes_outputs(self, tmp_path, capsys):
        store = _write_store(tmp_path)
        out = tmp_path / "result.json"
        strings = tmp_path / "strings.txt"
        main(["convert", str(store), "--output", str(out), "--strings-output", str(strings)])
        assert json.loads(out.read_text())["bouts"][0]["symbols"] == "1ABC2"
        assert strings.read_text() == "1ABC2\n1A2\n"
        assert "Bouts: 2" in capsys.readouterr().out

    def test_prints_strings_without_output(self, tmp_path, capsys):
        store = _write_store(tmp_path)
        main(["convert", str(store), "--min-phrases", "2"])
        out = capsys.readouterr().out
        assert "Bouts: 1" in out
        assert "1ABC2" in out

    def test_passes_config(self, tmp_path):
        store = _write_store(tmp_path)
        with patch("songseq.pipeline.convert") as mock_convert:
            mock_convert.return_value.bouts = []
            mock_convert.return_value.day_indices = []
            mock_convert.return_value.syllables = []
            mock_convert.return_value.symbols = []
            mock_convert.return_value.warnings = []
            mock_convert.return_value.strings = []
            main(["convert", str(store), "--max-sep", "0.3", "--join", "2,3"])
        config = mock_convert.call_args[0][1]
        assert config.max_sep == 0.3
        assert config.join_entries == ((2, 3),)

    def test_missing_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["convert", str(tmp_path / "missing.json")])
        assert exc.value.code == 1
        assert "file not found" in capsys.readouterr().err

    def test_invalid_config(self, tmp_path, capsys):
        store = _write_store(tmp_path)
        with pytest.raises(SystemExit) as exc:
            main(["convert", str(store), "--min-phrases", "0"])
        assert exc.value.code == 1
        assert "min_phrases" in capsys.readouterr().err

    def test_bad_extractor(self, tmp_path, capsys):
        store = _write_store(tmp_path)
        with pytest.raises(SystemExit):
            main(["convert", str(store), "--brainard-extractor", "no_such_module_xyz:f"])
        assert "cannot load brainard extractor" in capsys.readouterr().err


class TestRunLabels:
    def test_prints_counts(self, tmp_path, capsys):
        store = _write_store(tmp_path)
        main(["labels", str(store)])
        out = capsys.readouterr().out
        assert "Files: 1" in out
        lines = [line.split() for line in out.splitlines()[1:]]
        assert lines == [["1", "2"], ["2", "1"], ["3", "1"]]

    def test_dump_json_writes_loadable_store(self, tmp_path, capsys):
        from songseq.annotations import load_annotations

        store = _write_store(tmp_path)
        dumped = tmp_path / "out" / "store.json"
        main(["labels", str(store), "--dump-json", str(dumped)])
        assert f"Store: {dumped}" in capsys.readouterr().out
        reloaded = load_annotations(dumped)
        assert list(reloaded) == [NAME]
        assert reloaded[NAME].labels.tolist() == [1, 2, 3, 1]
        assert reloaded[NAME].ends.tolist() == [0.1, 0.3, 0.5, 3.1]

    def test_dump_json_defaults_off(self, tmp_path):
        args = parse_args(["labels", str(tmp_path / "a.json")])
        assert args.dump_json is None
