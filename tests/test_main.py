"""
Tests for the command line entry point.
"""

import json

import pytest

from worldforge.data_models import get_random_source, set_random_source
from worldforge.main import (
    GeneratorConfig,
    create_config_from_args,
    main,
    parse_arguments,
    parse_table_title,
    run,
)
from worldforge.tables.table_types import DEFAULT_MAX_CASCADE_DEPTH, TableTitle


@pytest.fixture(autouse=True)
def restore_global_source():
    original = get_random_source()
    yield
    set_random_source(original)


class TestArguments:

    def test_defaults(self):
        config = create_config_from_args(parse_arguments([]))
        assert config.tables == [TableTitle.TREASURE]
        assert config.count == 1
        assert config.seed is None
        assert config.max_depth == DEFAULT_MAX_CASCADE_DEPTH
        assert config.cascade is True
        assert config.run_log_path is None

    def test_all_flags(self, tmp_path):
        args = parse_arguments([
            "--table", "Landscape",
            "-t", "MONSTER_MEAL",
            "--count", "3",
            "--seed", "9",
            "--max-depth", "4",
            "--no-cascade",
            "--run-log", str(tmp_path / "log.json"),
            "--verbose",
        ])
        config = create_config_from_args(args)
        assert config.tables == [TableTitle.LANDSCAPE, TableTitle.MONSTER_MEAL]
        assert config.count == 3
        assert config.seed == 9
        assert config.max_depth == 4
        assert config.cascade is False
        assert config.run_log_path == tmp_path / "log.json"
        assert config.verbose is True

    @pytest.mark.parametrize("value", ["Monster Meal", "monster meal", "MONSTER_MEAL"])
    def test_parse_table_title(self, value):
        assert parse_table_title(value) == TableTitle.MONSTER_MEAL

    def test_unknown_title_exits(self):
        with pytest.raises(SystemExit):
            parse_arguments(["--table", "Dragon"])

    def test_count_must_be_positive(self):
        with pytest.raises(ValueError):
            GeneratorConfig(count=0)

    def test_max_depth_must_not_be_negative(self):
        with pytest.raises(ValueError):
            GeneratorConfig(max_depth=-1)


class TestRun:

    def test_seeded_runs_repeat(self):
        config = GeneratorConfig(tables=[TableTitle.TREASURE, TableTitle.LANDSCAPE], count=5, seed=21)
        assert run(config) == run(config)

    def test_lines_prefixed_with_title(self):
        lines = run(GeneratorConfig(tables=[TableTitle.SIZE], count=4, seed=1))
        assert len(lines) == 4
        assert all(line.startswith("Size: ") for line in lines)

    def test_list_tables(self):
        lines = run(GeneratorConfig(list_tables=True))
        assert any(line.startswith("Landscape (2d6)") for line in lines)

    def test_no_cascade(self):
        lines = run(GeneratorConfig(tables=[TableTitle.MATERIALS], count=50, seed=2, cascade=False))
        assert all(line.startswith("Materials:") for line in lines)

    def test_run_log_saved(self, tmp_path):
        path = tmp_path / "log.json"
        run(GeneratorConfig(tables=[TableTitle.ELEMENT], seed=4, run_log_path=path))

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["seed"] == 4
        assert any(e["event_type"] == "table_lookup" for e in data["events"])


class TestMain:

    def test_main_prints_lines(self, capsys):
        assert main(["--table", "Element", "--count", "2", "--seed", "3"]) == 0
        out = capsys.readouterr().out.splitlines()
        assert len(out) == 2
        assert all(line.startswith("Element: ") for line in out)

    def test_main_rejects_bad_count(self, capsys):
        assert main(["--count", "0"]) == 2
        assert "count must be at least 1" in capsys.readouterr().err

    def test_main_rejects_negative_max_depth(self, capsys):
        assert main(["--max-depth", "-1"]) == 2
        assert "max_depth must not be negative" in capsys.readouterr().err
