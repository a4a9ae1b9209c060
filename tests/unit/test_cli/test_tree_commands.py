"""Tests for the tree CLI commands.

Testing approach:
- Uses Click's CliRunner for command invocation
- Runs against a throwaway SQLite file configured through DATABASE_URL
- Corrupts stored intervals with plain sqlite3 to exercise check and rebuild
"""

from __future__ import annotations

import sqlite3

from click.testing import CliRunner
import pytest

from nested_set.cli.commands.tree import load_model
from nested_set.cli.main import cli
from nested_set.core.models import Category
from nested_set.core.settings import clear_settings_cache

# =============================================================================
# Test Fixtures
# =============================================================================


@pytest.fixture
def cli_runner():
    """Create Click CLI runner for testing commands.

    Returns:
        CliRunner instance configured for testing.
    """
    return CliRunner()


@pytest.fixture
def db_file(tmp_path, monkeypatch):
    """Point the CLI at a fresh SQLite database file."""
    path = tmp_path / "tree.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{path}")
    monkeypatch.setenv("LOG_LOG_SQL", "false")
    clear_settings_cache()
    yield path
    clear_settings_cache()


def run_sql(path, *statements: str) -> None:
    with sqlite3.connect(path) as conn:
        for statement in statements:
            conn.execute(statement)


def invoke(runner: CliRunner, *args: str):
    return runner.invoke(cli, ["tree", *args], obj={})


# =============================================================================
# Commands
# =============================================================================


class TestInitRoot:
    """Tests for 'tree init-root' command."""

    def test_creates_root(self, cli_runner, db_file):
        result = invoke(cli_runner, "init-root")

        assert result.exit_code == 0, result.output
        assert "Root ready: root [1] (1, 2)" in result.output

    def test_is_idempotent(self, cli_runner, db_file):
        invoke(cli_runner, "init-root")
        result = invoke(cli_runner, "init-root", "--name", "other")

        assert result.exit_code == 0, result.output
        assert "root [1]" in result.output


class TestShow:
    """Tests for 'tree show' command."""

    def test_empty_tree(self, cli_runner, db_file):
        invoke(cli_runner, "init-root")

        result = invoke(cli_runner, "show")

        assert result.exit_code == 0
        assert "Category tree" in result.output
        assert "Tree is empty" in result.output

    def test_nested_rows(self, cli_runner, db_file):
        invoke(cli_runner, "init-root")
        run_sql(
            db_file,
            'UPDATE categories SET "right" = 6 WHERE id = 1',
            'INSERT INTO categories (id, name, parent_id, "left", "right") VALUES (2, \'books\', 1, 2, 5)',
            'INSERT INTO categories (id, name, parent_id, "left", "right") VALUES (3, \'fiction\', 2, 3, 4)',
        )

        result = invoke(cli_runner, "show")

        assert result.exit_code == 0, result.output
        assert "books [2]  (2, 5)" in result.output
        assert "\n  fiction [3]  (3, 4)" in result.output


class TestCheckAndRebuild:
    """Tests for 'tree check' and 'tree rebuild' commands."""

    def test_consistent_tree(self, cli_runner, db_file):
        invoke(cli_runner, "init-root")

        result = invoke(cli_runner, "check")

        assert result.exit_code == 0
        assert "Tree is consistent" in result.output

    def test_corrupt_tree_then_rebuild(self, cli_runner, db_file):
        invoke(cli_runner, "init-root")
        run_sql(
            db_file,
            'INSERT INTO categories (id, name, parent_id, "left", "right") VALUES (2, \'books\', 1, 7, 9)',
        )

        broken = invoke(cli_runner, "check")
        assert broken.exit_code == 1
        assert "violation(s) found" in broken.output

        rebuilt = invoke(cli_runner, "rebuild")
        assert rebuilt.exit_code == 0, rebuilt.output
        assert "Rebuilt tree, 2 row(s) renumbered" in rebuilt.output

        fixed = invoke(cli_runner, "check")
        assert fixed.exit_code == 0, fixed.output


# =============================================================================
# Model loading
# =============================================================================


class TestModelOption:
    """Tests for the --model option."""

    def test_default_model(self):
        assert load_model("nested_set.core.models.category:Category") is Category

    @pytest.mark.parametrize(
        "path",
        [
            "no_colon",
            "nested_set.core.models:Missing",
            "does.not.exist:Thing",
            "nested_set.core.database:Base",
        ],
    )
    def test_bad_model_is_usage_error(self, cli_runner, db_file, path):
        result = invoke(cli_runner, "--model", path, "show")

        assert result.exit_code == 2
        assert "--model" in result.output
