"""Tests for the inkwell command line."""

import os
import time
from unittest.mock import patch

import pytest
from click.testing import CliRunner
from sqlalchemy import create_engine, insert

from inkwell.cli import cli
from inkwell.db.base import Base
from inkwell.db.models.post import Post
from inkwell.lib.exceptions import ConfigurationError


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def populated(settings, db_path, upload_dir):
    """One post referencing a.png; b.png is left unreferenced."""
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)
    with engine.begin() as conn:
        conn.execute(insert(Post).values(
            username="alice", content="hi", image_path="app/uploads/a.png"
        ))
    engine.dispose()

    upload_dir.mkdir()
    past = time.time() - 7200
    for name in ("a.png", "b.png"):
        path = upload_dir / name
        path.write_bytes(b"x")
        os.utime(path, (past, past))
    return settings


class TestOrphans:
    def test_lists_without_deleting(self, runner, populated, upload_dir):
        with patch("inkwell.cli.get_settings", return_value=populated):
            result = runner.invoke(cli, ["orphans"])

        assert result.exit_code == 0, result.output
        assert "b.png" in result.output
        assert "a.png" not in result.output
        assert (upload_dir / "b.png").exists()

    def test_delete(self, runner, populated, upload_dir):
        with patch("inkwell.cli.get_settings", return_value=populated):
            result = runner.invoke(cli, ["orphans", "--delete"])

        assert result.exit_code == 0, result.output
        assert not (upload_dir / "b.png").exists()
        assert (upload_dir / "a.png").exists()

    def test_min_age_excludes_recent_files(self, runner, populated, upload_dir):
        (upload_dir / "new.png").write_bytes(b"x")

        with patch("inkwell.cli.get_settings", return_value=populated):
            result = runner.invoke(cli, ["orphans"])

        assert "new.png" not in result.output

    def test_missing_configuration(self, runner):
        with patch(
            "inkwell.cli.get_settings",
            side_effect=ConfigurationError("DATABASE_URL must be set"),
        ):
            result = runner.invoke(cli, ["orphans"])

        assert result.exit_code != 0
        assert "DATABASE_URL must be set" in result.output


class TestDb:
    def test_no_arguments_prints_help(self, runner):
        result = runner.invoke(cli, ["db"])

        assert result.exit_code == 0
        assert "Alembic" in result.output
