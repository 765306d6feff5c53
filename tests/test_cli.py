from __future__ import annotations

import importlib
from pathlib import Path

import pytest

from photoconv import ConfigError, DepthRange, ImageFormat, build_run_config
from photoconv.cli import EXIT_FAILURES, EXIT_OK, EXIT_SETUP_ERROR, main, parse_args
from photoconv.config import parse_quality, parse_source_extensions, parse_worker_count


def test_parse_args_defaults():
    args = parse_args(["--to", "png", "--from", "jpg"])
    assert args.target == "png"
    assert args.sources == ["jpg"]
    assert args.threads == "8"
    assert args.delete_original is False
    assert args.input_dir is None
    assert args.output_dir is None
    assert args.depth is None


def test_parse_args_short_flags():
    args = parse_args(
        ["-t", "webp", "-f", "jpg", "jpeg", "-i", "in", "-o", "out", "-d", "-j", "3"]
    )
    assert args.sources == ["jpg", "jpeg"]
    assert args.input_dir == Path("in")
    assert args.output_dir == Path("out")
    assert args.delete_original is True
    assert args.threads == "3"


def test_parse_args_requires_target():
    with pytest.raises(SystemExit):
        parse_args(["--from", "jpg"])


def test_build_run_config_normalizes(tmp_path):
    config = build_run_config(
        target=".PNG",
        sources=["JPG,jpeg", "tif"],
        input_dir=tmp_path,
        workers="2",
        depth="1-3",
        quality="90",
    )
    assert config.target_format is ImageFormat.PNG
    assert config.target_extension == "png"
    assert config.source_extensions == frozenset({"jpg", "jpeg", "tif"})
    assert config.workers == 2
    assert config.depth_range == DepthRange(1, 3)
    assert config.quality == 90
    assert config.input_dir == tmp_path.resolve()
    assert config.output_dir is None


@pytest.mark.parametrize("value", ["abc", "0", "-2", "1.5", True])
def test_parse_worker_count_rejects(value):
    with pytest.raises(ConfigError):
        parse_worker_count(value)


def test_parse_worker_count_default():
    assert parse_worker_count(None) == 8
    assert parse_worker_count("16") == 16


def test_parse_quality_bounds():
    assert parse_quality(None) is None
    with pytest.raises(ConfigError):
        parse_quality("0")
    with pytest.raises(ConfigError):
        parse_quality("high")


def test_parse_source_extensions_rejects_unknown_and_empty():
    with pytest.raises(ConfigError):
        parse_source_extensions(["jpg", "docx"])
    with pytest.raises(ConfigError):
        parse_source_extensions([",", ""])


def test_target_equal_to_source_rejected(tmp_path):
    with pytest.raises(ConfigError):
        build_run_config(target="jpg", sources=["jpg", "png"], input_dir=tmp_path)


def test_main_converts_directory(photo_dir):
    code = main(
        ["--to", "png", "--from", "jpg", "-i", str(photo_dir), "-j", "4", "--no-progress"]
    )
    assert code == EXIT_OK
    assert len(list(photo_dir.glob("img_*.png"))) == 10
    assert len(list(photo_dir.glob("*.jpg"))) == 10


def test_main_delete_original_into_output_dir(photo_dir, tmp_path):
    out = tmp_path / "converted"
    code = main(
        [
            "--to",
            "webp",
            "--from",
            "png",
            "-i",
            str(photo_dir),
            "-o",
            str(out),
            "--delete-original",
            "--no-progress",
        ]
    )
    assert code == EXIT_OK
    assert len(list(out.glob("*.webp"))) == 5
    assert list(photo_dir.glob("*.png")) == []


def test_main_reports_failures(corrupt_dir):
    code = main(["--to", "png", "--from", "jpg", "-i", str(corrupt_dir), "--no-progress"])
    assert code == EXIT_FAILURES
    assert len(list(corrupt_dir.glob("*.png"))) == 9


def test_main_empty_directory_exits_zero(tmp_path):
    code = main(["--to", "png", "--from", "jpg", "-i", str(tmp_path), "--no-progress"])
    assert code == EXIT_OK


@pytest.mark.parametrize(
    "extra",
    [
        ["--threads", "many"],
        ["--threads", "0"],
        ["--depth", "3-1"],
        ["--depth", "deep"],
        ["--quality", "101"],
    ],
)
def test_main_config_errors(tmp_path, extra):
    code = main(["--to", "png", "--from", "jpg", "-i", str(tmp_path), "--no-progress", *extra])
    assert code == EXIT_SETUP_ERROR


def test_main_unknown_format(tmp_path):
    code = main(["--to", "heic2", "--from", "jpg", "-i", str(tmp_path), "--no-progress"])
    assert code == EXIT_SETUP_ERROR


def test_main_missing_input_dir(tmp_path):
    code = main(
        ["--to", "png", "--from", "jpg", "-i", str(tmp_path / "absent"), "--no-progress"]
    )
    assert code == EXIT_SETUP_ERROR


def test_main_writes_detailed_log_file(photo_dir, tmp_path):
    log_file = tmp_path / "logs" / "run.log"
    code = main(
        [
            "--to",
            "png",
            "--from",
            "jpg",
            "-i",
            str(photo_dir),
            "--no-progress",
            "--detailed-logging",
            "--log-file",
            str(log_file),
        ]
    )
    assert code == EXIT_OK
    assert "BATCH COMPLETE" in log_file.read_text(encoding="utf-8")


def test_main_missing_input_dir_with_detailed_logging(tmp_path):
    missing = tmp_path / "absent"
    code = main(
        ["--to", "png", "--from", "jpg", "-i", str(missing), "--no-progress", "--detailed-logging"]
    )
    assert code == EXIT_SETUP_ERROR
    assert not missing.exists()


def test_main_unwritable_log_file(photo_dir, tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    code = main(
        [
            "--to",
            "png",
            "--from",
            "jpg",
            "-i",
            str(photo_dir),
            "--no-progress",
            "--log-file",
            str(blocker / "run.log"),
        ]
    )
    assert code == EXIT_SETUP_ERROR
    assert list(photo_dir.glob("img_*.png")) == []


def test_importing_main_module_does_not_run_cli():
    module = importlib.import_module("photoconv.__main__")
    assert module.main is main
