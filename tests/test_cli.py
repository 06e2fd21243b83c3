"""
Coinflip — CLI Tests
Zero-argument default run, overrides, single-frame command, error exits.

Run with: pytest tests/test_cli.py -v
"""

import json
import os
import sys
from pathlib import Path
from unittest.mock import patch

import numpy as np
import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import coinflip as cli
from core.pipeline import RunResult
from core.settings import RunSettings
from core.video_io import ExtractionError, load_frame, save_frame
from effects.coinflip import coinflip


def _capture_run():
    """Patch the pipeline run and record the settings it receives."""
    seen = {}

    def fake_run(settings):
        seen["settings"] = settings
        return RunResult(5, settings.output_video, compiled=True)

    return seen, patch.object(cli, "run", side_effect=fake_run)


class TestRunCommand:

    def test_no_arguments_uses_defaults(self):
        seen, patcher = _capture_run()
        with patcher:
            cli.main([])
        assert seen["settings"] == RunSettings()

    def test_overrides(self):
        seen, patcher = _capture_run()
        with patcher:
            cli.main(["run", "--input", "clip.mp4", "--output", "out.mp4",
                      "--fps", "24", "--workers", "4", "--effect", "coinflip_lockstep"])
        s = seen["settings"]
        assert s.input_video == Path("clip.mp4")
        assert s.output_video == Path("out.mp4")
        assert s.extract.fps == 24
        assert s.workers == 4
        assert s.effect == "coinflip_lockstep"

    def test_config_file(self, tmp_path):
        config = tmp_path / "coinflip.json"
        config.write_text(json.dumps({"input_video": "a.mp4", "workers": 2}))
        seen, patcher = _capture_run()
        with patcher:
            cli.main(["run", "--config", str(config), "--workers", "3"])
        assert seen["settings"].input_video == Path("a.mp4")
        assert seen["settings"].workers == 3

    def test_bad_fps_exits(self, capsys):
        with pytest.raises(SystemExit) as exc:
            cli.main(["run", "--fps", "-1"])
        assert exc.value.code == 1
        assert "Invalid settings" in capsys.readouterr().err

    def test_fatal_error_exits_1(self, capsys):
        with patch.object(cli, "run", side_effect=ExtractionError(1, "moov atom not found")):
            with pytest.raises(SystemExit) as exc:
                cli.main([])
        assert exc.value.code == 1
        assert "moov atom not found" in capsys.readouterr().err

    def test_compile_failure_reported_without_exit(self, capsys):
        failed = RunResult(2, Path("output.mp4"), compiled=False, compile_error="Unknown encoder")
        with patch.object(cli, "run", return_value=failed):
            cli.main([])
        err = capsys.readouterr().err
        assert "Error creating video" in err
        assert "Unknown encoder" in err


class TestFrameCommand:

    def test_dithers_single_image(self, tmp_path, test_frame):
        src = tmp_path / "in.png"
        dst = tmp_path / "out.png"
        save_frame(test_frame, src)
        cli.main(["frame", str(src), str(dst), "--index", "6"])
        np.testing.assert_array_equal(load_frame(dst), coinflip(test_frame, frame_index=6))

    def test_missing_input_exits(self, tmp_path):
        with pytest.raises(SystemExit) as exc:
            cli.main(["frame", str(tmp_path / "nope.png"), str(tmp_path / "out.png")])
        assert exc.value.code == 1


class TestListEffects:

    def test_lists_both(self, capsys):
        cli.main(["list-effects"])
        out = capsys.readouterr().out
        assert "coinflip" in out
        assert "coinflip_lockstep" in out
