from __future__ import annotations

import struct
from pathlib import Path

import pytest
import pyvista as pv
from typer.testing import CliRunner

from threadforge.cli import _next_available_path, app

runner = CliRunner()

ROD_ARGS = ["rod", "--dia", "10", "--length", "3", "--pitch", "1.5", "--fn", "16", "--fnstep", "2"]


def test_rod_writes_stl_and_scad(tmp_path: Path) -> None:
    output = tmp_path / "rod.stl"
    scad = tmp_path / "rod.scad"
    result = runner.invoke(app, [*ROD_ARGS, "-o", str(output), "--scad", str(scad)])
    assert result.exit_code == 0, result.output
    assert output.stat().st_size > 84
    assert scad.read_text().startswith("// threadforge rod dia=10 length=3")
    assert "watertight" in result.output


def test_rod_does_not_overwrite_without_flag(tmp_path: Path) -> None:
    output = tmp_path / "rod.stl"
    output.write_text("keep me")
    result = runner.invoke(app, [*ROD_ARGS, "-o", str(output)])
    assert result.exit_code == 0, result.output
    assert output.read_text() == "keep me"
    assert (tmp_path / "rod (1).stl").exists()

    result = runner.invoke(app, [*ROD_ARGS, "-o", str(output), "--overwrite", "--ascii"])
    assert result.exit_code == 0, result.output
    assert output.read_text().startswith("solid threadforge")


def test_rod_rejects_invalid_parameters(tmp_path: Path) -> None:
    result = runner.invoke(app, ["rod", "--dia", "10", "--length", "3", "--fn", "16", "--fnstep", "5", "-o", str(tmp_path / "x.stl")])
    assert result.exit_code == 2
    assert not (tmp_path / "x.stl").exists()

    result = runner.invoke(app, [*ROD_ARGS, "--profile", "circle", "-o", str(tmp_path / "x.stl")])
    assert result.exit_code == 2


def test_rod_circle_profile(tmp_path: Path) -> None:
    output = tmp_path / "circle.stl"
    result = runner.invoke(app, [*ROD_ARGS, "--profile", "circle", "--circle-radius", "6", "-o", str(output)])
    assert result.exit_code == 0, result.output
    assert output.exists()


def test_rod_uses_configured_defaults(isolated_config: Path, tmp_path: Path) -> None:
    isolated_config.mkdir(parents=True, exist_ok=True)
    (isolated_config / "threadforge.cfg").write_text('{"fn": 12, "fnstep": 3, "taper_arc": 0.0, "units": "millimeters"}')
    output = tmp_path / "rod.stl"
    result = runner.invoke(app, ["rod", "--dia", "10", "--length", "3", "--pitch", "1.5", "-o", str(output)])
    assert result.exit_code == 0, result.output
    # 4 layers per pitch, 8 layers, no taper: 2 * 8 * 12 side triangles plus two 10-triangle caps.
    assert struct.unpack("<I", output.read_bytes()[80:84])[0] == 212


def test_rod_reads_lengths_in_configured_units(isolated_config: Path, tmp_path: Path) -> None:
    isolated_config.mkdir(parents=True, exist_ok=True)
    (isolated_config / "threadforge.cfg").write_text('{"units": "inches"}')
    output = tmp_path / "rod.stl"
    scad = tmp_path / "rod.scad"
    args = ["rod", "--dia", "0.5", "--length", "0.5", "--pitch", "0.0625", "--fn", "16", "--fnstep", "2"]
    result = runner.invoke(app, [*args, "-o", str(output), "--scad", str(scad)])
    assert result.exit_code == 0, result.output
    assert "inches" in result.output
    bounds = pv.read(str(output)).bounds
    assert bounds[5] - bounds[4] == pytest.approx(12.7, abs=1e-3)
    assert bounds[1] - bounds[0] == pytest.approx(12.7, abs=1e-3)
    assert scad.read_text().startswith("// threadforge rod dia=12.7 length=12.7")


def test_nut_and_bolt_commands(tmp_path: Path) -> None:
    nut = tmp_path / "nut.stl"
    bolt = tmp_path / "bolt.stl"
    result = runner.invoke(app, ["nut", "--dia", "6", "--fn", "16", "--fnstep", "2", "-o", str(nut)])
    assert result.exit_code == 0, result.output
    assert nut.exists()
    result = runner.invoke(app, ["bolt", "--dia", "6", "--length", "6", "--fn", "16", "--fnstep", "2", "-o", str(bolt)])
    assert result.exit_code == 0, result.output
    assert bolt.exists()

    result = runner.invoke(app, ["nut", "--dia", "60", "-o", str(tmp_path / "big.stl")])
    assert result.exit_code == 2


def test_iso_table() -> None:
    result = runner.invoke(app, ["iso", "--dia", "6"])
    assert result.exit_code == 0, result.output
    assert "1.0000" in result.output
    assert "11.0500" in result.output
    result = runner.invoke(app, ["iso", "--dia", "0.5"])
    assert result.exit_code == 2


def test_export_model(tmp_path: Path, examples_dir: Path) -> None:
    output = tmp_path / "model.stl"
    result = runner.invoke(app, ["export", str(examples_dir / "threaded_rod_example.py"), "-o", str(output)])
    assert result.exit_code == 0, result.output
    assert output.exists()


def test_export_reports_bad_models(tmp_path: Path) -> None:
    missing = runner.invoke(app, ["export", str(tmp_path / "nope.py")])
    assert missing.exit_code == 2

    no_build = tmp_path / "no_build.py"
    no_build.write_text("VALUE = 1\n")
    assert runner.invoke(app, ["export", str(no_build), "-o", str(tmp_path / "a.stl")]).exit_code == 2

    empty = tmp_path / "empty.py"
    empty.write_text("def build():\n    return []\n")
    assert runner.invoke(app, ["export", str(empty), "-o", str(tmp_path / "b.stl")]).exit_code == 2

    broken = tmp_path / "broken.py"
    broken.write_text("def build():\n    raise RuntimeError('boom')\n")
    result = runner.invoke(app, ["export", str(broken), "-o", str(tmp_path / "c.stl")])
    assert result.exit_code == 1
    assert "boom" in result.output


def test_next_available_path(tmp_path: Path) -> None:
    target = tmp_path / "part.stl"
    assert _next_available_path(target) == target
    target.write_text("")
    (tmp_path / "part (1).stl").write_text("")
    assert _next_available_path(target) == tmp_path / "part (2).stl"
