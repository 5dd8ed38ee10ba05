from __future__ import annotations

import importlib.util
import pathlib
import sys
import traceback
from types import ModuleType
from typing import Callable, Iterable

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from threadforge._config import UnitSettings, get_build_defaults, get_unit_settings
from threadforge.io import write_scad, write_stl
from threadforge.mesh import Mesh, Polyhedron, analyze_mesh, combine_meshes
from threadforge.modeling import iso
from threadforge.modeling.fasteners import make_hex_bolt, make_hex_nut
from threadforge.modeling.profiles import get_profile
from threadforge.modeling.threading import ThreadParameters, build_thread
from threadforge.validation import ThreadforgeError

console = Console()
app = typer.Typer(help="Generate helical thread meshes, nuts and bolts as STL.")


def _log_active_units(units: UnitSettings) -> None:
    if abs(units.scale_to_mm - 1.0) < 1e-9:
        console.print(f"[magenta]Units: {units.name} ({units.label}).[/magenta]")
    else:
        console.print(
            f"[magenta]Units: {units.name}; lengths are read in {units.label} and written in mm, "
            f"1 {units.label} = {units.scale_to_mm:.4g} mm.[/magenta]"
        )


def _to_mm(value: float | None, units: UnitSettings) -> float | None:
    if value is None:
        return None
    return value * units.scale_to_mm


def _load_module(path: pathlib.Path) -> ModuleType:
    module_name = "threadforge_user_model"
    if module_name in sys.modules:
        del sys.modules[module_name]

    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise typer.BadParameter(f"Unable to import model at {path}")

    module = importlib.util.module_from_spec(spec)
    # Register module so features relying on sys.modules (e.g., dataclasses) work.
    sys.modules[module_name] = module
    spec.loader.exec_module(module)
    return module


class ModelBuildError(RuntimeError):
    """Raised when a model module cannot provide a usable scene."""


def _format_exception(exc: BaseException) -> str:
    return "".join(traceback.format_exception(exc))


def _scene_factory_from_module(model_path: pathlib.Path) -> Callable[[], object]:
    def factory() -> object:
        module = _load_module(model_path)
        builder = getattr(module, "build", None)
        if builder is None or not callable(builder):
            raise ModelBuildError(f"{model_path} must define a callable build() function.")
        return builder()

    return factory


def collect_meshes(scene: object) -> list[Mesh]:
    """Flatten a scene (mesh, polyhedron or nested iterables of them) into meshes."""

    if isinstance(scene, Mesh):
        return [scene]
    if isinstance(scene, Polyhedron):
        return [scene.to_mesh()]
    if isinstance(scene, Iterable) and not isinstance(scene, (str, bytes)):
        meshes: list[Mesh] = []
        for item in scene:
            meshes.extend(collect_meshes(item))
        return meshes
    raise ModelBuildError(f"Unsupported scene object of type {type(scene).__name__}.")


def _next_available_path(path: pathlib.Path) -> pathlib.Path:
    """Return a non-conflicting path by appending ' (n)' before the suffix."""

    if not path.exists():
        return path

    parent = path.parent
    stem = path.stem
    suffix = path.suffix
    n = 1
    while True:
        candidate = parent / f"{stem} ({n}){suffix}"
        if not candidate.exists():
            return candidate
        n += 1


def _resolve_output(output: pathlib.Path, overwrite: bool) -> pathlib.Path:
    final_output = output
    if output.exists() and not overwrite:
        final_output = _next_available_path(output)
        console.print(f"[yellow]Output {output} exists; writing to {final_output} instead.[/yellow]")
    final_output.parent.mkdir(parents=True, exist_ok=True)
    return final_output


def _write_mesh(mesh: Mesh, output: pathlib.Path, overwrite: bool, ascii: bool, title: str) -> pathlib.Path:
    final_output = _resolve_output(output, overwrite)
    analysis = analyze_mesh(mesh)
    try:
        write_stl(mesh, final_output, ascii=ascii)
    except OSError as exc:
        raise typer.BadParameter(f"Failed to export STL: {exc}") from exc

    mode = "ASCII" if ascii else "binary"
    status = "watertight" if analysis.is_watertight else "; ".join(analysis.issues())
    console.print(
        Panel(
            f"Wrote {mode} STL to [green]{final_output}[/green]: "
            f"{mesh.n_vertices} vertices, {mesh.n_faces} triangles, {status}.",
            title=title,
            border_style="green" if analysis.is_watertight else "yellow",
        )
    )
    return final_output


@app.command()
def rod(
    dia: float = typer.Option(..., help="Major diameter in configured units."),
    length: float = typer.Option(..., help="Rod length in configured units."),
    pitch: float = typer.Option(0.0, help="Pitch in configured units; 0 uses the ISO coarse pitch."),
    depth: float | None = typer.Option(None, help="Thread depth in configured units; default derives it from the flank angle."),
    angle: float = typer.Option(iso.STANDARD_ANGLE, help="Flank half-angle in degrees."),
    rshift: float = typer.Option(0.0, help="Radial correction in configured units (negative shrinks the rod)."),
    profile: str = typer.Option("triangular", help="sine, double_sine, triangular, iso or circle."),
    circle_radius: float | None = typer.Option(None, help="Circle radius for the circle profile, in configured units."),
    fn: int | None = typer.Option(None, help="Vertices per disc."),
    fnstep: int | None = typer.Option(None, help="Ring-index rotation per layer."),
    taper_arc: float | None = typer.Option(None, help="Fraction of a turn over which the thread fades out."),
    strict_length: bool = typer.Option(False, "--strict-length", help="Fail instead of rounding the length."),
    output: pathlib.Path = typer.Option(pathlib.Path("rod.stl"), "--output", "-o", help="STL file to write."),
    scad: pathlib.Path | None = typer.Option(None, "--scad", help="Also write an OpenSCAD polyhedron."),
    overwrite: bool = typer.Option(False, "--overwrite", help="Allow replacing existing files."),
    ascii: bool = typer.Option(False, "--ascii", help="Write ASCII STL instead of binary."),
) -> None:
    """
    Build a single threaded rod from raw thread parameters.
    """

    defaults = get_build_defaults()
    units = get_unit_settings()
    try:
        if profile.strip().lower() == "circle":
            if circle_radius is None:
                raise typer.BadParameter("--circle-radius is required for the circle profile.")
            thread_profile = get_profile("circle", r=_to_mm(circle_radius, units), dia=_to_mm(dia, units))
        else:
            thread_profile = get_profile(profile)
        params = ThreadParameters(
            dia=_to_mm(dia, units),
            length=_to_mm(length, units),
            pitch=_to_mm(pitch, units),
            thread_depth=_to_mm(depth, units),
            rshift=_to_mm(rshift, units),
            fn=fn if fn is not None else defaults.fn,
            fnstep=fnstep if fnstep is not None else defaults.fnstep,
            taper_arc=taper_arc if taper_arc is not None else defaults.taper_arc,
            profile=thread_profile,
            angle=angle,
            strict_length=strict_length,
        )
        polyhedron = build_thread(params)
    except ThreadforgeError as exc:
        raise typer.BadParameter(str(exc)) from exc

    _log_active_units(units)
    _write_mesh(polyhedron.to_mesh(), output, overwrite, ascii, title="Threaded rod")
    if scad is not None:
        scad_path = _resolve_output(scad, overwrite)
        write_scad(polyhedron, scad_path, header=f"// threadforge rod dia={params.dia:g} length={params.length:g}")
        console.print(f"Wrote OpenSCAD polyhedron to [green]{scad_path}[/green].")


@app.command()
def nut(
    dia: float = typer.Option(..., help="Nominal diameter in configured units (ISO range M1.6 to M36)."),
    pitch: float = typer.Option(0.0, help="Pitch in configured units; 0 uses the ISO coarse pitch."),
    clearance: float = typer.Option(0.2, help="Radial clearance added to the internal thread, in configured units."),
    rounding: float = typer.Option(0.0, help="Edge rounding radius of the hex body, in configured units."),
    fn: int | None = typer.Option(None, help="Vertices per disc."),
    fnstep: int | None = typer.Option(None, help="Ring-index rotation per layer."),
    output: pathlib.Path = typer.Option(pathlib.Path("nut.stl"), "--output", "-o", help="STL file to write."),
    overwrite: bool = typer.Option(False, "--overwrite", help="Allow replacing an existing STL."),
    ascii: bool = typer.Option(False, "--ascii", help="Write ASCII STL instead of binary."),
) -> None:
    """
    Build an ISO hex nut.
    """

    defaults = get_build_defaults()
    units = get_unit_settings()
    try:
        mesh = make_hex_nut(
            _to_mm(dia, units),
            pitch=_to_mm(pitch, units),
            clearance=_to_mm(clearance, units),
            rounding=_to_mm(rounding, units),
            fn=fn if fn is not None else defaults.fn,
            fnstep=fnstep if fnstep is not None else defaults.fnstep,
        )
    except ThreadforgeError as exc:
        raise typer.BadParameter(str(exc)) from exc
    _log_active_units(units)
    _write_mesh(mesh, output, overwrite, ascii, title="Hex nut")


@app.command()
def bolt(
    dia: float = typer.Option(..., help="Nominal diameter in configured units (ISO range M1.6 to M36)."),
    length: float = typer.Option(..., help="Shank length in configured units."),
    pitch: float = typer.Option(0.0, help="Pitch in configured units; 0 uses the ISO coarse pitch."),
    clearance: float = typer.Option(0.0, help="Radial clearance removed from the external thread, in configured units."),
    rounding: float = typer.Option(0.0, help="Edge rounding radius of the hex head, in configured units."),
    fn: int | None = typer.Option(None, help="Vertices per disc."),
    fnstep: int | None = typer.Option(None, help="Ring-index rotation per layer."),
    taper_arc: float | None = typer.Option(None, help="Fraction of a turn over which the thread fades out."),
    output: pathlib.Path = typer.Option(pathlib.Path("bolt.stl"), "--output", "-o", help="STL file to write."),
    overwrite: bool = typer.Option(False, "--overwrite", help="Allow replacing an existing STL."),
    ascii: bool = typer.Option(False, "--ascii", help="Write ASCII STL instead of binary."),
) -> None:
    """
    Build an ISO hex bolt with a tapered lead-in.
    """

    defaults = get_build_defaults()
    units = get_unit_settings()
    try:
        mesh = make_hex_bolt(
            _to_mm(dia, units),
            _to_mm(length, units),
            pitch=_to_mm(pitch, units),
            clearance=_to_mm(clearance, units),
            rounding=_to_mm(rounding, units),
            taper_arc=taper_arc if taper_arc is not None else defaults.taper_arc,
            fn=fn if fn is not None else defaults.fn,
            fnstep=fnstep if fnstep is not None else defaults.fnstep,
        )
    except ThreadforgeError as exc:
        raise typer.BadParameter(str(exc)) from exc
    _log_active_units(units)
    _write_mesh(mesh, output, overwrite, ascii, title="Hex bolt")


@app.command(name="iso")
def iso_table(
    dia: float = typer.Option(..., help="Nominal diameter in configured units."),
    angle: float = typer.Option(iso.STANDARD_ANGLE, help="Flank half-angle in degrees."),
) -> None:
    """
    Print ISO dimensions and derived thread geometry for a diameter.
    """

    dia_mm = _to_mm(dia, get_unit_settings())
    try:
        rows = [
            ("coarse pitch", iso.coarse_pitch(dia_mm)),
            ("hex span (corners)", iso.hex_span(dia_mm)),
            ("hex nut height", iso.hex_nut_height(dia_mm)),
            ("hex bolt head height", iso.hex_bolt_head_height(dia_mm)),
            ("thread depth", iso.thread_depth(dia_mm, 0.0, angle)),
            ("rshift", iso.thread_rshift(dia_mm, 0.0, angle)),
        ]
    except ThreadforgeError as exc:
        raise typer.BadParameter(str(exc)) from exc

    table = Table(title=f"M{dia_mm:g} (flank half-angle {angle:g}°)")
    table.add_column("Quantity")
    table.add_column("mm", justify="right")
    for label, value in rows:
        table.add_row(label, f"{value:.4f}")
    console.print(table)


@app.command()
def export(
    model: pathlib.Path = typer.Argument(..., help="Model module with a build() function."),
    output: pathlib.Path = typer.Option(
        pathlib.Path("model.stl"),
        "--output",
        "-o",
        help="Path to the STL file that will be produced.",
    ),
    overwrite: bool = typer.Option(False, "--overwrite", help="Allow replacing an existing STL."),
    ascii: bool = typer.Option(False, "--ascii", help="Write ASCII STL instead of binary."),
) -> None:
    """
    Run a model module and save its meshes, merged, as an STL file.
    """

    if not model.exists():
        raise typer.BadParameter(f"Model path {model} does not exist.")

    try:
        scene = _scene_factory_from_module(model)()
        meshes = collect_meshes(scene)
    except (ModelBuildError, ThreadforgeError) as exc:
        raise typer.BadParameter(str(exc)) from exc
    except Exception as exc:
        console.print(Panel.fit(_format_exception(exc), title="Model build failed", style="red"))
        raise typer.Exit(code=1) from exc
    if not meshes:
        raise typer.BadParameter(f"{model} build() returned no meshes.")

    _write_mesh(combine_meshes(meshes), output, overwrite, ascii, title="Export complete")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
