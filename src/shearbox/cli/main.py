"""Command-line interface for the shearing-box problem generator.

Usage:
    shearbox init athinput.hgb --output hgb.00000.h5
    shearbox init --preset epicyclic --blocks 2 2 1
    shearbox history hgb.00000.h5
    shearbox athinput hgb > athinput.hgb
"""

from __future__ import annotations

import logging
import sys

import click


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """shearbox: HGB shearing-sheet initial conditions and diagnostics."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _echo_history(averages: dict[str, float]) -> None:
    click.echo("\n--- History (volume averages) ---")
    width = max((len(name) for name in averages), default=0)
    for name, value in averages.items():
        click.echo(f"  {name.ljust(width)}  {value: .6e}")


@cli.command()
@click.argument("input_file", required=False, type=click.Path(exists=True))
@click.option("--preset", type=str, default=None, help="Use a named preset instead of an input file.")
@click.option("--output", "-o", type=str, default=None, help="Write the initial state to this HDF5 checkpoint.")
@click.option(
    "--blocks", type=int, nargs=3, default=(1, 1, 1), show_default=True,
    help="Mesh blocks along x, y, z.",
)
@click.option("--isothermal", is_flag=True, help="Isothermal EOS (default adiabatic).")
@click.option("--hydro", is_flag=True, help="No magnetic fields.")
@click.option("--fargo", is_flag=True, help="Background shear handled by orbital advection.")
@click.option("--vertical-gravity", is_flag=True, help="Include vertical tidal gravity.")
@click.option("--ohmic", is_flag=True, help="Ohmic resistivity (reads problem/eta).")
@click.option("--viscosity", is_flag=True, help="Navier-Stokes viscosity (reads problem/nu).")
def init(
    input_file: str | None,
    preset: str | None,
    output: str | None,
    blocks: tuple[int, int, int],
    isothermal: bool,
    hydro: bool,
    fargo: bool,
    vertical_gravity: bool,
    ohmic: bool,
    viscosity: bool,
) -> None:
    """Generate the initial state from an athinput file or a preset."""
    from shearbox.config import PhysicsConfig, ShearingBoxConfig
    from shearbox.core.bases import SolverHooks
    from shearbox.core.mesh import decompose
    from shearbox.diagnostics.checkpoint import save_checkpoint
    from shearbox.errors import ShearingBoxError
    from shearbox.io.athinput import ParameterInput, generate_athinput
    from shearbox.presets import get_preset
    from shearbox.problem.hgb import ShearingBoxProblem

    if (input_file is None) == (preset is None):
        click.echo("Give exactly one of INPUT_FILE or --preset", err=True)
        sys.exit(2)
    if preset is not None and any((isothermal, hydro, fargo, vertical_gravity, ohmic, viscosity)):
        click.echo("Physics flags apply to INPUT_FILE only; a preset fixes its own physics", err=True)
        sys.exit(2)

    try:
        if preset is not None:
            config = get_preset(preset)
            physics = config.physics
            pin = ParameterInput.from_text(generate_athinput(config))
            click.echo(f"Using preset: {preset}")
        else:
            pin = ParameterInput.from_file(input_file)
            physics = PhysicsConfig.from_parameter_input(
                pin,
                eos="isothermal" if isothermal else "adiabatic",
                mhd=not hydro,
                orbital_advection=fargo,
                vertical_gravity=vertical_gravity,
                ohmic=ohmic,
                navier_stokes=viscosity,
            )
            config = ShearingBoxConfig.from_parameter_input(pin, physics)

        problem = ShearingBoxProblem(physics)
        mesh_blocks = decompose(config.mesh, physics, blocks)
        for block in mesh_blocks:
            hooks = SolverHooks()
            problem.generate(block, pin, hooks)
    except (ShearingBoxError, ValueError, KeyError) as exc:
        click.echo(f"Setup error: {exc}", err=True)
        sys.exit(1)

    click.echo(f"Mesh: {config.mesh.shape} in {len(mesh_blocks)} block(s)")
    click.echo(f"ipert={problem.result.ipert} ifield={problem.result.ifield} B0={problem.result.b0:.6e}")
    _echo_history(hooks.history.reduce(mesh_blocks))

    if output:
        save_checkpoint(output, mesh_blocks, config_json=config.to_json())
        click.echo(f"Initial state written to {output}")


@cli.command()
@click.argument("checkpoint_file", type=click.Path(exists=True))
def history(checkpoint_file: str) -> None:
    """Re-enroll history variables on a checkpoint and print their averages."""
    from shearbox.config import ShearingBoxConfig
    from shearbox.core.bases import SolverHooks
    from shearbox.diagnostics.checkpoint import load_checkpoint, restore_blocks
    from shearbox.io.athinput import ParameterInput, generate_athinput
    from shearbox.problem.hgb import ShearingBoxProblem

    data = load_checkpoint(checkpoint_file)
    if data["config_json"] is None:
        click.echo("Checkpoint carries no configuration; cannot restart", err=True)
        sys.exit(1)

    config = ShearingBoxConfig.model_validate_json(data["config_json"])
    blocks = restore_blocks(data, config.physics)
    pin = ParameterInput.from_text(generate_athinput(config))

    problem = ShearingBoxProblem(config.physics)
    hooks = SolverHooks()
    problem.read_restart(blocks[0], pin, hooks)

    click.echo(f"Checkpoint t={data['time']:.6e}, {len(blocks)} block(s)")
    _echo_history(hooks.history.reduce(blocks))


@cli.command("presets")
def presets_cmd() -> None:
    """List the available scenario presets."""
    from shearbox.presets import list_presets

    for entry in list_presets():
        click.echo(f"  {entry['name']:<16} {entry['description']}")


@cli.command()
@click.argument("preset")
def athinput(preset: str) -> None:
    """Print the athinput file of a preset."""
    from shearbox.io.athinput import generate_athinput
    from shearbox.presets import get_preset

    try:
        config = get_preset(preset)
    except KeyError as exc:
        click.echo(str(exc), err=True)
        sys.exit(1)
    click.echo(generate_athinput(config))


if __name__ == "__main__":
    cli()
