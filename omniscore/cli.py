"""omniscore CLI entry point."""

import logging
import sys
from pathlib import Path

import click

from omniscore import __version__
from omniscore.compiler import ScoreCompiler
from omniscore.config import CompilerConfig
from omniscore.event_renderers import EventRenderer, JsonEventRenderer, TextEventRenderer
from omniscore.score_models import CompileResult

logger = logging.getLogger(__name__)


def _get_renderer(output_format: str) -> EventRenderer:
    """Return the EventRenderer for the requested format."""
    if output_format == "json":
        return JsonEventRenderer(indent=2)
    return TextEventRenderer()


def _configure_logging(verbose: int) -> None:
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _compile_file(score_file: str, tempo: float | None) -> CompileResult:
    """Read and compile a score file, exiting with status 1 on I/O errors."""
    try:
        text = Path(score_file).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        click.echo(f"  ERROR: Could not read score file — {exc}", err=True)
        sys.exit(1)

    config = CompilerConfig().with_tempo(tempo)
    return ScoreCompiler(config).compile(text)


def _warn_if_empty(result: CompileResult) -> None:
    if not result.has_playable_notes:
        click.echo(f"  WARNING: {CompileResult.NO_PLAYABLE_NOTES}", err=True)
        sys.exit(1)


# ── CLI group ──────────────────────────────────────────────────────────────────

@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="omniscore")
@click.option("--verbose", "-v", count=True, help="Log compiler progress (-v info, -vv debug).")
def main(verbose: int) -> None:
    """omniscore — orchestral score notation compiler."""
    _configure_logging(verbose)


tempo_option = click.option(
    "--tempo",
    type=click.FloatRange(min=1.0, max=1000.0),
    default=None,
    metavar="BPM",
    help="Default tempo for scores without a tempo directive (120 if omitted).",
)


# ── compile subcommand ─────────────────────────────────────────────────────────

@main.command(name="compile")
@click.argument("score_file", type=click.Path(exists=True, dir_okay=False, readable=True))
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"], case_sensitive=False),
    default="text",
    show_default=True,
    help="Output format: event listing or JSON payload for a timeline view.",
)
@click.option(
    "--output",
    "-o",
    default=None,
    metavar="PATH",
    help="Write the output to PATH instead of standard output.",
)
@tempo_option
def compile_command(score_file: str, output_format: str, output: str | None, tempo: float | None) -> None:
    """
    Compile a score file into timed note events.

    SCORE_FILE is the path to a score in the OmniScore notation.

    \b
    Examples:
      omniscore compile debussy.omni
      omniscore compile debussy.omni --format json -o debussy.json
    """
    result = _compile_file(score_file, tempo)
    content = _get_renderer(output_format.lower()).render(result)

    if output is None:
        click.echo(content, nl=False)
    else:
        try:
            Path(output).write_text(content, encoding="utf-8")
        except OSError as exc:
            click.echo(f"  ERROR: Could not write output file — {exc}", err=True)
            sys.exit(1)
        click.echo(f"Wrote {len(result.events)} event(s) → '{output}'")

    _warn_if_empty(result)


# ── midi subcommand ────────────────────────────────────────────────────────────

@main.command()
@click.argument("score_file", type=click.Path(exists=True, dir_okay=False, readable=True))
@click.option(
    "--output",
    "-o",
    default=None,
    metavar="PATH",
    help="Destination MIDI file path. Defaults to SCORE_FILE with a .mid suffix.",
)
@tempo_option
def midi(score_file: str, output: str | None, tempo: float | None) -> None:
    """
    Compile a score file and write it as a Standard MIDI File.

    \b
    Examples:
      omniscore midi debussy.omni
      omniscore midi debussy.omni -o out.mid --tempo 80
    """
    from omniscore.midi_exporter import MidiExporter

    resolved_output = output if output is not None else str(Path(score_file).with_suffix(".mid"))

    click.echo(f"omniscore v{__version__}")
    click.echo(f"  Score  : {score_file}")
    click.echo(f"  Output : {resolved_output}")
    click.echo()

    click.echo("[1/2] Compiling score...")
    result = _compile_file(score_file, tempo)
    for diagnostic in result.warnings:
        click.echo(f"      {diagnostic}", err=True)
    _warn_if_empty(result)
    click.echo(
        f"      {len(result.events)} event(s), {result.structure.total_duration:.2f} s"
    )

    click.echo(f"[2/2] Writing MIDI file → '{resolved_output}'...")
    exporter = MidiExporter(tempo=tempo if tempo is not None else MidiExporter.DEFAULT_TEMPO)
    try:
        exporter.export(result, resolved_output)
    except OSError as exc:
        click.echo(f"  ERROR: Could not write MIDI file — {exc}", err=True)
        sys.exit(1)

    click.echo()
    click.echo(f"Done!  Open '{resolved_output}' in MuseScore or any MIDI player.")
