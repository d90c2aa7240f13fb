"""CLI entry point for shotchain."""

import asyncio
import logging
import tempfile
import typer
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config import config
from .engine import (
    ContinuityExtractor,
    CostTracker,
    EvaluationAggregator,
    GenerationOrchestrator,
    ReferenceResolver,
    ShotchainError,
    SystemDefaults,
    hydrate_project,
)
from .models import GenerationState, Project, SettingsOverride
from .storage import (
    JsonEvaluationStore,
    LocalAssetStore,
    LocalClipStore,
    LocatorFetcher,
    YamlProjectStore,
)

app = typer.Typer(
    name="shotchain",
    help="Continuity-aware scene generation with Google Veo",
    no_args_is_help=True
)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"shotchain version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit"
    )
) -> None:
    """shotchain - Generate chained video scenes that flow into each other."""
    pass


PROJECT_OPTION = typer.Option(
    None,
    "--project",
    "-p",
    help="Project id (defaults to the only project in the workspace)"
)
WORKSPACE_OPTION = typer.Option(
    None,
    "--workspace",
    "-w",
    help="Workspace directory (defaults to SHOTCHAIN_WORKSPACE or .)",
    file_okay=False,
    dir_okay=True
)
VERBOSE_OPTION = typer.Option(
    False,
    "--verbose",
    "-v",
    help="Enable verbose logging"
)


@dataclass
class Workspace:
    """Stores rooted at one workspace directory."""

    root: Path
    projects: YamlProjectStore
    clips: LocalClipStore
    evaluations: JsonEvaluationStore
    assets: LocalAssetStore
    fetcher: LocatorFetcher
    costs: CostTracker

    @classmethod
    def open(cls, root: Optional[Path]) -> "Workspace":
        root = root or config.workspace
        return cls(
            root=root,
            projects=YamlProjectStore(root),
            clips=LocalClipStore(root),
            evaluations=JsonEvaluationStore(root),
            assets=LocalAssetStore(root),
            fetcher=LocatorFetcher(root=root),
            costs=CostTracker(root / "costs.json"),
        )

    def load_project(self, project_id: Optional[str]) -> Project:
        """Load and hydrate a project, exiting on failure."""
        if project_id is None:
            ids = self.projects.list_ids()
            if len(ids) != 1:
                found = ", ".join(ids) if ids else "none"
                typer.echo(f"❌ Pass --project to pick a project (found: {found})")
                raise typer.Exit(1)
            project_id = ids[0]

        try:
            project = self.projects.load(project_id)
        except Exception as e:
            typer.echo(f"❌ Error loading project: {e}")
            raise typer.Exit(1)

        return hydrate_project(project, self.clips, self.evaluations)


@app.command()
def status(
    project_id: Optional[str] = PROJECT_OPTION,
    workspace: Optional[Path] = WORKSPACE_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Show project status."""
    setup_logging(verbose)
    ws = Workspace.open(workspace)
    project = ws.load_project(project_id)

    typer.echo(f"📁 Project: {project.title} ({project.id})")
    typer.echo(f"   Aspect ratio: {project.aspect_ratio}")
    typer.echo(f"   Scenes: {len(project.scenes)}")
    typer.echo(f"   Reference images: {len(project.reference_images)}")

    total_duration = sum(scene.duration for scene in project.scenes)
    typer.echo(f"   Total duration: {total_duration:.1f}s")

    typer.echo("\n📽️  Scenes:")
    for index, scene in enumerate(project.scenes, start=1):
        status_icon = "✅" if scene.is_generated else "⏳"
        score = f"  score {scene.evaluation.overall_score:.1f}" if scene.evaluation else ""
        typer.echo(f"   {status_icon} [{index}] {scene.id}: {scene.title or '(untitled)'}{score}")
        prompt_preview = scene.prompt[:60] + "..." if len(scene.prompt) > 60 else scene.prompt
        typer.echo(f"      → {prompt_preview}")
        if scene.clip_locator:
            typer.echo(f"      clip: {scene.clip_locator}")


@app.command()
def generate(
    scene_id: Optional[str] = typer.Argument(
        None,
        help="Scene to generate"
    ),
    all_scenes: bool = typer.Option(
        False,
        "--all",
        "-a",
        help="Generate every scene in order so each continues from the last"
    ),
    skip_existing: bool = typer.Option(
        False,
        "--skip-existing",
        "-k",
        help="With --all, skip scenes that already have a clip"
    ),
    model: Optional[str] = typer.Option(
        None,
        "--model",
        "-m",
        help="Override the Veo model"
    ),
    resolution: Optional[str] = typer.Option(
        None,
        "--resolution",
        "-r",
        help="Override the output resolution (720p or 1080p)"
    ),
    loop: Optional[bool] = typer.Option(
        None,
        "--loop/--no-loop",
        help="End the clip on its start frame"
    ),
    project_id: Optional[str] = PROJECT_OPTION,
    workspace: Optional[Path] = WORKSPACE_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Generate video clips for scenes using Google Veo."""
    from .services.veo import VeoClient

    setup_logging(verbose)

    if not all_scenes and not scene_id:
        typer.echo("❌ Pass a SCENE_ID or --all")
        raise typer.Exit(1)

    try:
        config.validate_veo_required()
    except ValueError as e:
        typer.echo(f"❌ Configuration error: {e}")
        raise typer.Exit(1)

    ws = Workspace.open(workspace)
    project = ws.load_project(project_id)

    if all_scenes:
        targets = [
            scene.id for scene in project.scenes
            if not (skip_existing and scene.is_generated)
        ]
    else:
        targets = [scene_id]

    if not targets:
        typer.echo("✅ No scenes to generate")
        raise typer.Exit(0)

    try:
        client = VeoClient(fetcher=ws.fetcher)
    except ValueError as e:
        typer.echo(f"❌ Failed to initialize Veo client: {e}")
        raise typer.Exit(1)

    orchestrator = GenerationOrchestrator(
        synthesizer=client,
        clip_store=ws.clips,
        resolver=ReferenceResolver(ws.fetcher, ws.assets),
        continuity=ContinuityExtractor(margin=config.continuity_margin),
        evaluation_store=ws.evaluations,
        project_store=ws.projects,
        cost_tracker=ws.costs,
        poll_interval=config.poll_interval,
        max_poll_time=config.max_poll_time,
        defaults=SystemDefaults.from_config(config),
    )
    override = None
    if model or resolution or loop is not None:
        override = SettingsOverride(model=model, resolution=resolution, is_looping=loop)
    project_assets = ws.assets.list_for_project(project.id) or None

    typer.echo(f"🎬 Generating {len(targets)} scene(s) in {project.title}")
    typer.echo(f"   Project: {client.project_id} ({client.location})")

    async def run() -> int:
        failed = 0
        # Sequential so each scene can chain from its predecessor's last frame.
        for target in targets:
            typer.echo(f"\n⏳ {target}...")
            try:
                outcome = await orchestrator.generate(
                    project, target, override=override, project_assets=project_assets
                )
            except Exception as e:
                failed += 1
                typer.echo(f"   ❌ {target}: Failed - {e}")
                continue

            typer.echo(f"   ✅ {target}: Generated → {outcome.clip_locator}")
            typer.echo(
                f"      {outcome.settings.model}, {outcome.settings.resolution}, "
                f"seed: {outcome.seed_kind}"
            )
            for warning in outcome.warnings:
                typer.echo(f"   ⚠️  {warning}")
        return failed

    failed = asyncio.run(run())

    typer.echo(f"\n📊 Summary:")
    typer.echo(f"   Generated: {len(targets) - failed}")
    typer.echo(f"   Failed: {failed}")

    if failed > 0:
        raise typer.Exit(1)


@app.command()
def evaluate(
    scene_id: str = typer.Argument(
        ...,
        help="Scene to evaluate"
    ),
    project_id: Optional[str] = PROJECT_OPTION,
    workspace: Optional[Path] = WORKSPACE_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Score a generated clip against its prompt and dialogue."""
    from .agents import DialogueJudge, FrameJudge
    from .services.anthropic import AnthropicClient
    from .services.whisper import WhisperClient

    setup_logging(verbose)

    try:
        config.validate_required()
    except ValueError as e:
        typer.echo(f"❌ Configuration error: {e}")
        raise typer.Exit(1)

    ws = Workspace.open(workspace)
    project = ws.load_project(project_id)

    client = AnthropicClient()
    transcriber = WhisperClient() if config.openai_api_key else None
    aggregator = EvaluationAggregator(
        frame_scorer=FrameJudge(client=client),
        fetcher=ws.fetcher,
        transcriber=transcriber,
        dialogue_comparer=DialogueJudge(client=client) if transcriber else None,
        evaluation_store=ws.evaluations,
        project_store=ws.projects,
        cost_tracker=ws.costs,
    )

    typer.echo(f"🔍 Evaluating {scene_id}")
    if not aggregator.audio_enabled:
        typer.echo("   OPENAI_API_KEY not set, skipping audio")

    try:
        evaluation = asyncio.run(aggregator.evaluate(project, scene_id))
    except ShotchainError as e:
        typer.echo(f"❌ Evaluation failed: {e}")
        raise typer.Exit(1)

    typer.echo(f"\n   First frame: {evaluation.first_frame.score:.0f}")
    typer.echo(f"      {evaluation.first_frame.analysis}")
    typer.echo(f"   Last frame: {evaluation.last_frame.score:.0f}")
    typer.echo(f"      {evaluation.last_frame.analysis}")
    if evaluation.audio:
        typer.echo(f"   Dialogue: {evaluation.audio.score:.0f}")
        typer.echo(f"      heard: {evaluation.audio.transcribed_text!r}")
    typer.echo(f"\n✅ Overall score: {evaluation.overall_score:.1f}")


def _local_clip_paths(ws: Workspace, project: Project, scratch: Path) -> List[Path]:
    paths: List[Path] = []
    for scene in project.scenes:
        locator = scene.clip_locator
        if locator.startswith(("gs://", "http://", "https://")):
            path = scratch / f"{scene.id}.mp4"
            path.write_bytes(ws.fetcher.fetch(locator))
        else:
            path = Path(locator)
            if not path.is_absolute():
                path = ws.root / path
        paths.append(path)
    return paths


@app.command()
def export(
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file path (defaults to exports/<project>.mp4)"
    ),
    transition: float = typer.Option(
        0.0,
        "--transition",
        "-t",
        help="Crossfade duration in seconds (0 for hard cuts)",
        min=0.0
    ),
    project_id: Optional[str] = PROJECT_OPTION,
    workspace: Optional[Path] = WORKSPACE_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Join generated scenes into one video."""
    from .editor import concatenate_scenes

    setup_logging(verbose)
    ws = Workspace.open(workspace)
    project = ws.load_project(project_id)

    missing = [s.id for s in project.scenes if s.generation_state != GenerationState.GENERATED]
    if missing:
        typer.echo("❌ Scenes without clips:")
        for scene_id in missing:
            typer.echo(f"   - {scene_id}")
        raise typer.Exit(1)

    output = output or ws.root / "exports" / f"{project.id}.mp4"
    typer.echo(f"📼 Exporting {len(project.scenes)} scene(s) from {project.title}")

    try:
        with tempfile.TemporaryDirectory(prefix="shotchain_export_") as scratch:
            clip_paths = _local_clip_paths(ws, project, Path(scratch))
            concatenate_scenes(clip_paths, output, transition=transition)
    except Exception as e:
        typer.echo(f"❌ Error exporting video: {e}")
        raise typer.Exit(1)

    typer.echo(f"✅ Video exported: {output}")


@app.command()
def costs(
    csv: bool = typer.Option(
        False,
        "--csv",
        help="Print the ledger as CSV"
    ),
    workspace: Optional[Path] = WORKSPACE_OPTION,
) -> None:
    """Show estimated spend."""
    ws = Workspace.open(workspace)

    if csv:
        typer.echo(ws.costs.to_csv(), nl=False)
        return

    summary = ws.costs.summary()
    typer.echo("💰 Estimated costs")
    typer.echo(f"   Video generations: {summary.video_generations}")
    typer.echo(f"   Evaluations: {summary.evaluations}")
    typer.echo(f"   Total: ${summary.total_cost:.2f}")


if __name__ == "__main__":
    app()
