"""Main CLI application entry point."""

import asyncio
import logging
import signal
import sys
from typing import Optional

import click

from .. import __version__
from ..config import ConfigError, GlimpseConfig, load_config, save_global_config
from ..llm import ProviderError, create_provider
from ..pipeline import GlimpsePipeline
from .output import ReviewRenderer
from .setup_prompt import run_setup

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Suppress noisy loggers in non-verbose mode
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)
        logging.getLogger("watchdog").setLevel(logging.WARNING)


@click.command()
@click.option("--version", "show_version", is_flag=True, help="Show version information")
@click.option("--config", "config_path", type=click.Path(), help="Config file path")
@click.option("--setup", is_flag=True, help="Choose provider and model, then exit")
@click.option("--no-files", is_flag=True, help="Do not review file saves")
@click.option("--no-staged", is_flag=True, help="Do not review staged changes")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def main(
    show_version: bool,
    config_path: Optional[str],
    setup: bool,
    no_files: bool,
    no_staged: bool,
    verbose: bool,
) -> None:
    """
    Glimpse - watch your working tree and review changes with an LLM.

    Reviews are triggered when saved files settle and whenever the
    git staging area changes. Press Ctrl+C to exit.
    """
    if show_version:
        click.echo(f"Glimpse v{__version__}")
        return

    configure_logging(verbose)
    renderer = ReviewRenderer()

    try:
        config = load_config(config_path)
        if setup or not config.has_provider:
            renderer.header("Select LLM Provider")
            config = run_setup(config)
            path = save_global_config(config)
            renderer.success(f"Saved {config.llm.provider}:{config.llm.model} to {path}")
            if setup:
                return
            config = load_config(config_path)
    except (ConfigError, click.BadParameter) as e:
        renderer.error(str(e))
        sys.exit(1)

    updates = {}
    if no_files:
        updates["review_file_changes"] = False
    if no_staged:
        updates["review_staged_changes"] = False
    if updates:
        config = config.model_copy(update=updates)

    try:
        asyncio.run(run_glimpse(config, ReviewRenderer(theme=config.theme)))
    except KeyboardInterrupt:
        pass
    except ProviderError as e:
        renderer.error(str(e))
        sys.exit(1)


async def run_glimpse(config: GlimpseConfig, renderer: ReviewRenderer) -> None:
    """Run the pipeline until SIGINT or SIGTERM."""
    renderer.header("Glimpse: AI-Powered Micro-Reviewer")

    provider = create_provider(config.llm)
    pipeline = GlimpsePipeline(config, provider, renderer=renderer)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, pipeline.request_shutdown)
        except NotImplementedError:
            # Windows: KeyboardInterrupt still reaches asyncio.run
            pass

    if config.review_file_changes:
        renderer.info(f"Watching {len(config.watch)} patterns: {', '.join(config.watch)}")
    if config.review_staged_changes:
        renderer.info("Reviewing git staged changes")
    changed = await pipeline.uncommitted_files()
    if changed:
        renderer.muted(f"{len(changed)} files with uncommitted changes")
    renderer.muted("Press Ctrl+C to exit")

    try:
        await pipeline.run()
    finally:
        renderer.warning("Shutting down Glimpse...")
        pipeline.task_pool.cancel_all()
        await provider.close()
