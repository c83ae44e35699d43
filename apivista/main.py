"""Command-line entry point for apivista."""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass
from functools import cached_property
from pathlib import Path
from typing import Any

import click
import yaml

from .config import ApiVistaConfig, ConfigLoader
from .errors import CatalogError, NotFoundError
from .exchange import CatalogExporter, CatalogSeeder, ExportFormat
from .store import CatalogStore

logger = logging.getLogger(__name__)


@dataclass
class CliState:
    config: ApiVistaConfig
    loader: ConfigLoader
    ctx: click.Context

    @cached_property
    def store(self) -> CatalogStore:
        """Open the catalog on first use, seeding the sample when configured."""
        logger.debug(f"Opening catalog database: {self.config.storage.database}")
        store = CatalogStore.from_config(self.config)
        self.ctx.call_on_close(store.close)
        if self.config.storage.seed_sample_data and store.is_empty():
            CatalogSeeder(store).seed_sample_catalog()
        return store


class CatalogGroup(click.Group):
    """Report catalog errors as a clean message and a non-zero exit."""

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except CatalogError as e:
            raise click.ClickException(e.message) from e


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


@click.group(cls=CatalogGroup)
@click.option(
    "--project",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding apivista.yaml (defaults to the current directory).",
)
@click.option("--database", default=None, help="DuckDB file to use instead of the configured one.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, project: Path | None, database: str | None, verbose: bool):
    """apivista - API provider catalog."""
    loader = ConfigLoader(project)
    config = loader.load()
    if database:
        config.storage.database = database

    logging.basicConfig(
        level=logging.DEBUG if verbose else config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    ctx.obj = CliState(config=config, loader=loader, ctx=ctx)


@main.command()
@click.argument("catalog_file", required=False, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--reset", is_flag=True, help="Empty the catalog before loading.")
@click.pass_obj
def seed(state: CliState, catalog_file: Path | None, reset: bool):
    """Load a catalog YAML file (the bundled sample when omitted)."""
    if reset:
        state.store.reset()
    seeder = CatalogSeeder(state.store)
    if catalog_file is None:
        summary = seeder.seed_sample_catalog()
    else:
        summary = seeder.seed_from_file(catalog_file)
    _echo_json(summary.to_dict())


@main.command()
@click.pass_obj
def categories(state: CliState):
    """List categories by name."""
    _echo_json([c.to_dict() for c in state.store.list_categories()])


@main.command()
@click.option("--search", default=None, help="Filter on name, short code or description.")
@click.pass_obj
def providers(state: CliState, search: str | None):
    """List providers with their relation trees."""
    _echo_json([p.to_dict() for p in state.store.list_providers(search=search)])


SHOWABLE = {
    "provider": ("Provider", CatalogStore.get_provider),
    "service": ("Service", CatalogStore.get_service),
    "api": ("API", CatalogStore.get_api),
    "endpoint": ("Endpoint", CatalogStore.get_endpoint),
    "operation": ("Operation", CatalogStore.get_operation),
}


@main.command()
@click.argument("entity_type", type=click.Choice(sorted(SHOWABLE)))
@click.argument("entity_id")
@click.pass_obj
def show(state: CliState, entity_type: str, entity_id: str):
    """Show one entity with its relations."""
    label, getter = SHOWABLE[entity_type]
    entity = getter(state.store, entity_id)
    if entity is None:
        raise NotFoundError(label, entity_id)
    _echo_json(entity.to_dict())


@main.command()
@click.argument("query")
@click.pass_obj
def search(state: CliState, query: str):
    """Search providers, services, APIs and operations."""
    _echo_json(state.store.search(query).to_dict())


@main.command()
@click.option(
    "--format",
    "fmt",
    default=None,
    type=click.Choice([f.value for f in ExportFormat]),
    help="Export format (defaults to the configured one).",
)
@click.option("-o", "--output", default=None, help="Output file, or - for stdout.")
@click.pass_obj
def export(state: CliState, fmt: str | None, output: str | None):
    """Export the whole catalog."""
    exporter = CatalogExporter(state.store, filename_stem=state.config.export.filename_stem)
    result = exporter.export(fmt or state.config.export.default_format)

    if output == "-":
        click.echo(result.content, nl=False)
        return

    path = Path(output) if output else Path.cwd() / result.filename
    path.write_text(result.content, encoding="utf-8")
    click.echo(f"Exported catalog to {path}")


@main.command()
@click.pass_obj
def stats(state: CliState):
    """Show entity totals."""
    _echo_json(state.store.count_summary().to_dict())


@main.group("config")
def config_group():
    """Inspect or create apivista.yaml."""


@config_group.command("init")
@click.option("--user", "user_level", is_flag=True, help="Write ~/.apivista/apivista.yaml instead.")
@click.option("--force", is_flag=True, help="Overwrite an existing file.")
@click.pass_obj
def config_init(state: CliState, user_level: bool, force: bool):
    """Write a config file holding the defaults."""
    path = state.loader.target_path(user_level)
    if path.exists() and not force:
        raise click.ClickException(f"{path} already exists (use --force to overwrite)")
    state.loader.save(ApiVistaConfig(), user_level=user_level)
    click.echo(f"Wrote {path}")


@config_group.command("show")
@click.pass_obj
def config_show(state: CliState):
    """Print the effective configuration and the file it came from."""
    source = state.loader.source or "defaults"
    click.echo(f"# source: {source}")
    click.echo(yaml.safe_dump(state.config.model_dump(mode="json"), sort_keys=False), nl=False)


if __name__ == "__main__":
    main()
