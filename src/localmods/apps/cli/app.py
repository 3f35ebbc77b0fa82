# src/localmods/apps/cli/app.py
from __future__ import annotations

from typing import Optional

from dotenv import load_dotenv, find_dotenv
import typer

load_dotenv(find_dotenv(usecwd=True))

from localmods.services.settings import Settings
from localmods.apps.bootstrap import init_ctx, get_ctx
from localmods.apps.cli.commands import module

app = typer.Typer(help="Install, re-sync and remove locally managed modules.")


@app.callback()
def main(
    base_dir: Optional[str] = typer.Option(None, "--base-dir", help="Working directory for logs / temp files (default ~/.localmods)"),
    install_root: Optional[str] = typer.Option(None, "--install-root", help="Where modules are installed (default ~/.localmods/modules)"),
):
    """Builds the process context before any subcommand runs."""
    settings = Settings.from_sources().with_overrides(base_dir=base_dir, install_root=install_root)
    init_ctx(settings)


@app.command("where")
def where():
    """Print the directories in use."""
    ctx = get_ctx()
    typer.echo(f"base_dir: {ctx.paths.base_dir()}")
    typer.echo(f"install_root: {ctx.paths.install_root()}")
    typer.echo(f"metadata_dir: {ctx.paths.metadata_dir()}")


app.add_typer(module.app, name="module", help="Manage installed modules")

if __name__ == "__main__":
    app()
