# src/localmods/apps/cli/commands/module.py
from __future__ import annotations

import functools
import json
import os
import traceback
from typing import List, Optional

import typer
from rich import print

from localmods.domain import InstalledModuleRecord
from localmods.services.agent_context import get_ctx
from localmods.services.module import BatchReport, LifecycleRegistry, MetadataProblem, ModuleRegistryError
from localmods.services.module.sources import local_source, parse_remote

app = typer.Typer(help="Install / update / uninstall / list modules")


def _run_safe(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ModuleRegistryError as e:
            if os.getenv("LOCALMODS_CLI_DEBUG") == "1":
                traceback.print_exc()
            print(f"[red]error:[/red] {e}")
            raise typer.Exit(code=1)

    return wrapper


def _registry() -> LifecycleRegistry:
    return get_ctx().registry


def _token(explicit: Optional[str]) -> Optional[str]:
    return explicit or get_ctx().settings.github_token


def _record_json(r: InstalledModuleRecord) -> dict:
    return r.to_json()


def _print_problems(problems: list[MetadataProblem]) -> None:
    for p in problems:
        print(f"[yellow]warning:[/yellow] skipped unreadable metadata {p.path.name}: {p.reason}")


def _print_report(report: BatchReport, verb: str) -> None:
    for item in report.items:
        for w in item.warnings:
            print(f"[yellow]warning:[/yellow] {w}")
        if item.ok:
            version = f" -> {item.record.version}" if item.record else ""
            typer.echo(f"{verb}: {item.name}{version}")
        else:
            print(f"[red]failed:[/red] {item.name}: {item.error}")
    for w in report.warnings:
        print(f"[yellow]warning:[/yellow] {w}")
    if report.reloaded:
        typer.echo(f"reloaded: {', '.join(report.reloaded)}")


def _targets(names: Optional[List[str]], all_: bool) -> list[str]:
    if all_:
        return [r.name for r in _registry().query()]
    if not names:
        raise typer.BadParameter("give at least one module name or --all")
    return list(names)


@app.command("install")
@_run_safe
def install_cmd(
    source: str = typer.Argument(..., help="Local directory, or owner/repo / GitHub URL with --github"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Install under this name"),
    github: bool = typer.Option(False, "--github", help="Treat SOURCE as a GitHub repository"),
    branch: Optional[str] = typer.Option(None, "--branch", "-b", help="Branch (GitHub only)"),
    subpath: Optional[str] = typer.Option(None, "--subpath", help="Module directory inside the repository"),
    token: Optional[str] = typer.Option(None, "--token", help="GitHub token (default LOCALMODS_GITHUB_TOKEN / GITHUB_TOKEN)"),
    overwrite: bool = typer.Option(False, "--overwrite", "-f", help="Replace an installed module of the same name"),
):
    if github or source.startswith(("https://github.com/", "http://github.com/")):
        src = parse_remote(source, branch=branch, subpath=subpath, token=_token(token))
    else:
        src = local_source(source)
    record = _registry().install(src, name=name, overwrite=overwrite)
    typer.echo(f"installed: {record.name} {record.version}")
    typer.echo(f"path: {record.latest_version_path}")


@app.command("update")
@_run_safe
def update_cmd(
    names: Optional[List[str]] = typer.Argument(None, help="Modules to re-sync from their source"),
    all_: bool = typer.Option(False, "--all", help="Update every installed module"),
    token: Optional[str] = typer.Option(None, "--token", help="GitHub token for remote sources"),
):
    report = _registry().update_many(_targets(names, all_), token=_token(token))
    _print_report(report, "updated")
    if not report.ok:
        raise typer.Exit(code=1)


@app.command("uninstall")
@_run_safe
def uninstall_cmd(
    names: Optional[List[str]] = typer.Argument(None, help="Modules to remove"),
    all_: bool = typer.Option(False, "--all", help="Remove every installed module"),
):
    report = _registry().uninstall_many(_targets(names, all_))
    _print_report(report, "removed")
    if not report.ok:
        raise typer.Exit(code=1)


@app.command("list")
@_run_safe
def list_cmd(
    name: Optional[str] = typer.Argument(None, help="Only this module"),
    json_output: bool = typer.Option(False, "--json", help="Print JSON"),
):
    """
    Installed modules from the metadata records.
    JSON format: {"modules": [<metadata record>, ...]}
    """
    problems: list[MetadataProblem] = []
    rows = _registry().query(name, problems=problems)
    if json_output:
        typer.echo(json.dumps({"modules": [_record_json(r) for r in rows]}, ensure_ascii=False))
        return
    _print_problems(problems)
    if not rows:
        typer.echo("No modules installed.")
        return
    for r in rows:
        origin = r.source_path if r.branch is None else f"{r.source_path}@{r.branch}"
        typer.echo(f"- {r.name} {r.version} ({r.source_type.value}: {origin})")


@app.command("versions")
@_run_safe
def versions_cmd(name: str = typer.Argument(..., help="Module name")):
    """Version directories on disk; the active one is marked with '*'."""
    reg = _registry()
    active = {r.version for r in reg.query(name)}
    versions = reg.versions(name)
    if not versions:
        typer.echo(f"No versions of '{name}' on disk.")
        return
    for v in versions:
        typer.echo(f"{'*' if v in active else ' '} {v}")
