"""cloudctl CLI — command-line interface for cloudctl.

Commands:
    cluster create        Acquire a node network and create a cluster
    cluster list          Show all clusters
    cluster describe      Show one cluster as YAML
    cluster delete        Delete a cluster after confirmation
    cluster credentials   Print the kubeconfig of a cluster
    cluster inputs        Show accepted kubernetes versions and partitions
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import click
import yaml
from pydantic import ValidationError

from cloudctl import __version__, defaults
from cloudctl.cluster.service import ClusterService, DeletionAborted, cluster_id
from cloudctl.config import CloudctlConfig, load_config
from cloudctl.errors import CloudctlError, ConfigurationError, UsageError
from cloudctl.gardener.client import GardenerClient
from cloudctl.gardener.shoot import summarize
from cloudctl.metal.client import MetalClient
from cloudctl.models import ClusterRequestParams, Purpose

logger = logging.getLogger(__name__)

_LOG_LEVELS = {0: logging.WARNING, 1: logging.INFO}


def _setup_logging(verbose: int) -> None:
    logging.basicConfig(
        level=_LOG_LEVELS.get(verbose, logging.DEBUG),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def _build_service(cfg: CloudctlConfig, *, require_metal: bool = False) -> ClusterService:
    """Construct both service clients for this invocation."""
    if require_metal and not cfg.metal_url:
        raise ConfigurationError(
            "metal_url is not configured (set it in cloudctl.yaml or CLOUDCTL_METAL_URL)"
        )
    metal = MetalClient(cfg.metal_url or "", token=cfg.metal_token, timeout=cfg.metal_timeout)
    gardener = GardenerClient(
        kubeconfig=cfg.kubeconfig,
        context=cfg.context,
        namespace=cfg.garden_namespace,
        cloud_profile=cfg.cloud_profile,
    )
    return ClusterService(metal, gardener)


def _service(ctx: click.Context, *, require_metal: bool = False) -> ClusterService:
    return _build_service(ctx.obj["config"], require_metal=require_metal)


@contextmanager
def _handle_errors() -> Iterator[None]:
    """Turn cloudctl errors into CLI exit codes."""
    try:
        yield
    except UsageError as e:
        raise click.UsageError(str(e)) from e
    except ValidationError as e:
        click.echo(f"Error: invalid cluster parameters\n{e}", err=True)
        sys.exit(1)
    except CloudctlError as e:
        logger.debug("Command failed", exc_info=True)
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _split(values: tuple[str, ...]) -> list[str]:
    """Flatten repeated and comma separated option values."""
    return [v.strip() for value in values for v in value.split(",") if v.strip()]


# --- Output ---


_COLUMNS = ("uid", "name", "project", "partition", "version", "purpose", "status")


def _print_clusters(shoots: list[dict[str, Any]], json_output: bool) -> None:
    if json_output:
        click.echo(json.dumps(shoots, indent=2, default=str))
        return
    if not shoots:
        click.echo("No clusters found.")
        return

    rows = [summarize(s) for s in shoots]
    widths = {c: max(len(c), *(len(r[c]) for r in rows)) for c in _COLUMNS}
    click.echo("  ".join(c.upper().ljust(widths[c]) for c in _COLUMNS).rstrip())
    for row in rows:
        click.echo("  ".join(row[c].ljust(widths[c]) for c in _COLUMNS).rstrip())


def _print_yaml(data: Any) -> None:
    click.echo(yaml.safe_dump(data, default_flow_style=False, sort_keys=False), nl=False)


# --- Root group ---


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", default=None, help="Path to cloudctl.yaml")
@click.option("-v", "--verbose", count=True, help="Log progress (-vv for debug output)")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: int) -> None:
    """cloudctl: manage kubernetes clusters on metal."""
    _setup_logging(verbose)
    try:
        cfg = load_config(config_path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        click.echo(f"Error loading config: {e}", err=True)
        sys.exit(1)
    ctx.ensure_object(dict)
    ctx.obj["config"] = cfg


@cli.group()
def cluster() -> None:
    """Manage clusters."""


# --- cluster create ---


@cluster.command()
@click.option("--name", required=True, help="Name of the cluster, max 10 characters.")
@click.option("--description", required=True, help="Description of the cluster.")
@click.option(
    "--purpose",
    type=click.Choice([p.value for p in Purpose]),
    default=Purpose.PRODUCTION.value,
    show_default=True,
    help="Purpose of the cluster.",
)
@click.option("--owner", required=True, help="Owner of the cluster.")
@click.option("--project", required=True, help="Project the cluster belongs to.")
@click.option(
    "--partition", default=defaults.DEFAULT_PARTITION, show_default=True,
    help="Partition of the cluster.",
)
@click.option(
    "--version", "k8s_version", default=defaults.DEFAULT_KUBERNETES_VERSION,
    show_default=True, help="Kubernetes version of the cluster.",
)
@click.option("--minsize", default=1, show_default=True, help="Minimal workers of the cluster.")
@click.option("--maxsize", default=1, show_default=True, help="Maximal workers of the cluster.")
@click.option(
    "--maxsurge", default=1, show_default=True,
    help="Max number of workers created during an update of the cluster.",
)
@click.option(
    "--maxunavailable", default=1, show_default=True,
    help="Max number of workers that can be unavailable during an update of the cluster.",
)
@click.option("--labels", multiple=True, help="Labels of the cluster (key=value, repeatable).")
@click.option(
    "--external-networks", multiple=True, default=defaults.DEFAULT_EXTERNAL_NETWORKS,
    show_default=True, help="External networks of the cluster, can be internet,mpls.",
)
@click.option("--allowprivileged", is_flag=True, help="Allow privileged containers in the cluster.")
@click.option("--json-output", is_flag=True, help="Output as JSON")
@click.pass_context
def create(
    ctx: click.Context,
    name: str,
    description: str,
    purpose: str,
    owner: str,
    project: str,
    partition: str,
    k8s_version: str,
    minsize: int,
    maxsize: int,
    maxsurge: int,
    maxunavailable: int,
    labels: tuple[str, ...],
    external_networks: tuple[str, ...],
    allowprivileged: bool,
    json_output: bool,
) -> None:
    """Create a cluster."""
    with _handle_errors():
        params = ClusterRequestParams(
            name=name,
            description=description,
            purpose=Purpose(purpose),
            owner=owner,
            project=project,
            partition=partition,
            version=k8s_version,
            min_size=minsize,
            max_size=maxsize,
            max_surge=maxsurge,
            max_unavailable=maxunavailable,
            labels=_split(labels),
            external_networks=_split(external_networks),
            allow_privileged=allowprivileged,
        )
        defaults.check_partition(params.partition)
        shoot = _service(ctx, require_metal=True).create(params)
    _print_clusters([shoot], json_output)


# --- cluster list ---


@cluster.command("list")
@click.option("--json-output", is_flag=True, help="Output as JSON")
@click.pass_context
def list_clusters(ctx: click.Context, json_output: bool) -> None:
    """List clusters."""
    with _handle_errors():
        shoots = _service(ctx).list()
    _print_clusters(shoots, json_output)


cluster.add_command(list_clusters, "ls")


# --- cluster describe ---


@cluster.command()
@click.argument("args", nargs=-1, metavar="<uid>")
@click.pass_context
def describe(ctx: click.Context, args: tuple[str, ...]) -> None:
    """Describe a cluster."""
    with _handle_errors():
        ci = cluster_id("describe", args)
        shoot = _service(ctx).describe(ci)
    _print_yaml(shoot)


# --- cluster delete ---


@cluster.command()
@click.argument("args", nargs=-1, metavar="<uid>")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.option("--json-output", is_flag=True, help="Output as JSON")
@click.pass_context
def delete(ctx: click.Context, args: tuple[str, ...], yes: bool, json_output: bool) -> None:
    """Delete a cluster."""

    def _confirm(shoot: dict[str, Any]) -> bool:
        _print_clusters([shoot], json_output)
        if yes:
            return True
        return click.confirm("Delete above cluster?", default=False)

    with _handle_errors():
        ci = cluster_id("delete", args)
        try:
            shoot = _service(ctx).delete(ci, _confirm)
        except DeletionAborted:
            click.echo("Deletion aborted.", err=True)
            sys.exit(1)
    _print_clusters([shoot], json_output)


cluster.add_command(delete, "rm")


# --- cluster credentials ---


@cluster.command()
@click.argument("args", nargs=-1, metavar="<uid>")
@click.pass_context
def credentials(ctx: click.Context, args: tuple[str, ...]) -> None:
    """Get cluster credentials."""
    with _handle_errors():
        ci = cluster_id("credentials", args)
        kubeconfig = _service(ctx).credentials(ci)
    click.echo(kubeconfig)


# --- cluster inputs ---


@cluster.command()
@click.pass_context
def inputs(ctx: click.Context) -> None:
    """Get possible cluster inputs like k8s versions, etc."""
    with _handle_errors():
        constraints = _service(ctx).inputs()
    _print_yaml(constraints.model_dump(mode="json"))
