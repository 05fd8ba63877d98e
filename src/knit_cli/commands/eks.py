"""EKS command for bootstrapping a freshly provisioned cluster.

This module provides the `knit eks` command which installs Helm,
nginx-ingress (plus its DNS record), cert-manager, a Let's Encrypt issuer,
Flux and sealed-secrets into the cluster kubectl currently points at.
"""

from __future__ import annotations

import sys

import boto3
import click

from ..bootstrap import (
    STAGES,
    AddressResolver,
    BootstrapOrchestrator,
    BootstrapResult,
    DNSPublisher,
    KeyArchive,
    KubectlClusterKeys,
    ProcessRunner,
    SecretSynchronizer,
    SyncAction,
    ToolDetector,
)
from ..config import BootstrapParams, load_params
from ..errors import CommandError, ConfigError, PrerequisiteError
from ..shared.logging import get_logger

logger = get_logger(__name__)


def build_orchestrator(
    params: BootstrapParams,
    settle_seconds: float = 1.0,
    poll_interval: float = 10.0,
) -> BootstrapOrchestrator:
    """Wire the orchestrator with real kubectl/helm and AWS clients."""
    session = boto3.session.Session(region_name=params.region)
    runner = ProcessRunner(kubeconfig=params.kubeconfig)
    synchronizer = SecretSynchronizer(
        KeyArchive(session.client("secretsmanager")),
        KubectlClusterKeys(runner),
    )
    return BootstrapOrchestrator(
        params,
        runner,
        AddressResolver(runner, interval_seconds=poll_interval),
        DNSPublisher(session.client("route53")),
        synchronizer,
        settle_seconds=settle_seconds,
    )


@click.group(invoke_without_command=True)
@click.option("--git-repo", default=None, help="The Git repository to monitor")
@click.option(
    "--email",
    default=None,
    help="The email used to procure TLS certificates, this is passed to cert-manager",
)
@click.option(
    "--dns-name",
    default=None,
    help="The DNS name of the environment & cluster being initialized",
)
@click.option(
    "--hosted-zone",
    default=None,
    help="The Route 53 hosted zone to use for creating the CNAME record",
)
@click.option("--region", default=None, help="AWS region (default: us-east-1)")
@click.option("--kubeconfig", default=None, help="Kubeconfig path")
@click.option(
    "--settle-seconds",
    default=1.0,
    type=float,
    help="Pause between installation stages",
)
@click.option(
    "--poll-interval",
    default=10.0,
    type=float,
    help="Seconds between load balancer hostname checks",
)
@click.pass_context
def eks(
    ctx,
    git_repo,
    email,
    dns_name,
    hosted_zone,
    region,
    kubeconfig,
    settle_seconds,
    poll_interval,
):
    """Work with an EKS cluster.

    Bootstraps the cluster kubectl points at. Every stage is safe to re-run,
    so a failed run can simply be started again.

    Parameters may also come from KNIT_GIT_REPO, KNIT_EMAIL, KNIT_DNS_NAME,
    KNIT_HOSTED_ZONE, KNIT_REGION, KNIT_KUBECONFIG or ~/.knit/config.yaml.
    KUBECONFIG is left to kubectl and helm themselves.

    Examples:

        # Bootstrap a new cluster
        knit eks --git-repo git@github.com:org/repo --email ops@example.com \\
            --dns-name app.example.com --hosted-zone Z123

        # Show what would be installed
        knit eks plan
    """
    if ctx.invoked_subcommand is not None:
        return  # Subcommand handles it

    try:
        params = load_params(
            {
                "git_repo": git_repo,
                "email": email,
                "dns_name": dns_name,
                "hosted_zone": hosted_zone,
                "region": region,
                "kubeconfig": kubeconfig,
            }
        )
    except ConfigError as e:
        raise click.UsageError(str(e), ctx=ctx) from e
    logger.info("Loaded bootstrap parameters", region=params.region, sources=params.sources)

    try:
        ToolDetector().require()
    except PrerequisiteError as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)

    orchestrator = build_orchestrator(params, settle_seconds, poll_interval)
    result = orchestrator.run()
    _report(result)
    if not result.success:
        sys.exit(1)


@eks.command()
def plan():
    """List the bootstrap stages in execution order."""
    for index, (name, summary) in enumerate(STAGES, 1):
        click.echo(f"  {index}. {name}: {summary}")


@eks.command()
def check():
    """Check kubectl, helm and fluxctl are installed."""
    report = ToolDetector().detect()
    for tool in report.tools:
        if tool.available:
            click.echo(f"  ✓ {tool.name}: {tool.path}")
        else:
            click.echo(f"  ✗ {tool.name}: not found", err=True)
    if not report.ok:
        sys.exit(1)


def _report(result: BootstrapResult) -> None:
    """Print a summary of the run."""
    click.echo("")
    for name in result.completed:
        click.echo(f"  ✓ {name}")

    if not result.success:
        click.echo(f"  ✗ {result.failed_stage}: {result.error}", err=True)
        if isinstance(result.error, CommandError) and result.error.output:
            click.echo(result.error.output, err=True)
        return

    click.echo("\n" + "=" * 50)
    click.echo("✓ Cluster bootstrap complete!")
    if result.hostname:
        click.echo(f"\n  Load balancer: {result.hostname}")
    if result.dns_change:
        click.echo(f"  DNS change:    {result.dns_change.change_id} ({result.dns_change.status})")
    if result.sync:
        if result.sync.action == SyncAction.ARCHIVED:
            click.echo("  Sealed secrets master key archived to Secrets Manager")
        else:
            click.echo("  Sealed secrets master key restored from Secrets Manager")
    click.echo("=" * 50 + "\n")
