"""
Command-line interface for the deployment pipeline:
- deploy generated HTML as a static site
- list and refresh recorded deployments
- redeploy an existing site
"""

import sys
import argparse
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from sitepipe.models import DeploymentRequest
from sitepipe.services import (
    CredentialStore,
    DeploymentOrchestrator,
    JsonFileDeploymentStore,
    OrchestratorError,
)
from sitepipe.utils.config import get_settings, Settings
from sitepipe.utils.logger import get_logger

logger = get_logger(__name__)
console = Console()

STATUS_STYLES = {
    "building": "yellow",
    "live": "green",
    "failed": "red",
}


def build_orchestrator(args, config: Settings = None) -> DeploymentOrchestrator:
    """Wire an orchestrator whose credentials come from settings."""
    config = config or get_settings()

    credential_store = CredentialStore(config)
    credential_store.save(
        args.user,
        github_token=config.github_token,
        github_owner=config.github_deploy_owner,
        render_api_key=config.render_api_key,
    )

    return DeploymentOrchestrator(
        config=config,
        credential_store=credential_store,
        deployment_store=JsonFileDeploymentStore(Path(config.deployment_store_path)),
    )


def cmd_deploy(args):
    """Publish an HTML file as a static site"""
    content_file = Path(args.content_file)
    if not content_file.is_file():
        logger.error(f"Content file not found: {content_file}")
        sys.exit(1)

    request = DeploymentRequest(
        content=content_file.read_text(encoding="utf-8"),
        service_name=args.service_name,
        page_id=args.page_id,
        template_type=args.template_type,
    )

    try:
        result = build_orchestrator(args).deploy(args.user, request)
    except OrchestratorError as e:
        logger.error(f"❌ Deployment failed [{e.error_code}]: {e.message}")
        sys.exit(1)

    console.print(Panel.fit(
        f"Deployment:  {result.deployment_id}\n"
        f"Service:     {result.service_name}\n"
        f"Status:      {result.status.value}\n"
        f"Repository:  {result.repo_url}\n"
        f"Service ID:  {result.external_service_id}",
        title="DEPLOYMENT ACCEPTED",
    ))


def cmd_list(args):
    """List recorded deployments"""
    try:
        summaries = build_orchestrator(args).list_deployments(args.user, refresh=args.refresh)
    except OrchestratorError as e:
        logger.error(f"❌ Failed to list deployments: {e.message}")
        sys.exit(1)

    table = Table(title=f"DEPLOYMENTS ({len(summaries)})")
    table.add_column("ID")
    table.add_column("Service")
    table.add_column("Status")
    table.add_column("Site URL")
    table.add_column("Created")
    table.add_column("Error")

    for item in summaries:
        style = STATUS_STYLES.get(item.status.value, "white")
        table.add_row(
            item.id,
            item.service_name,
            f"[{style}]{item.status.value}[/{style}]",
            item.site_url or "-",
            item.created_at.strftime("%Y-%m-%d %H:%M"),
            (item.error_message or "")[:60],
        )

    console.print(table)


def cmd_status(args):
    """Refresh one deployment from the hosting platform"""
    try:
        deployment = build_orchestrator(args).refresh_status(args.user, args.deployment_id)
    except OrchestratorError as e:
        logger.error(f"❌ Failed to refresh deployment: {e.message}")
        sys.exit(1)

    style = STATUS_STYLES.get(deployment.status.value, "white")
    console.print(Panel.fit(
        f"Service:  {deployment.service_name}\n"
        f"Status:   [{style}]{deployment.status.value}[/{style}]\n"
        f"Site URL: {deployment.site_url or '-'}\n"
        f"Error:    {deployment.error_message or '-'}",
        title=f"DEPLOYMENT {deployment.id}",
    ))


def cmd_redeploy(args):
    """Trigger a fresh deploy of an existing site"""
    try:
        deploy_id = build_orchestrator(args).redeploy(args.user, args.deployment_id)
    except OrchestratorError as e:
        logger.error(f"❌ Redeploy failed: {e.message}")
        sys.exit(1)

    logger.info(f"✅ Redeploy triggered: {deploy_id}")


def main(argv=None):
    """Main CLI entry point"""
    parser = argparse.ArgumentParser(
        description="Publish generated static sites via GitHub and Render",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Deploy an HTML page
  sitepipe deploy ./landing.html --service-name "My Landing Page"

  # List deployments, polling Render for the ones still building
  sitepipe list --refresh

  # Refresh one deployment
  sitepipe status 3f2a...

  # Redeploy an existing site
  sitepipe redeploy 3f2a...
        """
    )
    parser.add_argument("--user", default="local", help="Identity used for rate limiting and records (default: local)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    deploy_parser = subparsers.add_parser("deploy", help="Deploy an HTML file")
    deploy_parser.add_argument("content_file", help="Path to the generated HTML")
    deploy_parser.add_argument("--service-name", required=True, help="Site name (normalized to a slug)")
    deploy_parser.add_argument("--page-id", help="Page the content was generated from")
    deploy_parser.add_argument("--template-type", help="Template used to generate the content")
    deploy_parser.set_defaults(func=cmd_deploy)

    list_parser = subparsers.add_parser("list", help="List deployments")
    list_parser.add_argument("--refresh", action="store_true", help="Poll Render for building deployments")
    list_parser.set_defaults(func=cmd_list)

    status_parser = subparsers.add_parser("status", help="Refresh a deployment's status")
    status_parser.add_argument("deployment_id", help="Deployment ID")
    status_parser.set_defaults(func=cmd_status)

    redeploy_parser = subparsers.add_parser("redeploy", help="Redeploy an existing site")
    redeploy_parser.add_argument("deployment_id", help="Deployment ID")
    redeploy_parser.set_defaults(func=cmd_redeploy)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(0)

    args.func(args)


if __name__ == "__main__":
    main()
