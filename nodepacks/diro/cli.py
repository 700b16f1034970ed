"""
Diro CLI - Run the Diro node outside a workflow host.

Provides commands for:
- Testing the configured credential
- Listing templates and template fields
- Running the node over a batch of items

Credentials come from DIRO_API_KEY / DIRO_BASE_URL (or a .env file).
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import click

from src.config import get_settings
from src.node_registry import NodeRegistry
from src.node_sdk.basenode import NodeOperationError
from src.node_sdk.http import HttpApiError, NodeTimeoutError
from src.observability import get_logger, setup_logging, with_node_context

from .credentials import DiroApiCredential
from .manifest import register_nodes
from .nodes import CREDENTIAL_NAME, DiroNode


logger = get_logger("nodepacks.diro.cli")

NODE_ERRORS = (NodeOperationError, HttpApiError, NodeTimeoutError)


def _build_registry() -> NodeRegistry:
    registry = NodeRegistry()
    registry.register_pack(*register_nodes())
    return registry


def _credentials() -> Dict[str, Dict[str, Any]]:
    settings = get_settings()
    if settings.api_key is None:
        click.echo("Error: DIRO_API_KEY is not set", err=True)
        sys.exit(1)
    return {
        CREDENTIAL_NAME: {
            "apiKey": settings.api_key.get_secret_value(),
            "baseUrl": settings.base_url,
        }
    }


def _load_items(path: Optional[str]) -> List[Dict[str, Any]]:
    """Read input items; bare objects are wrapped as {"json": ...}."""
    if not path:
        return [{"json": {}}]

    data = json.loads(Path(path).read_text())
    if not isinstance(data, list):
        data = [data]
    return [item if isinstance(item, dict) and "json" in item else {"json": item} for item in data]


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.pass_context
def cli(ctx: click.Context, verbose: bool):
    """Diro - Generate documents from templates."""
    ctx.ensure_object(dict)

    setup_logging(stream=sys.stderr)
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    ctx.obj["verbose"] = verbose


@cli.command("test-credential")
def test_credential():
    """Check that the configured API key is accepted."""
    credentials = _credentials()[CREDENTIAL_NAME]
    result = _build_registry().test_credential(DiroApiCredential.name, credentials)

    click.echo(result["message"])
    if not result["success"]:
        sys.exit(1)


@cli.command("templates")
def templates():
    """List templates as load-options entries."""
    try:
        options = _build_registry().load_options(
            DiroNode.type, "getTemplates", parameters={}, credentials=_credentials()
        )
    except NODE_ERRORS as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    _echo_json([option.model_dump(exclude_none=True) for option in options])


@cli.command("fields")
@click.argument("template_id")
def fields(template_id: str):
    """
    Show the resource mapper fields of a template.

    TEMPLATE_ID: Diro template ID
    """
    try:
        result = _build_registry().resource_mapping(
            DiroNode.type,
            "getTemplateFields",
            parameters={"templateId": template_id},
            credentials=_credentials(),
        )
    except NODE_ERRORS as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    _echo_json(result.model_dump(by_alias=True, exclude_none=True))


@cli.command("run")
@click.argument("params_file", type=click.Path(exists=True))
@click.option(
    "--input", "-i",
    type=click.Path(exists=True),
    help="Path to input items JSON file"
)
@click.option(
    "--continue-on-fail", is_flag=True,
    help="Emit an error item instead of aborting on a failed item"
)
@click.option(
    "--output", "-o",
    type=click.Path(),
    help="Path to output JSON file"
)
def run(
    params_file: str,
    input: Optional[str],
    continue_on_fail: bool,
    output: Optional[str],
):
    """
    Run the Diro node with parameters from a JSON file.

    PARAMS_FILE: Path to node parameters JSON

    Examples:

        # List every template
        diro-node run params.json

        # Generate one document per input item
        diro-node run generate.json -i items.json -o documents.json
    """
    parameters = json.loads(Path(params_file).read_text())
    items = _load_items(input)

    logger.info(
        f"Running {parameters.get('resource')}.{parameters.get('operation')} on {len(items)} items",
        extra=with_node_context(node_type=DiroNode.type),
    )

    try:
        result = _build_registry().execute_node(
            DiroNode.type,
            parameters=parameters,
            credentials=_credentials(),
            input_data=items,
            continue_on_fail=continue_on_fail,
        )
    except NODE_ERRORS as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    output_items = result[0] if result else []

    if output:
        Path(output).write_text(json.dumps(output_items, indent=2, default=str))
        click.echo(f"Output saved to: {output}")
    else:
        _echo_json(output_items)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
