"""CLI commands that compute and publish versions."""

import json
import sys
from pathlib import Path
from typing import Dict, Optional

import click
import yaml

from gitversioning.cli.utils.logging import logger
from gitversioning.config import OUTPUT_FORMATS, get_cloud_provider, get_output_format
from gitversioning.versioning import (
    ConfigParseError,
    VersionIdentity,
    VersioningError,
    detect_cloud_build,
    get_cloud_build,
    get_version_identity,
)
from gitversioning.versioning.cloud import CLOUD_BUILDS, CloudBuild
from gitversioning.versioning.formatting import exported_values


def _compute(
    project: str,
    commit: Optional[str],
    cloud_build: Optional[CloudBuild],
    public_release: Optional[bool],
    build_number_offset: Optional[int],
) -> VersionIdentity:
    try:
        return get_version_identity(
            Path(project),
            commit=commit,
            cloud_build=cloud_build,
            override_build_number_offset=build_number_offset,
            public_release=public_release,
        )
    except ConfigParseError as e:
        logger.error(f"Error: {e}")
        sys.exit(1)
    except VersioningError as e:
        logger.error(f"Error: Failed to compute version: {e}")
        sys.exit(1)


def _select_variable(values: Dict[str, str], name: str) -> str:
    for key, value in values.items():
        if key.lower() == name.lower():
            return value
    raise click.BadParameter(
        f"Unknown variable '{name}'. Known variables: {', '.join(values)}",
        param_hint="--variable",
    )


def _resolve_cloud_build(ci_system: Optional[str]) -> Optional[CloudBuild]:
    provider = ci_system or get_cloud_provider()
    if provider:
        try:
            return get_cloud_build(provider)
        except ValueError as e:
            logger.error(f"Error: {e}")
            sys.exit(1)
    return detect_cloud_build()


project_option = click.option(
    "--project",
    "-p",
    default=".",
    show_default=True,
    type=click.Path(exists=True, file_okay=False),
    help="Project directory whose version to compute.",
)
commit_option = click.option(
    "--commit",
    "-c",
    default=None,
    help="Commit or ref to compute the version at. Defaults to HEAD, honouring "
    "uncommitted version file changes.",
)
offset_option = click.option(
    "--build-number-offset",
    type=int,
    default=None,
    help="Override buildNumberOffset from the version file.",
)


@click.command("get-version")
@project_option
@commit_option
@offset_option
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(OUTPUT_FORMATS),
    default=None,
    help="Output format (default from the [output] section of the settings file).",
)
@click.option(
    "--variable",
    "-v",
    default=None,
    help="Print a single variable, e.g. SemVer2 or NuGetPackageVersion.",
)
@click.option(
    "--public-release/--no-public-release",
    default=None,
    help="Force the release mode instead of matching publicReleaseRefSpec.",
)
def get_version(
    project: str,
    commit: Optional[str],
    build_number_offset: Optional[int],
    output_format: Optional[str],
    variable: Optional[str],
    public_release: Optional[bool],
):
    """Print the version computed for a project."""
    identity = _compute(
        project, commit, detect_cloud_build(), public_release, build_number_offset
    )
    values = exported_values(identity)

    if variable:
        click.echo(_select_variable(values, variable))
        return

    output_format = output_format or get_output_format()
    if output_format == "json":
        click.echo(json.dumps(values, indent=2))
    elif output_format == "yaml":
        click.echo(yaml.safe_dump(values, sort_keys=False), nl=False)
    else:
        width = max(len(name) for name in values)
        for name, value in values.items():
            click.echo(f"{name + ':':<{width + 1}} {value}")


@click.command("cloud")
@project_option
@commit_option
@offset_option
@click.option(
    "--ci-system",
    "-s",
    type=click.Choice([cls.name for cls in CLOUD_BUILDS], case_sensitive=False),
    default=None,
    help="CI system to publish to. Detected from the environment by default.",
)
@click.option(
    "--all-vars",
    "-a",
    is_flag=True,
    default=False,
    help="Publish all variables even if cloudBuild.setAllVariables is false.",
)
def cloud(
    project: str,
    commit: Optional[str],
    build_number_offset: Optional[int],
    ci_system: Optional[str],
    all_vars: bool,
):
    """Publish the build number and version variables to the CI system."""
    cloud_build = _resolve_cloud_build(ci_system)
    if cloud_build is None:
        logger.error(
            "Error: No CI system detected. Use --ci-system or set [cloud] provider "
            "in the settings file."
        )
        sys.exit(1)

    identity = _compute(project, commit, cloud_build, None, build_number_offset)

    if identity.cloud_build_number_enabled:
        cloud_build.set_cloud_build_number(identity.cloud_build_number)

    if identity.cloud_build_version_vars_enabled:
        for name, value in identity.cloud_build_version_vars.items():
            cloud_build.set_cloud_build_variable(name, value)

    if all_vars or identity.cloud_build_all_vars_enabled:
        for name, value in identity.cloud_build_all_vars.items():
            cloud_build.set_cloud_build_variable(name, value)

    logger.debug(f"Published version {identity.semver2} to {cloud_build.name}")
