"""
CI system integration.

A ``CloudBuild`` tells the version computation which ref is being built (so
that public release ref specs can be matched even on detached checkouts) and
knows how to hand the computed build number and variables back to the CI
system. Providers are detected from environment variables.
"""

import logging
import os
import sys
from typing import Dict, Mapping, Optional, TextIO, Tuple, Type

logger = logging.getLogger(__name__)

TAG_PREFIX = "refs/tags/"
BRANCH_PREFIX = "refs/heads/"


class CloudBuild:
    """Base class for CI providers."""

    name = "generic"

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self.environ = os.environ if environ is None else environ

    @classmethod
    def is_applicable(cls, environ: Mapping[str, str]) -> bool:
        return False

    @property
    def building_tag(self) -> Optional[str]:
        return None

    @property
    def building_branch(self) -> Optional[str]:
        return None

    @property
    def git_commit_id(self) -> Optional[str]:
        return None

    def set_cloud_build_number(
        self, number: str, stdout: Optional[TextIO] = None
    ) -> Dict[str, str]:
        """
        Publish the build number.

        Returns:
            Environment variables that the CI system will see as a result
        """
        logger.warning(f"{self.name} does not support setting the build number")
        return {}

    def set_cloud_build_variable(
        self, name: str, value: str, stdout: Optional[TextIO] = None
    ) -> Dict[str, str]:
        """Publish one variable for later build steps."""
        logger.warning(f"{self.name} does not support setting build variables")
        return {}

    def _ref(self, ref: Optional[str], prefix: str) -> Optional[str]:
        if ref and ref.startswith(prefix):
            return ref
        return None


class GitHubActions(CloudBuild):
    """GitHub Actions: variables are appended to the file named by GITHUB_ENV."""

    name = "github"

    @classmethod
    def is_applicable(cls, environ: Mapping[str, str]) -> bool:
        return environ.get("GITHUB_ACTIONS", "").lower() == "true"

    @property
    def building_tag(self) -> Optional[str]:
        return self._ref(self.environ.get("GITHUB_REF"), TAG_PREFIX)

    @property
    def building_branch(self) -> Optional[str]:
        if self.building_tag:
            return None
        head_ref = self.environ.get("GITHUB_HEAD_REF")
        if head_ref:
            # pull request builds check out a merge ref; report the source branch
            return BRANCH_PREFIX + head_ref
        return self.environ.get("GITHUB_REF") or None

    @property
    def git_commit_id(self) -> Optional[str]:
        return self.environ.get("GITHUB_SHA") or None

    def set_cloud_build_number(
        self, number: str, stdout: Optional[TextIO] = None
    ) -> Dict[str, str]:
        logger.debug("GitHub Actions has no build number; skipping")
        return {}

    def set_cloud_build_variable(
        self, name: str, value: str, stdout: Optional[TextIO] = None
    ) -> Dict[str, str]:
        env_file = self.environ.get("GITHUB_ENV")
        if env_file:
            with open(env_file, "a", encoding="utf-8") as f:
                f.write(f"{name}={value}\n")
        else:
            logger.warning(f"GITHUB_ENV is not set; variable {name} not exported")
        return {name: value}


class AzurePipelines(CloudBuild):
    """Azure Pipelines: logging commands written to stdout."""

    name = "azure"

    @classmethod
    def is_applicable(cls, environ: Mapping[str, str]) -> bool:
        return environ.get("TF_BUILD", "").lower() == "true"

    @property
    def building_tag(self) -> Optional[str]:
        return self._ref(self.environ.get("BUILD_SOURCEBRANCH"), TAG_PREFIX)

    @property
    def building_branch(self) -> Optional[str]:
        return self._ref(self.environ.get("BUILD_SOURCEBRANCH"), BRANCH_PREFIX)

    @property
    def git_commit_id(self) -> Optional[str]:
        return self.environ.get("BUILD_SOURCEVERSION") or None

    def set_cloud_build_number(
        self, number: str, stdout: Optional[TextIO] = None
    ) -> Dict[str, str]:
        out = stdout or sys.stdout
        out.write(f"##vso[build.updatebuildnumber]{number}\n")
        return {"BUILD_BUILDNUMBER": number}

    def set_cloud_build_variable(
        self, name: str, value: str, stdout: Optional[TextIO] = None
    ) -> Dict[str, str]:
        out = stdout or sys.stdout
        out.write(f"##vso[task.setvariable variable={name};]{value}\n")
        return {name: value}


class GitLabCI(CloudBuild):
    """GitLab CI: variables are printed in dotenv form for a dotenv report."""

    name = "gitlab"

    @classmethod
    def is_applicable(cls, environ: Mapping[str, str]) -> bool:
        return environ.get("GITLAB_CI", "").lower() == "true"

    @property
    def building_tag(self) -> Optional[str]:
        tag = self.environ.get("CI_COMMIT_TAG")
        return TAG_PREFIX + tag if tag else None

    @property
    def building_branch(self) -> Optional[str]:
        if self.building_tag:
            return None
        branch = self.environ.get("CI_COMMIT_BRANCH") or self.environ.get(
            "CI_COMMIT_REF_NAME"
        )
        return BRANCH_PREFIX + branch if branch else None

    @property
    def git_commit_id(self) -> Optional[str]:
        return self.environ.get("CI_COMMIT_SHA") or None

    def set_cloud_build_variable(
        self, name: str, value: str, stdout: Optional[TextIO] = None
    ) -> Dict[str, str]:
        out = stdout or sys.stdout
        out.write(f"{name}={value}\n")
        return {name: value}


CLOUD_BUILDS: Tuple[Type[CloudBuild], ...] = (GitHubActions, AzurePipelines, GitLabCI)


def get_cloud_build(
    provider: str, environ: Optional[Mapping[str, str]] = None
) -> CloudBuild:
    """
    Instantiate a provider by name.

    Raises:
        ValueError: If the provider name is unknown
    """
    for cls in CLOUD_BUILDS:
        if cls.name == provider.lower():
            return cls(environ)
    known = ", ".join(cls.name for cls in CLOUD_BUILDS)
    raise ValueError(f"Unknown CI provider '{provider}'. Known providers: {known}")


def detect_cloud_build(
    environ: Optional[Mapping[str, str]] = None,
) -> Optional[CloudBuild]:
    """Return the CI provider running this process, or None outside CI."""
    environ = os.environ if environ is None else environ
    for cls in CLOUD_BUILDS:
        if cls.is_applicable(environ):
            logger.debug(f"Detected CI provider: {cls.name}")
            return cls(environ)
    return None
