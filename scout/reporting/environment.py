"""
Static environment metadata attached to every event.

Collected once per process: host and interpreter details, plus CI build
information when running under Buildkite or GitHub Actions.
"""

from __future__ import annotations

import logging
import os
import platform
import socket
from functools import lru_cache
from typing import Any

logger = logging.getLogger(__name__)


def collect_environment_metadata(environ: dict[str, str] | None = None) -> dict[str, Any]:
    """
    Collect environment metadata for the current process.

    Args:
        environ: Environment variables to read CI info from (defaults to os.environ)

    Returns:
        Dict of top-level document fields (``host``, ``process``, optionally ``ci``)
    """
    environ = dict(os.environ if environ is None else environ)

    metadata: dict[str, Any] = {
        "host": _host_metadata(),
        "process": {
            "python_version": platform.python_version(),
            "implementation": platform.python_implementation(),
        },
    }

    ci = _ci_metadata(environ)
    if ci:
        metadata["ci"] = ci

    return metadata


@lru_cache(maxsize=1)
def environment_metadata() -> dict[str, Any]:
    """Process-wide cached ``collect_environment_metadata()``."""
    return collect_environment_metadata()


def _host_metadata() -> dict[str, Any]:
    host: dict[str, Any] = {}
    try:
        host["hostname"] = socket.gethostname()
    except OSError as e:
        logger.debug(f"Could not read hostname: {e}")

    host["architecture"] = platform.machine() or None
    host["os"] = {
        "platform": platform.system().lower() or None,
        "release": platform.release() or None,
        "name": platform.platform() or None,
    }
    return {k: v for k, v in host.items() if v is not None}


def _ci_metadata(environ: dict[str, str]) -> dict[str, Any]:
    if environ.get("BUILDKITE") == "true" or "BUILDKITE_BUILD_ID" in environ:
        return _compact({
            "provider": "buildkite",
            "build_id": environ.get("BUILDKITE_BUILD_ID"),
            "build_number": environ.get("BUILDKITE_BUILD_NUMBER"),
            "build_url": environ.get("BUILDKITE_BUILD_URL"),
            "job_id": environ.get("BUILDKITE_JOB_ID"),
            "branch": environ.get("BUILDKITE_BRANCH"),
            "commit": environ.get("BUILDKITE_COMMIT"),
            "pipeline": environ.get("BUILDKITE_PIPELINE_SLUG"),
        })

    if environ.get("GITHUB_ACTIONS") == "true":
        server = environ.get("GITHUB_SERVER_URL", "https://github.com").rstrip("/")
        repository = environ.get("GITHUB_REPOSITORY")
        run_id = environ.get("GITHUB_RUN_ID")
        build_url = f"{server}/{repository}/actions/runs/{run_id}" if repository and run_id else None
        return _compact({
            "provider": "github_actions",
            "build_id": run_id,
            "build_number": environ.get("GITHUB_RUN_NUMBER"),
            "build_url": build_url,
            "job_id": environ.get("GITHUB_JOB"),
            "branch": environ.get("GITHUB_HEAD_REF") or environ.get("GITHUB_REF_NAME"),
            "commit": environ.get("GITHUB_SHA"),
            "pipeline": environ.get("GITHUB_WORKFLOW"),
        })

    return {}


def _compact(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}
