# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Loading of Helm charts from directories or packaged archives, and client-side
rendering through the helm binary.
"""
import logging
import os
from abc import ABC, abstractmethod
import subprocess
import tarfile
import tempfile
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from ..exceptions import ChartLoadError, ChartRenderError
from ..MODELS.chart import Chart, ChartMetadata, RenderedRelease
from ..UTILS.yaml_utils import YAML_ERRORS, load_first_document

logger = logging.getLogger(__name__)

HOOK_ANNOTATION = "helm.sh/hook"


def _parse_yaml_mapping(content: bytes, what: str) -> Dict[str, Any]:
    try:
        data = load_first_document(content)
    except YAML_ERRORS as e:
        raise ChartLoadError(f"failed to parse {what}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ChartLoadError(f"{what} must contain a mapping")
    return data


def _read_chart_dir(path: str):
    chart_file = os.path.join(path, "Chart.yaml")
    if not os.path.isfile(chart_file):
        raise ChartLoadError(f"Chart.yaml file is missing in {path}")
    with open(chart_file, 'rb') as f:
        chart_yaml = f.read()

    values_yaml = None
    values_file = os.path.join(path, "values.yaml")
    if os.path.isfile(values_file):
        with open(values_file, 'rb') as f:
            values_yaml = f.read()
    return chart_yaml, values_yaml


def _read_chart_archive(path: str):
    """
    Packaged charts hold a single top-level directory named after the chart.
    """
    members: Dict[str, bytes] = {}
    with tarfile.open(path, "r:*") as archive:
        for member in archive.getmembers():
            parts = member.name.lstrip("./").split("/")
            if len(parts) != 2 or not member.isfile():
                continue
            if parts[1] in ("Chart.yaml", "values.yaml") and parts[1] not in members:
                extracted = archive.extractfile(member)
                if extracted is not None:
                    members[parts[1]] = extracted.read()

    if "Chart.yaml" not in members:
        raise ChartLoadError(f"Chart.yaml file is missing in archive {path}")
    return members["Chart.yaml"], members.get("values.yaml")


def load_chart(path: str) -> Chart:
    """
    Loads a chart from a directory or a .tgz package.

    :param path: Chart directory or archive.
    :return: The chart with its metadata and default values.
    :raises ChartLoadError: If the path is not a chart or Chart.yaml is invalid.
    """
    try:
        if os.path.isdir(path):
            chart_yaml, values_yaml = _read_chart_dir(path)
        elif os.path.isfile(path):
            if not tarfile.is_tarfile(path):
                raise ChartLoadError(f"{path} is neither a chart directory nor a chart archive")
            chart_yaml, values_yaml = _read_chart_archive(path)
        else:
            raise ChartLoadError(f"chart path {path} does not exist")
    except (OSError, tarfile.TarError) as e:
        raise ChartLoadError(f"failed to read chart {path}: {e}") from e

    try:
        metadata = ChartMetadata.model_validate(_parse_yaml_mapping(chart_yaml, "Chart.yaml"))
    except ValidationError as e:
        raise ChartLoadError(f"invalid Chart.yaml in {path}: {e}") from e

    for attr, key in (("api_version", "apiVersion"), ("name", "name"), ("version", "version")):
        if not getattr(metadata, attr):
            raise ChartLoadError(f"validation: chart.metadata.{key} is required")

    # helm applies the defaults itself; parsing only rejects a broken values.yaml early
    if values_yaml is not None:
        _parse_yaml_mapping(values_yaml, "values.yaml")

    logger.debug("Loaded chart %s %s from %s", metadata.name, metadata.version, path)
    return Chart(path=path, metadata=metadata)


def split_release(output: str) -> RenderedRelease:
    """
    Separates rendered output into the main manifest and the hook manifests,
    the way an install keeps them apart.
    """
    if output.startswith("---\n"):
        output = "\n" + output

    manifests: List[str] = []
    hooks: List[str] = []
    for doc in output.split("\n---\n"):
        if not doc.strip():
            continue
        try:
            data = load_first_document(doc)
        except YAML_ERRORS:
            data = None
        annotations = {}
        if isinstance(data, dict) and isinstance(data.get("metadata"), dict):
            annotations = data["metadata"].get("annotations") or {}
        if isinstance(annotations, dict) and HOOK_ANNOTATION in annotations:
            hooks.append(doc)
        else:
            manifests.append(doc)
    return RenderedRelease(manifest="\n---\n".join(manifests), hooks=hooks)


class ChartRenderer(ABC):
    """
    Renders a loaded chart to Kubernetes manifests without touching a cluster.
    """

    @abstractmethod
    def render(
        self,
        chart: Chart,
        values: Dict[str, Any],
        namespace: str,
        release_name: str = "release",
    ) -> RenderedRelease:
        """
        :param chart: Chart returned by ``load_chart``.
        :param values: User values, applied on top of the chart defaults.
        :param namespace: Namespace the release is rendered into.
        :param release_name: Name given to the release.
        :raises ChartRenderError: If the chart cannot be rendered.
        """


class HelmTemplateRenderer(ChartRenderer):
    """
    Renders charts with `helm template`, which performs a client-only dry-run
    install.
    """

    def __init__(self, helm_binary: str = "helm", timeout: Optional[float] = 300):
        """
        :param helm_binary: helm executable name or path.
        :param timeout: Seconds before the render is abandoned.
        """
        self.helm_binary = helm_binary
        self.timeout = timeout

    def render(
        self,
        chart: Chart,
        values: Dict[str, Any],
        namespace: str,
        release_name: str = "release",
    ) -> RenderedRelease:
        """
        :raises ChartRenderError: If helm is missing, fails or times out.
        """
        with tempfile.TemporaryDirectory(prefix="imageextract-") as tmp:
            values_path = os.path.join(tmp, "values.yaml")
            with open(values_path, 'w') as f:
                yaml.safe_dump(values, f)

            cmd = [
                self.helm_binary, "template", release_name, chart.path,
                "--namespace", namespace,
                "--values", values_path,
            ]
            logger.debug("Rendering chart: %s", " ".join(cmd))
            try:
                proc = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
            except FileNotFoundError as e:
                raise ChartRenderError(f"helm binary {self.helm_binary!r} not found") from e
            except subprocess.TimeoutExpired as e:
                raise ChartRenderError(f"rendering {chart.metadata.name} timed out after {self.timeout}s") from e

        if proc.returncode != 0:
            raise ChartRenderError(
                f"failed to render chart {chart.metadata.name}: {proc.stderr.strip() or proc.returncode}"
            )

        release = split_release(proc.stdout)
        logger.debug(
            "Rendered %s: %d bytes of manifests, %d hooks",
            chart.metadata.name, len(release.manifest), len(release.hooks),
        )
        return release
