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
Entry points for extracting image references from a manifest directory, a
Helm chart, or a raw manifest stream.
"""
import logging
import os
from typing import Iterator, List, Optional, Union

from ..exceptions import DirectoryNotFoundError
from ..MODELS.image_ref import ExtractOptions, ImageRef, Result
from ..PARSERS.manifest_parser import ManifestParser, ScanResult
from ..REGISTRY.image_reference import parse_image_ref
from ..RENDERERS.chart_renderer import ChartRenderer, HelmTemplateRenderer, load_chart
from ..UTILS.dedup import deduplicate_images
from ..UTILS.values import prepare_values
from ..UTILS.yaml_utils import is_yaml_file
from .warning_generator import generate_warnings

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "default"


def _walk_files(directory: str) -> Iterator[str]:
    """
    Every file below ``directory`` in lexicographic order. Files and
    subdirectories share one name-sorted order, so ``a/x.yaml`` comes
    before ``b.yaml``. Symlinked directories are not followed.

    :raises OSError: If a directory cannot be listed.
    """
    with os.scandir(directory) as it:
        entries = sorted(it, key=lambda entry: entry.name)

    for entry in entries:
        if entry.is_dir(follow_symlinks=False):
            yield from _walk_files(entry.path)
        else:
            yield entry.path


def _to_image_refs(scan: ScanResult, file: str = "") -> List[ImageRef]:
    images = []
    for found in scan.images:
        img = parse_image_ref(found.image)
        source = found.source.model_copy()
        source.file = file
        img.sources = [source]
        images.append(img)
    return images


def deduplicate_and_exclude(images: List[ImageRef], excluded_images: List[str]) -> List[ImageRef]:
    """
    Collapses images sharing the same raw string and removes excluded ones.
    The surviving image keeps the sources of every duplicate.
    """
    deduped = deduplicate_images([img.raw for img in images], excluded_images)

    merged = []
    for raw in deduped:
        img = parse_image_ref(raw)
        for original in images:
            if original.raw == raw:
                img.sources.extend(original.sources)
        merged.append(img)
    return merged


class ImageExtractor:
    """
    Extracts container image references from Kubernetes manifests and Helm charts.
    """

    def __init__(
        self,
        parser: Optional[ManifestParser] = None,
        renderer: Optional[ChartRenderer] = None,
    ):
        """
        :param parser: Manifest parser to use. When omitted, one is built per
                       call honouring ``ExtractOptions.strict``.
        :param renderer: Chart renderer; defaults to the helm binary.
        """
        self.parser = parser
        self.renderer = renderer or HelmTemplateRenderer()

    def _parser_for(self, opts: ExtractOptions) -> ManifestParser:
        if self.parser is not None:
            return self.parser
        return ManifestParser(strict=opts.strict)

    def _finish(self, result: Result, excluded_images: List[str], opts: ExtractOptions) -> Result:
        if not opts.include_duplicates:
            result.images = deduplicate_and_exclude(result.images, excluded_images)

        if not opts.no_warnings:
            for img in result.images:
                result.warnings.extend(generate_warnings(img))
        return result

    def extract_from_directory(self, directory: str, opts: Optional[ExtractOptions] = None) -> Result:
        """
        Recursively processes every .yaml/.yml file below ``directory``.

        Files that cannot be read are recorded in ``Result.errors`` and skipped.

        :raises DirectoryNotFoundError: If ``directory`` is missing or not a directory.
        """
        opts = opts or ExtractOptions()
        if not os.path.isdir(directory):
            raise DirectoryNotFoundError(f"directory not found: {directory}")

        parser = self._parser_for(opts)
        result = Result()
        excluded_images: List[str] = []

        files_scanned = 0
        for path in _walk_files(directory):
            if not is_yaml_file(path):
                continue
            try:
                with open(path, 'rb') as f:
                    data = f.read()
            except OSError as e:
                logger.debug("Skipping unreadable file %s: %s", path, e)
                result.errors.append(e)
                continue

            scan = parser.scan(data)
            excluded_images.extend(scan.excluded)
            result.images.extend(_to_image_refs(scan, file=path))
            files_scanned += 1

        logger.debug("Scanned %d YAML files in %s, found %d image references",
                     files_scanned, directory, len(result.images))
        return self._finish(result, excluded_images, opts)

    def extract_from_chart(self, chart_path: str, opts: Optional[ExtractOptions] = None) -> Result:
        """
        Renders a Helm chart and extracts the images from the rendered
        manifests and hooks.

        :raises ChartLoadError: If the chart cannot be loaded.
        :raises ValuesError: If a values file is unusable.
        :raises ChartRenderError: If rendering fails.
        """
        opts = opts or ExtractOptions()
        chart = load_chart(chart_path)
        values = prepare_values(opts)
        namespace = opts.namespace or DEFAULT_NAMESPACE

        release = self.renderer.render(chart, values, namespace, opts.release_name)
        return self.extract_from_manifests(release.combined(), opts)

    def extract_from_manifests(self, manifests: Union[bytes, str], opts: Optional[ExtractOptions] = None) -> Result:
        """
        Extracts images from raw YAML documents joined by '\\n---\\n'.
        """
        opts = opts or ExtractOptions()
        if isinstance(manifests, str):
            manifests = manifests.encode("utf-8")

        scan = self._parser_for(opts).scan(manifests)
        result = Result(images=_to_image_refs(scan))
        return self._finish(result, scan.excluded, opts)
