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
Parser that finds container image references in Kubernetes YAML.

Handles templated workloads (Deployment, StatefulSet, DaemonSet, ReplicaSet,
Job, CronJob), bare Pods, the KOTS Application's additional and excluded
images, and the run collectors of Troubleshoot specs. Documents that cannot
be read are skipped: manifest directories routinely mix in values files,
templates and other YAML that is not a Kubernetes object.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple, Union

from pydantic import ValidationError

from ..CONVERTERS.troubleshoot import DocumentConverter, convert_to_v1beta2
from ..exceptions import ConversionError, DocumentDecodeError
from ..MODELS.image_ref import ContainerType, Source
from ..MODELS.k8s_manifest import Container, ManifestDocument, PodDocument, WorkloadDocument
from ..MODELS.kots_kinds import (
    KOTS_GROUP,
    KOTS_VERSION,
    TROUBLESHOOT_GROUP,
    TROUBLESHOOT_VERSION,
    Application,
    TroubleshootDocument,
)
from ..UTILS.yaml_utils import YAML_ERRORS, load_first_document
from .kinds_decoder import GroupVersionKind, KindsDecoder

logger = logging.getLogger(__name__)

# Documents are split on this exact separator, not by a YAML stream parser
DOCUMENT_SEPARATOR = b"\n---\n"

TROUBLESHOOT_KINDS = ("Collector", "SupportBundle", "Preflight")


@dataclass
class FoundImage:
    """An image string and where in the manifest it was found."""
    image: str
    source: Source


@dataclass
class ScanResult:
    images: List[FoundImage] = field(default_factory=list)
    excluded: List[str] = field(default_factory=list)


def split_documents(data: bytes) -> List[bytes]:
    return data.split(DOCUMENT_SEPARATOR)


def _object_source(doc: ManifestDocument) -> Source:
    return Source(kind=doc.kind, name=doc.name, namespace=doc.namespace)


def _collect(doc: ManifestDocument, containers: List[Container], container_type: ContainerType) -> List[FoundImage]:
    found = []
    for container in containers:
        if not container.image:
            continue
        source = _object_source(doc)
        source.container = container.name
        source.container_type = container_type.value
        found.append(FoundImage(image=container.image, source=source))
    return found


def list_images_in_doc(doc: WorkloadDocument) -> List[FoundImage]:
    """
    Images of a templated workload, including the CronJob jobTemplate layer.
    """
    pod_spec = doc.spec.template.spec
    cron_spec = doc.spec.job_template.spec.template.spec

    found = _collect(doc, pod_spec.containers, ContainerType.CONTAINER)
    found += _collect(doc, pod_spec.init_containers, ContainerType.INIT_CONTAINER)
    found += _collect(doc, cron_spec.containers, ContainerType.CONTAINER)
    found += _collect(doc, cron_spec.init_containers, ContainerType.INIT_CONTAINER)
    return found


def list_images_in_pod(doc: PodDocument) -> List[FoundImage]:
    found = _collect(doc, doc.spec.containers, ContainerType.CONTAINER)
    found += _collect(doc, doc.spec.init_containers, ContainerType.INIT_CONTAINER)
    found += _collect(doc, doc.spec.ephemeral_containers, ContainerType.EPHEMERAL_CONTAINER)
    return found


class ManifestParser:
    """
    Extracts image references from multi-document Kubernetes YAML.
    """

    def __init__(
        self,
        decoder: Optional[KindsDecoder] = None,
        converter: Optional[DocumentConverter] = None,
        strict: bool = False,
    ):
        """
        :param decoder: Registry used to decode the custom resources. A fresh
                        default registry is built when omitted.
        :param converter: Upgrades Troubleshoot documents before decoding.
        :param strict: Raise DocumentDecodeError on the first document that
                       cannot be decoded instead of skipping it.
        """
        self.decoder = decoder or KindsDecoder.default()
        self.converter = converter or convert_to_v1beta2
        self.strict = strict

    def extract_images_from_file(self, data: Union[bytes, str]) -> Tuple[List[str], List[str]]:
        """
        Returns every image string found in the data, in document order, and
        the images the data asks to exclude.
        """
        result = self.scan(data)
        return [found.image for found in result.images], result.excluded

    def scan(self, data: Union[bytes, str]) -> ScanResult:
        """
        Same as ``extract_images_from_file`` but keeps the provenance of
        each image.
        """
        if isinstance(data, str):
            data = data.encode("utf-8")

        result = ScanResult()
        for index, raw_doc in enumerate(split_documents(data)):
            self._scan_document(index, raw_doc, result)
        return result

    def _reject(self, index: int, reason: Any) -> None:
        if self.strict:
            raise DocumentDecodeError(f"document {index}: {reason}")
        logger.debug("Skipping document %d: %s", index, reason)

    def _scan_document(self, index: int, raw_doc: bytes, result: ScanResult) -> None:
        try:
            data = load_first_document(raw_doc)
        except YAML_ERRORS as e:
            self._reject(index, e)
            return

        if data is None:
            return
        if not isinstance(data, dict):
            self._reject(index, f"expected a mapping, got {type(data).__name__}")
            return

        try:
            doc = WorkloadDocument.model_validate(data)
            if doc.kind != "Pod":
                found = list_images_in_doc(doc)
            else:
                found = list_images_in_pod(PodDocument.model_validate(data))
        except ValidationError as e:
            self._reject(index, e)
            return
        result.images.extend(found)

        kots_images, excluded = self.list_kots_kinds_images(raw_doc, data)
        result.images.extend(kots_images)
        result.excluded.extend(excluded)

    def list_kots_kinds_images(self, raw_doc: bytes, data: dict) -> Tuple[List[FoundImage], List[str]]:
        """
        Images named by the KOTS Application and by Troubleshoot run
        collectors, plus the Application's exclusion list.

        Documents of any other kind contribute nothing.
        """
        try:
            decoded = self.decoder.decode(data)
        except DocumentDecodeError as e:
            logger.debug("Not a known custom resource: %s", e)
            return [], []

        if decoded.gvk == GroupVersionKind(KOTS_GROUP, KOTS_VERSION, "Application"):
            app: Application = decoded.obj
            source = _object_source(app)
            images = [FoundImage(image=img, source=source.model_copy()) for img in app.spec.additional_images if img]
            return images, [img for img in app.spec.excluded_images if img]

        try:
            converted = self.converter(raw_doc)
            decoded = self.decoder.decode(converted)
        except (ConversionError, DocumentDecodeError) as e:
            logger.debug("Could not upgrade %s document: %s", decoded.gvk.kind, e)
            return [], []

        gvk = decoded.gvk
        if (gvk.group, gvk.version) != (TROUBLESHOOT_GROUP, TROUBLESHOOT_VERSION):
            return [], []
        if gvk.kind not in TROUBLESHOOT_KINDS:
            return [], []

        spec: TroubleshootDocument = decoded.obj
        source = _object_source(spec)
        return [FoundImage(image=img, source=source.model_copy()) for img in spec.run_images()], []
