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
Models for the custom resources that reference images outside of pod specs:
the KOTS Application and the Troubleshoot collector specs.
"""
from typing import List, Optional

from pydantic import Field

from .k8s_manifest import ManifestDocument, ManifestModel

KOTS_GROUP = "kots.io"
KOTS_VERSION = "v1beta1"

TROUBLESHOOT_GROUP = "troubleshoot.sh"
TROUBLESHOOT_VERSION = "v1beta2"
TROUBLESHOOT_LEGACY_API_VERSION = "troubleshoot.replicated.com/v1beta1"


class ApplicationSpec(ManifestModel):
    title: str = ""
    additional_images: List[str] = Field(default_factory=list, alias="additionalImages")
    excluded_images: List[str] = Field(default_factory=list, alias="excludedImages")


class Application(ManifestDocument):
    """
    kots.io/v1beta1 Application.

    ``additionalImages`` are shipped alongside the workloads and
    ``excludedImages`` are removed from the final image list.
    """
    spec: ApplicationSpec = Field(default_factory=ApplicationSpec)


class RunCollector(ManifestModel):
    collector_name: str = Field(default="", alias="collectorName")
    name: str = ""
    namespace: str = ""
    image: str = ""


class Collect(ManifestModel):
    """
    One collector entry. Only the ``run`` collector carries an image.
    """
    run: Optional[RunCollector] = None


class CollectorSpec(ManifestModel):
    collectors: List[Collect] = []


class TroubleshootDocument(ManifestDocument):
    spec: CollectorSpec = Field(default_factory=CollectorSpec)

    def run_images(self) -> List[str]:
        return [c.run.image for c in self.spec.collectors if c.run is not None and c.run.image]


class Collector(TroubleshootDocument):
    pass


class SupportBundle(TroubleshootDocument):
    pass


class Preflight(TroubleshootDocument):
    pass
