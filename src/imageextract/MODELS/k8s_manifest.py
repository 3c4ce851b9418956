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
Minimal structural models of Kubernetes workloads.

Only the fields needed to locate container images are modelled. Everything
else in a manifest is ignored, and explicit ``null`` values fall back to the
field defaults so that half-filled templates still validate.
"""
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ManifestModel(BaseModel):
    """
    Base for manifest fragments: unknown keys ignored, nulls dropped.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


def _scalar_to_str(value: Any) -> Any:
    # YAML scalars such as `image: 1.0` still name an image
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return str(value)
    return value


class Container(ManifestModel):
    name: str = ""
    image: str = ""

    @field_validator("name", "image", mode="before")
    @classmethod
    def _coerce_scalar(cls, value: Any) -> Any:
        return _scalar_to_str(value)


class PodSpec(ManifestModel):
    """
    Container slots of a pod. Ephemeral containers only exist on bare Pods.
    """
    containers: List[Container] = []
    init_containers: List[Container] = Field(default_factory=list, alias="initContainers")
    ephemeral_containers: List[Container] = Field(default_factory=list, alias="ephemeralContainers")

    @field_validator("containers", "init_containers", "ephemeral_containers", mode="before")
    @classmethod
    def _drop_null_entries(cls, value: Any) -> Any:
        # `- ` with nothing after it is an empty container, not a broken pod
        if isinstance(value, list):
            return [item for item in value if item is not None]
        return value


class PodTemplate(ManifestModel):
    spec: PodSpec = Field(default_factory=PodSpec)


class JobSpec(ManifestModel):
    template: PodTemplate = Field(default_factory=PodTemplate)


class JobTemplate(ManifestModel):
    spec: JobSpec = Field(default_factory=JobSpec)


class WorkloadSpec(ManifestModel):
    """
    Spec of every templated workload.

    ``template`` covers Deployment, StatefulSet, DaemonSet, ReplicaSet and
    Job; ``jobTemplate`` adds the extra layer a CronJob has.
    """
    template: PodTemplate = Field(default_factory=PodTemplate)
    job_template: JobTemplate = Field(default_factory=JobTemplate, alias="jobTemplate")


class ManifestDocument(ManifestModel):
    api_version: str = Field(default="", alias="apiVersion")
    kind: str = ""
    metadata: Dict[str, Any] = {}

    @field_validator("api_version", "kind", mode="before")
    @classmethod
    def _coerce_scalar(cls, value: Any) -> Any:
        return _scalar_to_str(value)

    @field_validator("metadata", mode="before")
    @classmethod
    def _lenient_metadata(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else {}

    @property
    def name(self) -> str:
        value = self.metadata.get("name")
        return value if isinstance(value, str) else ""

    @property
    def namespace(self) -> str:
        value = self.metadata.get("namespace")
        return value if isinstance(value, str) else ""


class WorkloadDocument(ManifestDocument):
    spec: WorkloadSpec = Field(default_factory=WorkloadSpec)


class PodDocument(ManifestDocument):
    spec: PodSpec = Field(default_factory=PodSpec)
