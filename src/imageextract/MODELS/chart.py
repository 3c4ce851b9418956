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
Models for Helm charts and their rendered output.
"""
from typing import List

from pydantic import BaseModel, Field


class ChartMetadata(BaseModel):
    """
    The fields of Chart.yaml the loader validates.
    """
    api_version: str = Field(default="", alias="apiVersion")
    name: str = ""
    version: str = ""
    app_version: str = Field(default="", alias="appVersion")
    description: str = ""
    chart_type: str = Field(default="", alias="type")

    model_config = {"populate_by_name": True, "extra": "ignore"}


class Chart(BaseModel):
    """
    A loaded chart: its metadata and where it lives on disk. The chart's own
    values.yaml is applied by the renderer, not carried here.
    """
    path: str
    metadata: ChartMetadata


class RenderedRelease(BaseModel):
    """
    Output of a client-only render: the main manifest plus one entry per hook.
    """
    manifest: str = ""
    hooks: List[str] = []

    def combined(self) -> str:
        """Main manifest followed by every hook, joined by document separators."""
        parts = [self.manifest]
        parts.extend(self.hooks)
        return "\n---\n".join(parts)
