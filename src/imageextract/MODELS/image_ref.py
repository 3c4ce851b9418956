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
Models for extracted image references, their provenance and the warnings
attached to them.
"""
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class ContainerType(str, Enum):
    """
    Container slot an image was found in.
    """
    CONTAINER = "container"
    INIT_CONTAINER = "initContainer"
    EPHEMERAL_CONTAINER = "ephemeralContainer"


class WarningType(str, Enum):
    """
    Categories of problems detected on an image reference.
    """
    LATEST_TAG = "latest-tag"
    NO_TAG = "no-tag"
    INSECURE = "insecure-registry"
    UNQUALIFIED = "unqualified-name"
    INVALID_SYNTAX = "invalid-syntax"


class Source(BaseModel):
    """
    One place an image reference was found.
    """
    file: str = ""
    kind: str = ""
    name: str = ""
    namespace: str = ""
    container: str = ""
    container_type: str = ""


class ImageRef(BaseModel):
    """
    Parsed container image reference.

    ``raw`` is the string as written in the manifest and is the identity used
    for deduplication. The other fields are empty when the reference could
    not be parsed.
    """
    raw: str
    registry: str = ""
    repository: str = ""
    tag: str = ""
    digest: str = ""
    sources: List[Source] = []

    @property
    def parsed(self) -> bool:
        return bool(self.registry or self.repository)


class ImageWarning(BaseModel):
    """
    Issue detected with an image reference.
    """
    image: str
    type: WarningType
    message: str
    source: Optional[Source] = None


class Result(BaseModel):
    """
    Output of a single extraction call.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    images: List[ImageRef] = []
    warnings: List[ImageWarning] = []
    errors: List[Exception] = []

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly view; errors are rendered as strings."""
        return {
            "images": [img.model_dump() for img in self.images],
            "warnings": [w.model_dump(mode="json") for w in self.warnings],
            "errors": [str(e) for e in self.errors],
            "summary": {
                "total": len(self.images),
                "unique": len({img.raw for img in self.images}),
            },
        }


class ExtractOptions(BaseModel):
    """
    Extraction configuration.

    ``helm_values`` override values read from ``helm_values_files``.
    ``namespace`` and ``release_name`` are only used when rendering charts.
    """
    helm_values: Dict[str, Any] = {}
    helm_values_files: List[str] = []
    namespace: str = ""
    release_name: str = "release"
    include_duplicates: bool = False
    no_warnings: bool = False
    strict: bool = False
