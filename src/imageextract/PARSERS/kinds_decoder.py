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
Registry of custom resource kinds and a decoder that turns YAML documents
into their typed models based on apiVersion and kind.
"""
from typing import Any, Dict, NamedTuple, Type, Union

from pydantic import BaseModel, ValidationError

from ..exceptions import DocumentDecodeError
from ..UTILS.yaml_utils import YAML_ERRORS, load_first_document
from ..MODELS.kots_kinds import (
    KOTS_GROUP,
    KOTS_VERSION,
    TROUBLESHOOT_GROUP,
    TROUBLESHOOT_LEGACY_API_VERSION,
    TROUBLESHOOT_VERSION,
    Application,
    Collector,
    Preflight,
    SupportBundle,
)


class GroupVersionKind(NamedTuple):
    group: str
    version: str
    kind: str

    @classmethod
    def from_api_version(cls, api_version: str, kind: str) -> "GroupVersionKind":
        # Core resources have no group: "v1"
        group, _, version = api_version.rpartition("/")
        return cls(group=group, version=version, kind=kind)


class DecodedObject(NamedTuple):
    gvk: GroupVersionKind
    obj: BaseModel


class KindsDecoder:
    """
    Maps (group, version, kind) to a model and decodes documents into it.

    Each decoder owns its registrations; build one with ``KindsDecoder.default()``
    or register kinds explicitly.
    """

    def __init__(self):
        self._kinds: Dict[GroupVersionKind, Type[BaseModel]] = {}

    @classmethod
    def default(cls) -> "KindsDecoder":
        """
        A decoder knowing the KOTS Application and the Troubleshoot specs
        in both their legacy and current API versions.
        """
        decoder = cls()
        decoder.register(f"{KOTS_GROUP}/{KOTS_VERSION}", "Application", Application)
        for api_version in (f"{TROUBLESHOOT_GROUP}/{TROUBLESHOOT_VERSION}", TROUBLESHOOT_LEGACY_API_VERSION):
            decoder.register(api_version, "Collector", Collector)
            decoder.register(api_version, "SupportBundle", SupportBundle)
            decoder.register(api_version, "Preflight", Preflight)
        return decoder

    def register(self, api_version: str, kind: str, model: Type[BaseModel]) -> None:
        self._kinds[GroupVersionKind.from_api_version(api_version, kind)] = model

    def is_registered(self, gvk: GroupVersionKind) -> bool:
        return gvk in self._kinds

    def decode(self, document: Union[bytes, str, Dict[str, Any]]) -> DecodedObject:
        """
        Decode a YAML document (raw or already loaded) into its registered model.

        :raises DocumentDecodeError: When the document is not YAML, lacks
                 apiVersion or kind, names an unregistered kind, or does not
                 match the model.
        """
        if isinstance(document, (bytes, str)):
            try:
                data = load_first_document(document)
            except YAML_ERRORS as e:
                raise DocumentDecodeError(f"invalid YAML: {e}") from e
        else:
            data = document

        if not isinstance(data, dict):
            raise DocumentDecodeError("document is not a mapping")

        api_version = data.get("apiVersion")
        kind = data.get("kind")
        if not isinstance(kind, str) or not kind:
            raise DocumentDecodeError("Object 'Kind' is missing")
        if not isinstance(api_version, str) or not api_version:
            raise DocumentDecodeError("Object 'apiVersion' is missing")

        gvk = GroupVersionKind.from_api_version(api_version, kind)
        model = self._kinds.get(gvk)
        if model is None:
            raise DocumentDecodeError(f"no kind {kind!r} is registered for version {api_version!r}")

        try:
            obj = model.model_validate(data)
        except ValidationError as e:
            raise DocumentDecodeError(f"failed to decode {kind}: {e}") from e
        return DecodedObject(gvk=gvk, obj=obj)
