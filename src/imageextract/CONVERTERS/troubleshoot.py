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
Upgrades Troubleshoot specs written against the legacy
troubleshoot.replicated.com/v1beta1 API to troubleshoot.sh/v1beta2.
"""
from typing import Callable

import yaml

from ..exceptions import ConversionError
from ..UTILS.yaml_utils import YAML_ERRORS, load_first_document
from ..MODELS.kots_kinds import (
    TROUBLESHOOT_GROUP,
    TROUBLESHOOT_LEGACY_API_VERSION,
    TROUBLESHOOT_VERSION,
)

CURRENT_API_VERSION = f"{TROUBLESHOOT_GROUP}/{TROUBLESHOOT_VERSION}"

# Converts one YAML document to another; raises ConversionError on failure
DocumentConverter = Callable[[bytes], bytes]


def convert_to_v1beta2(doc: bytes) -> bytes:
    """
    Rewrite a Troubleshoot document to the v1beta2 API.

    :param doc: A single YAML document.
    :return: The document unchanged if it is already v1beta2, otherwise a
             re-serialized copy with the new apiVersion.
    :raises ConversionError: If the document has no apiVersion or one that
             cannot be converted.
    """
    try:
        parsed = load_first_document(doc)
    except YAML_ERRORS as e:
        raise ConversionError(f"failed to parse document: {e}") from e

    if not isinstance(parsed, dict) or "apiVersion" not in parsed:
        raise ConversionError("no apiVersion in document")

    api_version = parsed["apiVersion"]
    if api_version == CURRENT_API_VERSION:
        return doc
    if api_version != TROUBLESHOOT_LEGACY_API_VERSION:
        raise ConversionError(f"cannot convert {api_version}")

    parsed["apiVersion"] = CURRENT_API_VERSION
    return yaml.safe_dump(parsed, sort_keys=False).encode("utf-8")
