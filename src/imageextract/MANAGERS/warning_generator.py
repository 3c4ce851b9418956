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
Warnings for image references that are likely to cause trouble when the
images are mirrored or pinned for an air-gapped install.
"""
from typing import Dict, List

from ..MODELS.image_ref import ImageRef, ImageWarning, WarningType

WARNING_MESSAGES: Dict[WarningType, str] = {
    WarningType.LATEST_TAG: "Image uses 'latest' tag which is not recommended for production",
    WarningType.NO_TAG: "Image has no tag specified",
    WarningType.INSECURE: "Image uses insecure HTTP registry",
    WarningType.UNQUALIFIED: "Image reference is unqualified (no registry specified)",
    WarningType.INVALID_SYNTAX: "Image reference could not be parsed",
}


def generate_warnings(img: ImageRef) -> List[ImageWarning]:
    """
    Checks one image against every rule. Rules are independent, so one
    image can collect several warnings. Each warning points at the first
    source of the image, if it has one.
    """
    source = img.sources[0] if img.sources else None
    raw = img.raw
    types: List[WarningType] = []

    if img.tag == "latest":
        types.append(WarningType.LATEST_TAG)

    if img.tag == "" or (":" not in raw and "@" not in raw):
        types.append(WarningType.NO_TAG)

    if raw.startswith("http://"):
        types.append(WarningType.INSECURE)

    # Only bare single-segment names such as "nginx"; "myorg/app" is not flagged
    if img.registry == "docker.io" and "." not in raw and "/" not in raw:
        types.append(WarningType.UNQUALIFIED)

    if not img.registry and not img.repository:
        types.append(WarningType.INVALID_SYNTAX)

    return [
        ImageWarning(image=raw, type=t, message=WARNING_MESSAGES[t], source=source)
        for t in types
    ]
