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
Image reference parsing and handling.
Parses Docker image references like 'nginx:latest' or 'docker.io/library/nginx:1.21'
following the Docker distribution reference grammar, including the Docker Hub
normalization rules.
"""

import logging
import re
from typing import Optional
from dataclasses import dataclass

from ..exceptions import InvalidReferenceError
from ..MODELS.image_ref import ImageRef

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY = "docker.io"
LEGACY_DEFAULT_REGISTRY = "index.docker.io"
OFFICIAL_REPO_PREFIX = "library/"
DEFAULT_TAG = "latest"
NAME_TOTAL_LENGTH_MAX = 255

# Reference grammar: registry[:port]/path[:tag][@algorithm:hex]
_ALPHANUMERIC = r"[a-z0-9]+"
_SEPARATOR = r"(?:[._]|__|[-]+)"
_PATH_COMPONENT = _ALPHANUMERIC + r"(?:" + _SEPARATOR + _ALPHANUMERIC + r")*"
_REMOTE_NAME = _PATH_COMPONENT + r"(?:/" + _PATH_COMPONENT + r")*"
_DOMAIN_NAME_COMPONENT = r"(?:[a-zA-Z0-9]|[a-zA-Z0-9][a-zA-Z0-9-]*[a-zA-Z0-9])"
_DOMAIN_NAME = _DOMAIN_NAME_COMPONENT + r"(?:\." + _DOMAIN_NAME_COMPONENT + r")*"
_IPV6_ADDRESS = r"\[(?:[a-fA-F0-9:]+)\]"
_DOMAIN_AND_PORT = r"(?:" + _DOMAIN_NAME + r"|" + _IPV6_ADDRESS + r")(?::[0-9]+)?"
_NAME = r"(?:" + _DOMAIN_AND_PORT + r"/)?" + _REMOTE_NAME
_TAG = r"[\w][\w.-]{0,127}"
_DIGEST = r"[A-Za-z][A-Za-z0-9]*(?:[-_+.][A-Za-z][A-Za-z0-9]*)*[:][0-9a-fA-F]{32,}"

REFERENCE_RE = re.compile(
    r"(" + _NAME + r")(?::(" + _TAG + r"))?(?:@(" + _DIGEST + r"))?",
    re.ASCII,
)
ANCHORED_NAME_RE = re.compile(
    r"(?:(" + _DOMAIN_AND_PORT + r")/)?(" + _REMOTE_NAME + r")"
)
ANCHORED_IDENTIFIER_RE = re.compile(r"[a-f0-9]{64}")

# Encoded lengths of the digest algorithms an image can be pinned with
DIGEST_ALGORITHMS = {
    "sha256": re.compile(r"[a-f0-9]{64}"),
    "sha384": re.compile(r"[a-f0-9]{96}"),
    "sha512": re.compile(r"[a-f0-9]{128}"),
}


def _validate_digest(digest: str) -> None:
    algorithm, sep, encoded = digest.partition(":")
    if not algorithm or not sep or not encoded:
        raise InvalidReferenceError(f"invalid digest format: {digest}")
    pattern = DIGEST_ALGORITHMS.get(algorithm)
    if pattern is None:
        raise InvalidReferenceError(f"unsupported digest algorithm: {algorithm}")
    if not pattern.fullmatch(encoded):
        raise InvalidReferenceError(f"invalid checksum digest length or format: {digest}")


def split_docker_domain(name: str):
    """
    Split a name into (registry, remainder), applying the Docker Hub defaults.

    The first path component is a registry when it contains '.' or ':', is
    'localhost', or contains upper-case letters.
    """
    first, sep, rest = name.partition("/")
    if not sep or (
        "." not in first
        and ":" not in first
        and first != "localhost"
        and first.lower() == first
    ):
        registry, remainder = DEFAULT_REGISTRY, name
    else:
        registry, remainder = first, rest

    if registry == LEGACY_DEFAULT_REGISTRY:
        registry = DEFAULT_REGISTRY
    if registry == DEFAULT_REGISTRY and "/" not in remainder:
        remainder = OFFICIAL_REPO_PREFIX + remainder
    return registry, remainder


@dataclass
class ImageReference:
    """
    Parsed Docker image reference.

    Examples:
        - nginx -> docker.io/library/nginx
        - nginx:1.21 -> docker.io/library/nginx:1.21
        - myuser/myimage:v1 -> docker.io/myuser/myimage:v1
        - gcr.io/project/image@sha256:abc123... -> gcr.io/project/image@sha256:abc123...

    Unlike ``ImageRef`` this type does not invent a default tag; ``tag`` is
    None unless one was written.
    """

    registry: str
    repository: str
    tag: Optional[str] = None
    digest: Optional[str] = None

    @classmethod
    def parse(cls, reference: str) -> "ImageReference":
        """
        Parse a fully qualified reference ('registry/path[:tag][@digest]').

        Args:
            reference: Reference string whose first component is the registry.

        Returns:
            Parsed ImageReference object.

        Raises:
            InvalidReferenceError: If the string does not match the grammar.
        """
        match = REFERENCE_RE.fullmatch(reference)
        if match is None:
            if not reference:
                raise InvalidReferenceError("repository name must have at least one component")
            if REFERENCE_RE.fullmatch(reference.lower()):
                raise InvalidReferenceError("repository name must be lowercase")
            raise InvalidReferenceError(f"invalid reference format: {reference}")

        name, tag, digest = match.group(1), match.group(2), match.group(3)
        if len(name) > NAME_TOTAL_LENGTH_MAX:
            raise InvalidReferenceError(
                f"repository name must not be more than {NAME_TOTAL_LENGTH_MAX} characters"
            )

        name_match = ANCHORED_NAME_RE.fullmatch(name)
        if name_match is not None and name_match.group(1):
            registry, repository = name_match.group(1), name_match.group(2)
        else:
            registry, repository = "", name

        if digest:
            _validate_digest(digest)

        return cls(registry=registry, repository=repository, tag=tag or None, digest=digest or None)

    @classmethod
    def parse_normalized(cls, reference: str) -> "ImageReference":
        """
        Parse a reference the way the Docker CLI does, filling in the
        implicit docker.io registry and the library/ prefix.

        Raises:
            InvalidReferenceError: If the reference is malformed.
        """
        if ANCHORED_IDENTIFIER_RE.fullmatch(reference):
            raise InvalidReferenceError(
                f"invalid repository name ({reference}), cannot specify 64-byte hexadecimal strings"
            )

        registry, remainder = split_docker_domain(reference)
        remote = remainder.split(":", 1)[0]
        if remote.lower() != remote:
            raise InvalidReferenceError(
                f"invalid reference format: repository name ({remote}) must be lowercase"
            )
        return cls.parse(f"{registry}/{remainder}")

    @property
    def full_name(self) -> str:
        """Get full image name with registry."""
        name = f"{self.registry}/{self.repository}"
        if self.tag:
            name = f"{name}:{self.tag}"
        if self.digest:
            name = f"{name}@{self.digest}"
        return name

    @property
    def short_name(self) -> str:
        """Get short image name (without registry if default)."""
        if self.registry != DEFAULT_REGISTRY:
            return self.full_name
        repo = self.repository
        # Remove 'library/' prefix for official images
        if repo.startswith(OFFICIAL_REPO_PREFIX):
            repo = repo[len(OFFICIAL_REPO_PREFIX):]
        if self.tag:
            repo = f"{repo}:{self.tag}"
        if self.digest:
            repo = f"{repo}@{self.digest}"
        return repo

    def __str__(self) -> str:
        return self.short_name

    def __repr__(self) -> str:
        return f"ImageReference({self.full_name})"


def strip_scheme(raw: str) -> str:
    """Drop a leading http:// and then a leading https://."""
    if raw.startswith("http://"):
        raw = raw[len("http://"):]
    if raw.startswith("https://"):
        raw = raw[len("https://"):]
    return raw


def parse_image_ref(raw: str) -> ImageRef:
    """
    Parse an image string as found in a manifest into an ImageRef.

    A URL scheme in front of the reference is a misconfiguration, not part of
    the name, so it is dropped before parsing. Malformed references are not an
    error: the returned ImageRef then carries only ``raw``.
    """
    try:
        ref = ImageReference.parse_normalized(strip_scheme(raw))
    except InvalidReferenceError as e:
        logger.debug("Could not parse image reference %r: %s", raw, e)
        return ImageRef(raw=raw)

    tag = ref.tag or ""
    if not ref.tag and not ref.digest:
        tag = DEFAULT_TAG
    return ImageRef(
        raw=raw,
        registry=ref.registry,
        repository=ref.repository,
        tag=tag,
        digest=ref.digest or "",
    )
