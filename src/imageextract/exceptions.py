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
Exceptions raised by the extraction engine.

Only operation-level failures are raised to callers. Per-file problems end up
in ``Result.errors`` and per-document problems are skipped unless strict mode
is enabled.
"""


class ImageExtractError(Exception):
    """Base class for all extraction errors."""


class DirectoryNotFoundError(ImageExtractError, FileNotFoundError):
    """The directory to scan does not exist or is not a directory."""


class ChartLoadError(ImageExtractError):
    """A Helm chart could not be loaded."""


class ChartRenderError(ImageExtractError):
    """A Helm chart could not be rendered."""


class ValuesError(ImageExtractError):
    """A Helm values file could not be read or merged."""


class DocumentDecodeError(ImageExtractError):
    """A YAML document did not match any known shape."""


class ConversionError(ImageExtractError):
    """A document could not be converted to the requested schema version."""


class InvalidReferenceError(ImageExtractError, ValueError):
    """An image reference does not follow the reference grammar."""
