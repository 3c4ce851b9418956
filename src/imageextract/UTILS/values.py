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
Merging of Helm values from values files and inline overrides.
"""
from typing import Any, Dict, Iterable, List

from ..exceptions import ValuesError
from ..MODELS.image_ref import ExtractOptions
from .yaml_utils import YAML_ERRORS, load_first_document


def merge_maps(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep merge of two maps. Nested maps are merged key by key; any other
    value in ``override`` replaces the one in ``base``. Neither input is
    modified.
    """
    merged = dict(base)
    for key, value in override.items():
        existing = merged.get(key)
        if isinstance(existing, dict) and isinstance(value, dict):
            merged[key] = merge_maps(existing, value)
        else:
            merged[key] = value
    return merged


def load_values_files(paths: Iterable[str]) -> Dict[str, Any]:
    """
    Reads values files in order, later files overriding earlier ones.

    :raises ValuesError: If a file cannot be read, is not YAML, or does not
             hold a mapping.
    """
    merged: Dict[str, Any] = {}
    for path in paths:
        try:
            with open(path, 'rb') as f:
                content = f.read()
        except OSError as e:
            raise ValuesError(f"failed to read values file {path}: {e}") from e

        try:
            values = load_first_document(content)
        except YAML_ERRORS as e:
            raise ValuesError(f"failed to parse values file {path}: {e}") from e

        if values is None:
            continue
        if not isinstance(values, dict):
            raise ValuesError(f"values file {path} must contain a mapping")
        merged = merge_maps(merged, values)
    return merged


def prepare_values(opts: ExtractOptions) -> Dict[str, Any]:
    """
    Values for rendering: everything from the values files, then the inline
    values on top.
    """
    values: Dict[str, Any] = {}
    if opts.helm_values_files:
        values = load_values_files(opts.helm_values_files)
    if opts.helm_values:
        values = merge_maps(values, opts.helm_values)
    return values


def parse_set_values(pairs: List[str]) -> Dict[str, Any]:
    """
    Turns 'image.repository=nginx' style assignments into a nested dict.
    Entries without '=' are ignored; values stay strings.
    """
    result: Dict[str, Any] = {}
    for pair in pairs:
        if '=' not in pair:
            continue
        key, value = pair.split('=', 1)
        keys = key.split('.')

        current = result
        for k in keys[:-1]:
            nested = current.setdefault(k, {})
            if not isinstance(nested, dict):
                # a scalar was set earlier at this path; replace it
                nested = current[k] = {}
            current = nested
        current[keys[-1]] = value
    return result
