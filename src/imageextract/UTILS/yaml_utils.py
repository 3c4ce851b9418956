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
YAML helpers.
"""
import os
from typing import Any, Union

import yaml

# PyYAML raises ValueError for scalars that look like, but are not, valid dates
YAML_ERRORS = (yaml.YAMLError, ValueError)

YAML_EXTENSIONS = (".yaml", ".yml")


def load_first_document(content: Union[bytes, str]) -> Any:
    """
    Loads the first YAML document of ``content`` and ignores the rest, so a
    chunk with a stray trailing '---' still loads.

    :raises yaml.YAMLError: If the first document is not valid YAML.
    """
    for document in yaml.safe_load_all(content):
        return document
    return None


def is_yaml_file(path: str) -> bool:
    """Checks the extension, case-insensitively."""
    return os.path.splitext(path)[1].lower() in YAML_EXTENSIONS
