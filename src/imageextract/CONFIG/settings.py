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
Runtime settings and their defaults, read from the environment.
"""
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import find_dotenv, load_dotenv


def _default_helm_binary() -> str:
    """IMAGEEXTRACT_HELM_BIN wins over HELM_BIN, which helm plugins also set."""
    return os.environ.get("IMAGEEXTRACT_HELM_BIN") or os.environ.get("HELM_BIN") or "helm"


@dataclass
class Settings:
    helm_binary: str = field(default_factory=_default_helm_binary)
    namespace: str = field(default_factory=lambda: os.environ.get("IMAGEEXTRACT_NAMESPACE", "default"))
    release_name: str = field(default_factory=lambda: os.environ.get("IMAGEEXTRACT_RELEASE_NAME", "release"))
    log_level: str = field(default_factory=lambda: os.environ.get("IMAGEEXTRACT_LOG_LEVEL", "WARNING"))


def load_settings(env_file: Optional[str] = None) -> Settings:
    """
    Loads a .env file (the given one, or one found from the working
    directory) without overriding variables already set, then builds
    Settings from the environment.
    """
    if env_file:
        load_dotenv(env_file, override=False)
    else:
        load_dotenv(find_dotenv(usecwd=True), override=False)
    return Settings()
