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
Unit tests for settings loading.
"""
import pytest
from imageextract.CONFIG.settings import Settings, load_settings

ENV_VARS = (
    "IMAGEEXTRACT_HELM_BIN",
    "HELM_BIN",
    "IMAGEEXTRACT_NAMESPACE",
    "IMAGEEXTRACT_RELEASE_NAME",
    "IMAGEEXTRACT_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        # set first so that values loaded from .env files are undone too
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)


class TestSettings:
    """Tests for Settings defaults."""

    def test_defaults(self):
        settings = Settings()
        assert settings.helm_binary == "helm"
        assert settings.namespace == "default"
        assert settings.release_name == "release"
        assert settings.log_level == "WARNING"

    def test_helm_bin_fallback(self, monkeypatch):
        monkeypatch.setenv("HELM_BIN", "/usr/local/bin/helm")
        assert Settings().helm_binary == "/usr/local/bin/helm"
        monkeypatch.setenv("IMAGEEXTRACT_HELM_BIN", "/opt/helm")
        assert Settings().helm_binary == "/opt/helm"

    def test_env_file(self, tmp_path, monkeypatch):
        env_file = tmp_path / "custom.env"
        env_file.write_text("IMAGEEXTRACT_NAMESPACE=shop\nIMAGEEXTRACT_RELEASE_NAME=store\n")
        settings = load_settings(str(env_file))
        assert settings.namespace == "shop"
        assert settings.release_name == "store"

    def test_environment_wins_over_env_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv("IMAGEEXTRACT_LOG_LEVEL", "DEBUG")
        env_file = tmp_path / ".env"
        env_file.write_text("IMAGEEXTRACT_LOG_LEVEL=ERROR\n")
        assert load_settings(str(env_file)).log_level == "DEBUG"
