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
Unit tests for the warning generator.
"""
import pytest
from imageextract.MANAGERS.warning_generator import WARNING_MESSAGES, generate_warnings
from imageextract.MODELS.image_ref import ImageRef, Source, WarningType
from imageextract.REGISTRY.image_reference import parse_image_ref


def warning_types(raw):
    return [w.type for w in generate_warnings(parse_image_ref(raw))]


class TestGenerateWarnings:
    """Tests for each warning rule."""

    def test_pinned_qualified_image_is_clean(self):
        assert warning_types("gcr.io/project/app:v1") == []

    def test_explicit_latest(self):
        assert warning_types("quay.io/org/app:latest") == [WarningType.LATEST_TAG]

    def test_bare_name(self):
        assert warning_types("nginx") == [
            WarningType.LATEST_TAG,
            WarningType.NO_TAG,
            WarningType.UNQUALIFIED,
        ]

    def test_tagged_bare_name_is_unqualified(self):
        assert warning_types("nginx:1.19") == [WarningType.UNQUALIFIED]

    def test_org_image_not_unqualified(self):
        assert warning_types("myorg/app:1.0") == []

    def test_insecure_registry(self):
        types = warning_types("http://registry.example.com/app:1.0")
        assert types == [WarningType.INSECURE]

    def test_insecure_latest(self):
        types = warning_types("http://registry.example.com/app:latest")
        assert WarningType.LATEST_TAG in types
        assert WarningType.INSECURE in types

    def test_digest_without_tag(self):
        assert warning_types("gcr.io/p/app@sha256:" + "a" * 64) == [WarningType.NO_TAG]

    def test_unparseable_reference(self):
        types = warning_types("Not A Valid::Image")
        assert WarningType.INVALID_SYNTAX in types
        assert WarningType.NO_TAG in types

    def test_latest_on_unparsed_fields(self):
        img = ImageRef(raw="nginx:latest", tag="latest", sources=[Source()])
        types = [w.type for w in generate_warnings(img)]
        assert WarningType.LATEST_TAG in types

    def test_insecure_on_unparsed_fields(self):
        img = ImageRef(raw="http://reg.com/app:v1", sources=[Source()])
        warnings = generate_warnings(img)
        assert WarningType.INSECURE in [w.type for w in warnings]
        assert all(w.source == Source() for w in warnings)

    def test_one_warning_per_rule(self):
        for types in (warning_types("nginx"), warning_types("http://reg.com/app")):
            assert len(types) == len(set(types))

    def test_first_source_attached(self):
        img = parse_image_ref("nginx:latest")
        img.sources = [Source(file="a.yaml"), Source(file="b.yaml")]
        warnings = generate_warnings(img)
        assert warnings
        assert all(w.source.file == "a.yaml" for w in warnings)

    def test_no_source(self):
        warnings = generate_warnings(parse_image_ref("nginx:latest"))
        assert all(w.source is None for w in warnings)

    @pytest.mark.parametrize("warning_type", list(WarningType))
    def test_every_type_has_a_message(self, warning_type):
        assert WARNING_MESSAGES[warning_type]

    def test_warning_fields(self):
        warning = generate_warnings(ImageRef(raw="app:latest", registry="docker.io",
                                             repository="library/app", tag="latest"))[0]
        assert warning.image == "app:latest"
        assert warning.type == WarningType.LATEST_TAG
        assert warning.message == WARNING_MESSAGES[WarningType.LATEST_TAG]
