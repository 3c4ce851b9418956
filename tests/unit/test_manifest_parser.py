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
Unit tests for the manifest parser.
"""
import pytest
from imageextract.exceptions import DocumentDecodeError
from imageextract.MODELS.k8s_manifest import PodDocument, WorkloadDocument
from imageextract.PARSERS.manifest_parser import (
    ManifestParser,
    list_images_in_doc,
    list_images_in_pod,
    split_documents,
)

DEPLOYMENT = b"""apiVersion: apps/v1
kind: Deployment
metadata:
  name: web
  namespace: shop
spec:
  template:
    spec:
      containers:
      - name: nginx
        image: nginx:1.19
      - name: sidecar
        image: gcr.io/project/app:v1
      initContainers:
      - name: init
        image: busybox:latest
"""

CRONJOB = b"""apiVersion: batch/v1
kind: CronJob
metadata:
  name: scheduled
spec:
  schedule: "*/5 * * * *"
  jobTemplate:
    spec:
      template:
        spec:
          containers:
          - name: task
            image: task:v1
"""

POD = b"""apiVersion: v1
kind: Pod
metadata:
  name: test-pod
spec:
  containers:
  - name: app
    image: nginx:1.19
  initContainers:
  - name: init
    image: alpine:3.14
  ephemeralContainers:
  - name: debugger
    image: busybox:1.36
"""


@pytest.fixture
def parser():
    return ManifestParser()


class TestWorkloads:
    """Tests for the templated workload kinds and Pods."""

    def test_deployment(self, parser):
        images, excluded = parser.extract_images_from_file(DEPLOYMENT)
        assert images == ["nginx:1.19", "gcr.io/project/app:v1", "busybox:latest"]
        assert excluded == []

    def test_cronjob(self, parser):
        images, _ = parser.extract_images_from_file(CRONJOB)
        assert images == ["task:v1"]

    def test_pod_includes_ephemeral_containers(self, parser):
        images, _ = parser.extract_images_from_file(POD)
        assert images == ["nginx:1.19", "alpine:3.14", "busybox:1.36"]

    @pytest.mark.parametrize("kind", ["StatefulSet", "DaemonSet", "ReplicaSet", "Job"])
    def test_other_templated_kinds(self, parser, kind):
        doc = f"""kind: {kind}
spec:
  template:
    spec:
      containers:
      - image: redis:6.2
      initContainers:
      - image: busybox:latest
"""
        images, _ = parser.extract_images_from_file(doc)
        assert images == ["redis:6.2", "busybox:latest"]

    def test_multi_document(self, parser):
        data = DEPLOYMENT + b"---\n" + CRONJOB
        images, _ = parser.extract_images_from_file(data)
        assert images == ["nginx:1.19", "gcr.io/project/app:v1", "busybox:latest", "task:v1"]

    def test_two_deployments(self, parser):
        first = b"kind: Deployment\nspec:\n  template:\n    spec:\n      containers:\n      - image: app1:v1\n"
        second = b"kind: Deployment\nspec:\n  template:\n    spec:\n      containers:\n      - image: app2:v1"
        images, _ = parser.extract_images_from_file(first + b"---\n" + second)
        assert images == ["app1:v1", "app2:v1"]

    def test_blank_images_skipped(self, parser):
        doc = b"""kind: Deployment
spec:
  template:
    spec:
      containers:
      - name: empty
        image: ""
      - name: missing
      - name: real
        image: real:1.0
"""
        images, _ = parser.extract_images_from_file(doc)
        assert images == ["real:1.0"]

    def test_null_sections(self, parser):
        doc = b"kind: Deployment\nmetadata:\nspec:\n  template:\n    spec:\n      containers:\n"
        images, _ = parser.extract_images_from_file(doc)
        assert images == []

    def test_null_container_entry_skipped(self, parser):
        doc = b"kind: Deployment\nspec:\n  template:\n    spec:\n      containers:\n      - \n      - image: real:1\n"
        images, _ = parser.extract_images_from_file(doc)
        assert images == ["real:1"]

    def test_null_entries_in_every_pod_slot(self, parser):
        doc = (
            b"kind: Pod\nspec:\n  containers: [null, {image: app:1}]\n"
            b"  initContainers: [null]\n  ephemeralContainers: [null, {image: dbg:1}]\n"
        )
        images, _ = parser.extract_images_from_file(doc)
        assert images == ["app:1", "dbg:1"]

    def test_numeric_api_version(self, parser):
        doc = b"apiVersion: 1\nkind: Pod\nspec:\n  containers:\n  - image: real:1\n"
        images, _ = parser.extract_images_from_file(doc)
        assert images == ["real:1"]

    def test_numeric_kind_treated_as_workload(self, parser):
        doc = b"kind: 1\nspec:\n  template:\n    spec:\n      containers:\n      - image: real:1\n"
        found = parser.scan(doc).images
        assert [f.image for f in found] == ["real:1"]
        assert found[0].source.kind == "1"

    def test_numeric_image_kept_as_string(self, parser):
        doc = b"kind: Pod\nspec:\n  containers:\n  - image: 1.5\n"
        images, _ = parser.extract_images_from_file(doc)
        assert images == ["1.5"]

    def test_trailing_separator_without_newline(self, parser):
        images, _ = parser.extract_images_from_file(CRONJOB + b"---")
        assert images == ["task:v1"]

    def test_str_input(self, parser):
        images, _ = parser.extract_images_from_file(CRONJOB.decode())
        assert images == ["task:v1"]


class TestDocumentSplitting:
    """Tests for the document separator handling."""

    def test_only_exact_separator_splits(self):
        assert split_documents(b"a: 1\n---\nb: 2") == [b"a: 1", b"b: 2"]
        assert len(split_documents(b"a: 1\n--- \nb: 2")) == 1

    def test_invalid_documents_are_skipped(self, parser):
        data = b"this: is: not: yaml\n---\n- a\n- list\n---\njust a string\n---\n" + CRONJOB
        images, _ = parser.extract_images_from_file(data)
        assert images == ["task:v1"]

    def test_type_mismatch_skips_document(self, parser):
        data = b"kind: Deployment\nspec:\n  template: [1, 2]\n---\n" + CRONJOB
        images, _ = parser.extract_images_from_file(data)
        assert images == ["task:v1"]

    def test_empty_input(self, parser):
        assert parser.extract_images_from_file(b"") == ([], [])

    def test_strict_mode_raises(self):
        strict = ManifestParser(strict=True)
        with pytest.raises(DocumentDecodeError):
            strict.extract_images_from_file(b"- a\n- list\n---\n" + CRONJOB)

    def test_strict_mode_allows_empty_documents(self):
        strict = ManifestParser(strict=True)
        images, _ = strict.extract_images_from_file(b"# just a comment\n---\n" + CRONJOB)
        assert images == ["task:v1"]


class TestProvenance:
    """Tests for the sources recorded by scan()."""

    def test_container_sources(self, parser):
        found = parser.scan(DEPLOYMENT).images
        first = found[0].source
        assert first.kind == "Deployment"
        assert first.name == "web"
        assert first.namespace == "shop"
        assert first.container == "nginx"
        assert first.container_type == "container"
        assert found[2].source.container_type == "initContainer"

    def test_ephemeral_source(self, parser):
        found = parser.scan(POD).images
        assert found[2].source.container == "debugger"
        assert found[2].source.container_type == "ephemeralContainer"

    def test_sources_are_independent(self, parser):
        found = parser.scan(DEPLOYMENT).images
        found[0].source.file = "changed"
        assert found[1].source.file == ""


class TestListHelpers:
    """Tests for the per-shape helpers."""

    def test_list_images_in_doc_statefulset(self):
        doc = WorkloadDocument.model_validate({
            "kind": "StatefulSet",
            "spec": {"template": {"spec": {
                "containers": [{"image": "redis:6.2"}],
                "initContainers": [{"image": "busybox:latest"}],
            }}},
        })
        assert [f.image for f in list_images_in_doc(doc)] == ["redis:6.2", "busybox:latest"]

    def test_list_images_in_pod(self):
        doc = PodDocument.model_validate({
            "kind": "Pod",
            "spec": {
                "containers": [{"image": "nginx:1.19"}],
                "initContainers": [{"image": "alpine:3.14"}],
            },
        })
        assert [f.image for f in list_images_in_pod(doc)] == ["nginx:1.19", "alpine:3.14"]
