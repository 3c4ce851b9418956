import random
import string

from imageextract.MODELS.image_ref import ImageRef
from imageextract.PARSERS.manifest_parser import ManifestParser
from imageextract.REGISTRY.image_reference import parse_image_ref

REFERENCE_CHARS = string.ascii_letters + string.digits + ":/@._-"


def random_string(rng, length, alphabet=string.printable):
    return ''.join(rng.choice(alphabet) for _ in range(length))


def test_fuzz_parse_image_ref():
    rng = random.Random(1)
    for _ in range(500):
        raw = random_string(rng, rng.randint(0, 300), REFERENCE_CHARS)
        img = parse_image_ref(raw)
        assert isinstance(img, ImageRef)
        assert img.raw == raw


def test_fuzz_parse_image_ref_printable():
    rng = random.Random(2)
    for _ in range(200):
        raw = random_string(rng, rng.randint(0, 200))
        assert parse_image_ref(raw).raw == raw


def test_fuzz_manifest_parser():
    parser = ManifestParser()
    rng = random.Random(3)
    for _ in range(100):
        content = random_string(rng, rng.randint(0, 1000), string.ascii_letters + " \n:-[]{}")
        images, excluded = parser.extract_images_from_file(content)
        assert isinstance(images, list)
        assert isinstance(excluded, list)


def test_edge_cases_manifest_parser():
    parser = ManifestParser()

    # Empty string
    assert parser.extract_images_from_file("") == ([], [])

    # Only whitespace and separators
    assert parser.extract_images_from_file("   \n---\n\t\n---\n") == ([], [])

    # Very long image string
    long_image = "registry.example.com/" + "a" * 10000
    doc = f"kind: Pod\nspec:\n  containers:\n  - image: {long_image}\n"
    assert parser.extract_images_from_file(doc)[0] == [long_image]

    # Many documents
    pod = "kind: Pod\nspec:\n  containers:\n  - image: app:1\n"
    images, _ = parser.extract_images_from_file("---\n".join([pod] * 500))
    assert len(images) == 500
