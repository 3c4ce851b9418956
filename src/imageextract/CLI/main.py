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
Command Line Interface for imageextract.
"""
import json
import logging

import click

from ..CONFIG.settings import load_settings
from ..exceptions import ImageExtractError
from ..MANAGERS.extractor import ImageExtractor
from ..MODELS.image_ref import ExtractOptions
from ..REGISTRY.image_reference import ImageReference, strip_scheme
from ..RENDERERS.chart_renderer import HelmTemplateRenderer
from ..UTILS.values import parse_set_values


def _full_name(raw: str) -> str:
    try:
        return ImageReference.parse_normalized(strip_scheme(raw)).full_name
    except ValueError:
        return raw


@click.group()
@click.option('--env-file', default=None, type=click.Path(dir_okay=False), help='Read settings from this .env file')
@click.option('--log-level', default=None, help='Logging level (DEBUG, INFO, WARNING, ERROR)')
@click.pass_context
def cli(ctx, env_file, log_level):
    """
    imageextract - find the container images a Kubernetes app needs.

    Reads manifests or Helm charts locally; nothing is pulled or downloaded.
    """
    ctx.ensure_object(dict)
    settings = load_settings(env_file)
    level = (log_level or settings.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj['settings'] = settings


@cli.command('extract-images')
@click.option('--yaml-dir', default=None, type=click.Path(file_okay=False), help='Directory containing Kubernetes manifests')
@click.option('--chart', default=None, type=click.Path(), help='Helm chart archive (.tgz) or directory')
@click.option('--values', 'values_files', multiple=True, type=click.Path(dir_okay=False), help='Values file for Helm rendering (repeatable)')
@click.option('--set', 'set_values', multiple=True, help='Set a Helm value, key=value (repeatable)')
@click.option('--namespace', default=None, help='Namespace for Helm rendering')
@click.option('--show-duplicates', is_flag=True, help='Show every occurrence instead of unique images')
@click.option('--no-warnings', is_flag=True, help='Suppress warnings about image references')
@click.option('--strict', is_flag=True, help='Fail on the first YAML document that cannot be decoded')
@click.option('--output', '-o', type=click.Choice(['list', 'full', 'json']), default='list', help='Output format')
@click.pass_context
def extract_images(ctx, yaml_dir, chart, values_files, set_values, namespace,
                   show_duplicates, no_warnings, strict, output):
    """Extract container image references from manifests or a Helm chart."""
    if not yaml_dir and not chart:
        raise click.UsageError("either --yaml-dir or --chart must be specified")
    if yaml_dir and chart:
        raise click.UsageError("cannot specify both --yaml-dir and --chart")

    settings = ctx.obj['settings']
    opts = ExtractOptions(
        helm_values=parse_set_values(list(set_values)),
        helm_values_files=list(values_files),
        namespace=namespace or settings.namespace,
        release_name=settings.release_name,
        include_duplicates=show_duplicates,
        no_warnings=no_warnings,
        strict=strict,
    )
    extractor = ImageExtractor(renderer=HelmTemplateRenderer(settings.helm_binary))

    try:
        if yaml_dir:
            result = extractor.extract_from_directory(yaml_dir, opts)
        else:
            result = extractor.extract_from_chart(chart, opts)
    except (ImageExtractError, OSError) as e:
        raise click.ClickException(f"extraction failed: {e}") from e

    if output == 'json':
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    for img in result.images:
        click.echo(_full_name(img.raw) if output == 'full' else img.raw)
    for warning in result.warnings:
        click.echo(f"warning: {warning.image}: {warning.message}", err=True)
    for error in result.errors:
        click.echo(f"error: {error}", err=True)


def main():
    """
    Main entry point for the CLI.
    """
    cli(obj={})


if __name__ == '__main__':
    main()
