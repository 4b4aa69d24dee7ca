"""
Analysis commands for OfferLens CLI
"""

import asyncio
import json
import logging
from typing import List

import click

from ..core.exceptions import InvalidURL
from ..core.observability import setup_logfire
from ..services.models import MISSING
from ..services.page_intelligence_service import AnalysisResult, build_default_service
from ..services.url_classifier import classify_url


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)

BACKEND_CHOICES = ['auto', 'fast', 'deep']


def _print_result(result: AnalysisResult) -> None:
    """Human-readable summary of one analysis."""
    outcome = result.outcome
    if not result.success:
        click.echo(f"\n❌ {result.url}")
        click.echo(f"   Error ({outcome.error_kind.value if outcome.error_kind else 'unknown'}): {result.error}")
        return

    scored = result.scored
    data = scored.data
    source = "cache" if result.from_cache else outcome.backend_used

    click.echo(f"\n✅ {result.url}")
    click.echo(f"   Product: {data.product_name}")
    click.echo(f"   Source: {source}  |  Method: {scored.extraction_method.value}")
    click.echo(f"   Quality: {scored.quality_score:.2f}  |  Completeness: {scored.completeness_score:.2f}  "
               f"|  Confidence: {scored.confidence.value}")
    click.echo(f"   Category: {data.category.value}  |  Industry: {data.industry}  |  Price point: {data.price_point.value}")
    click.echo(f"   Headlines: {len(data.headlines)}  Benefits: {len(data.benefits)}  CTAs: {len(data.ctas)}  "
               f"Testimonials: {len(data.testimonials)}  Pricing: {len(data.pricing)}  Guarantees: {len(data.guarantees)}")
    if data.main_benefit != MISSING:
        click.echo(f"   Main benefit: {data.main_benefit}")
    if scored.missing_fields:
        click.echo(f"   ⚠️  Missing: {', '.join(scored.missing_fields)}")


def _read_urls(path: str) -> List[str]:
    with open(path, 'r', encoding='utf-8') as f:
        return [line.strip() for line in f if line.strip() and not line.strip().startswith('#')]


@click.command('analyze')
@click.argument('url')
@click.option('--backend', '-b', default='auto', type=click.Choice(BACKEND_CHOICES),
              help='Scrape back-end (default: auto, chosen from the URL)')
@click.option('--json', 'as_json', is_flag=True, help='Print the full result as JSON')
def analyze_command(url: str, backend: str, as_json: bool):
    """
    Scrape a marketing page and extract its persuasion elements

    Examples:
        offerlens analyze https://example.com/offer
        offerlens analyze https://vendor.hop.clickbank.net --backend deep --json
    """
    setup_logfire()
    service = build_default_service()

    try:
        result = asyncio.run(service.analyze_url(url, backend))
    except Exception as e:
        click.echo(f"\n❌ Analysis failed: {e}", err=True)
        raise click.Abort()

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        _print_result(result)

    if not result.success:
        raise SystemExit(1)


@click.command('batch')
@click.argument('file', type=click.Path(exists=True, dir_okay=False))
@click.option('--backend', '-b', default='auto', type=click.Choice(BACKEND_CHOICES),
              help='Scrape back-end for every URL (default: auto)')
@click.option('--output', '-o', type=click.Path(dir_okay=False), help='Write results as JSON to this file')
def batch_command(file: str, backend: str, output: str):
    """
    Analyze every URL in FILE (one per line), one at a time

    Examples:
        offerlens batch urls.txt
        offerlens batch urls.txt --output results.json
    """
    urls = _read_urls(file)
    if not urls:
        click.echo("⚠️  No URLs found in file")
        return

    click.echo(f"\n{'='*60}")
    click.echo(f"🔍 Analyzing {len(urls)} URL(s)")
    click.echo(f"{'='*60}")

    setup_logfire()
    service = build_default_service()

    try:
        results = asyncio.run(service.analyze_batch(urls, backend))
    except Exception as e:
        click.echo(f"\n❌ Batch failed: {e}", err=True)
        raise click.Abort()

    for result in results:
        _print_result(result)

    succeeded = sum(1 for r in results if r.success)
    click.echo(f"\n{'='*60}")
    click.echo(f"📊 Summary: {succeeded}/{len(results)} succeeded")
    click.echo(f"{'='*60}\n")

    if output:
        with open(output, 'w', encoding='utf-8') as f:
            json.dump([r.to_dict() for r in results], f, indent=2)
        click.echo(f"💾 Results written to {output}")


@click.command('classify')
@click.argument('url')
def classify_command(url: str):
    """
    Show how a URL would be routed, without scraping it

    Example:
        offerlens classify https://example.mykajabi.com/sales
    """
    try:
        analysis = classify_url(url)
    except InvalidURL as e:
        click.echo(f"\n❌ {e}", err=True)
        raise click.Abort()

    click.echo(f"\nURL: {analysis.url}")
    click.echo(f"Domain: {analysis.domain}")
    click.echo(f"Platform: {analysis.platform}")
    click.echo(f"Affiliate page: {'yes' if analysis.is_affiliate else 'no'}")
    click.echo(f"Complex platform: {'yes' if analysis.is_complex_platform else 'no'}")
    click.echo(f"Recommended back-end: {analysis.recommended_backend.value}")
    click.echo(f"Reasoning: {analysis.reasoning}")


@click.command('check-keys')
def check_keys_command():
    """
    Probe each configured API credential with a minimal request
    """
    service = build_default_service()
    results = asyncio.run(service.check_credentials())

    click.echo("\n🔑 Credential check")
    for name, ok in results.items():
        if ok is None:
            status = "⚪ not configured"
        elif ok:
            status = "✅ ok"
        else:
            status = "❌ rejected or unreachable"
        click.echo(f"   {name:<12} {status}")
