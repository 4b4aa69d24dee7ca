"""
Main CLI entry point for OfferLens
"""

import click

from .analyze import analyze_command, batch_command, classify_command, check_keys_command


@click.group()
@click.version_option(version='0.1.0')
def cli():
    """
    OfferLens - Marketing page intelligence

    Scrape sales and affiliate pages, extract their persuasion elements
    (headlines, benefits, CTAs, testimonials, pricing, guarantees) and
    score how complete the extraction is.
    """
    pass


# Register commands
cli.add_command(analyze_command)
cli.add_command(batch_command)
cli.add_command(classify_command)
cli.add_command(check_keys_command)


if __name__ == '__main__':
    cli()
