"""
OfferLens - Sales page intelligence extraction

Scrapes marketing and sales pages through remote rendering back-ends and
turns them into a scored, normalized record of the page's persuasion
elements (headlines, benefits, testimonials, pricing, guarantees, CTAs).
"""

__version__ = "0.1.0"
__author__ = "OfferLens Team"
