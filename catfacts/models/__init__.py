"""
Data Models für Cat Facts
"""

from .cat_fact import CatFact
from .subscriber import Subscriber, normalize_email

__all__ = ['CatFact', 'Subscriber', 'normalize_email']
