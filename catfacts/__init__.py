"""
Cat Facts - stores cat facts and mails subscribers a random one every day.
"""

__version__ = '0.1.0'
