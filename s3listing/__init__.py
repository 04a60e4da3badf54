"""Browsable static index pages for S3 bucket prefixes."""

__version__ = '0.1.0'
