"""
SiteCraft Website Module
Generation, listing, preview and download of a user's websites, plus prompt history.
"""

from .routes import website_bp, prompts_bp
from .validation import validate_generation_request

__all__ = ['website_bp', 'prompts_bp', 'validate_generation_request']
