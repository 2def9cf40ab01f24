"""SiteCraft - Client modules"""

from .generator import generate_website_code
from .store import (
    delete_prompt,
    delete_website,
    get_website,
    list_prompts,
    list_websites,
    save_prompt_history,
    save_website,
    update_website,
)
from .gcp import store_backup, log_generation

__all__ = [
    'generate_website_code',
    'save_website',
    'update_website',
    'list_websites',
    'get_website',
    'delete_website',
    'save_prompt_history',
    'list_prompts',
    'delete_prompt',
    'store_backup',
    'log_generation',
]
