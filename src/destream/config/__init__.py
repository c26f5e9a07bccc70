"""
Configuration module for destream.

Provides unified configuration with priority resolution:
1. Environment variables (DESTREAM_ROOT, DESTREAM_TOKEN_CACHE)
2. Project config (.destream/config.yaml)
3. User config ({root_dir}/config.yaml)
4. Defaults
"""

from destream.config.loader import (
    ConfigSource,
    DestreamConfig,
    LoginPolicy,
    clear_config_cache,
    get_config,
    get_root_dir,
)
from destream.config.output_templates import (
    TEMPLATE_ELEMENTS,
    assign_output_paths,
    render_template,
    validate_template,
)

__all__ = [
    "ConfigSource",
    "DestreamConfig",
    "LoginPolicy",
    "clear_config_cache",
    "get_config",
    "get_root_dir",
    "TEMPLATE_ELEMENTS",
    "assign_output_paths",
    "render_template",
    "validate_template",
]
