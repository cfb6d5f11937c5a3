"""
Option model and config resolution
"""
from .models import SSHClientOptions, EffectiveOptions, DEFAULT_OPTIONS, merge_options
from .parser import parse_options, parse_config_file, split_option
from .resolver import ConfigResolver, match_host_patterns

__all__ = [
    "SSHClientOptions",
    "EffectiveOptions",
    "DEFAULT_OPTIONS",
    "merge_options",
    "parse_options",
    "parse_config_file",
    "split_option",
    "ConfigResolver",
    "match_host_patterns",
]
