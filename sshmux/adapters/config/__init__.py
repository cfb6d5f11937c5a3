"""
Run input loading
"""
from .loader import load_hosts, read_hosts_file, parse_env, read_command

__all__ = ["load_hosts", "read_hosts_file", "parse_env", "read_command"]
