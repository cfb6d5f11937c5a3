"""
Authentication domain module
"""
from .methods import AuthMethod, PublicKeyAuth, AgentAuth, SerializedAgentKey, load_private_key
from .agent import connect_agent
from .chain import AuthChain, build_auth_methods, default_identity_files

__all__ = [
    "AuthMethod",
    "PublicKeyAuth",
    "AgentAuth",
    "SerializedAgentKey",
    "load_private_key",
    "connect_agent",
    "AuthChain",
    "build_auth_methods",
    "default_identity_files",
]
