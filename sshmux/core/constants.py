"""
Project constants definitions
"""

# ============================================================
# SSH Defaults
# ============================================================

DEFAULT_SSH_PORT = "22"
SSH_DIR = "~/.ssh"
SSH_CONFIG_PATH = "~/.ssh/config"

# Tried in this order when no identity file is given
DEFAULT_IDENTITY_FILES = ("id_dsa", "id_ecdsa", "id_ed25519", "id_rsa")

AGENT_METHOD_NAME = "ssh-agent"
AGENT_SOCK_ENV = "SSH_AUTH_SOCK"

# ============================================================
# Dispatch
# ============================================================

DEFAULT_CONCURRENCY = 10
DEFAULT_TAIL_LINES = 5
READ_CHUNK_SIZE = 4096

# Minimum seconds between two redraws of the live view
RENDER_INTERVAL = 0.05

# ============================================================
# Display
# ============================================================

STATUS_OK_STYLE = "green"
STATUS_FAILED_STYLE = "red"
HOST_LABEL_STYLE = "underline"

# ============================================================
# Environment
# ============================================================

ENV_PREFIX = "SSHMUX_"
